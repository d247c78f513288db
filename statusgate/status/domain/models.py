"""状态领域模型。

定义条目、联系人、图片元数据以及转换过程中的中间结果模型。
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Verb(str, Enum):
    """条目动词（ActivityStreams）。"""

    post = "http://activitystrea.ms/schema/1.0/post"
    like = "http://activitystrea.ms/schema/1.0/like"
    dislike = "http://purl.org/macgirvin/dfrn/1.0/dislike"
    attendyes = "http://purl.org/zot/activity/attendyes"
    attendno = "http://purl.org/zot/activity/attendno"
    attendmaybe = "http://purl.org/zot/activity/attendmaybe"


class Network(str, Enum):
    """来源网络代码。"""

    dfrn = "dfrn"
    diaspora = "dspr"
    ostatus = "stat"
    feed = "feed"
    mail = "mail"
    facebook = "face"
    twitter = "twit"
    pumpio = "pump"
    appnet = "apdn"


NETWORK_NAMES: dict[str, str] = {
    Network.dfrn.value: "Friendica",
    Network.diaspora.value: "Diaspora",
    Network.ostatus.value: "OStatus",
    Network.feed.value: "RSS/Atom",
    Network.mail.value: "Email",
    Network.facebook.value: "Facebook",
    Network.twitter.value: "Twitter",
    Network.pumpio.value: "pump.io",
    Network.appnet.value: "App.net",
}


def network_to_name(network: str) -> str:
    """将网络代码转换为显示名称，未知代码原样返回。"""
    return NETWORK_NAMES.get(network, network)


def as_utc(value: datetime) -> datetime:
    """补全时区信息（SQLite 读出的时间不带时区）。"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def api_date(value: datetime) -> str:
    """格式化为客户端使用的日期格式，如 Wed May 23 06:01:13 +0000 2007。"""
    return as_utc(value).strftime("%a %b %d %H:%M:%S +0000 %Y")


class Post(BaseModel):
    """条目领域模型。

    id 等于 parent 时为会话根条目。
    """

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="条目 ID")
    uid: int = Field(..., description="所属账户 ID")
    guid: str = Field("", description="全局唯一标识")
    uri: str = Field(..., description="全局 URI")
    parent: int = Field(0, description="会话根条目 ID")
    thr_parent: str = Field("", description="直接回复对象的 URI")
    contact_id: int = Field(0, description="所属联系人 ID")
    author_id: int = Field(0, description="作者联系人 ID")
    author_name: str = ""
    author_link: str = ""
    author_avatar: str = ""
    owner_name: str = ""
    owner_link: str = ""
    owner_avatar: str = ""
    title: str = ""
    body: str = ""
    app: str = Field("", description="发布客户端")
    verb: str = Verb.post.value
    network: str = ""
    coord: str = Field("", description="'纬度 经度'")
    plink: str = Field("", description="永久链接")
    created: datetime
    edited: datetime | None = None
    allow_cid: str = ""
    allow_gid: str = ""
    deny_cid: str = ""
    deny_gid: str = ""
    private: bool = False
    starred: bool = False
    wall: bool = False
    unseen: bool = False

    @property
    def is_root(self) -> bool:
        """是否为会话根条目。"""
        return self.id == self.parent

    @property
    def is_public(self) -> bool:
        """访问控制列表全空且未标记私有时为公开条目。"""
        return not (
            self.allow_cid
            or self.allow_gid
            or self.deny_cid
            or self.deny_gid
            or self.private
        )

    @classmethod
    def from_orm(cls, orm) -> "Post":
        """从 ORM 对象创建领域模型。"""
        return cls.model_validate(orm)


class Actor(BaseModel):
    """联系人领域模型（本地缓存的参与者资料）。"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    uid: int = 0
    url: str
    nurl: str = ""
    name: str = ""
    nick: str = ""
    micro: str = ""
    location: str = ""
    about: str = ""
    network: str = ""
    is_self: bool = False
    rel: int = 0
    blocked: bool = False
    pending: bool = False
    created: datetime

    @classmethod
    def from_orm(cls, orm) -> "Actor":
        """从 ORM 对象创建领域模型。"""
        return cls.model_validate(orm)


class PhotoInfo(BaseModel):
    """图片元数据。"""

    model_config = ConfigDict(from_attributes=True)

    url: str
    width: int
    height: int
    mimetype: str = ""
    filesize: int = 0


class Mail(BaseModel):
    """私信领域模型。"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    uid: int
    contact_id: int = 0
    from_name: str = ""
    from_url: str = ""
    from_photo: str = ""
    title: str = ""
    body: str = ""
    seen: bool = False
    uri: str = ""
    parent_uri: str = ""
    created: datetime

    @classmethod
    def from_orm(cls, orm) -> "Mail":
        """从 ORM 对象创建领域模型。"""
        return cls.model_validate(orm)


class InReplyTo(BaseModel):
    """回复目标信息，字段全为空表示不是回复。"""

    status_id: int | None = None
    status_id_str: str | None = None
    user_id: int | None = None
    user_id_str: str | None = None
    screen_name: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.status_id is None


class ConvertedItem(BaseModel):
    """内容转换结果。"""

    text: str
    html: str
    attachments: list[dict] = Field(default_factory=list)
    entities: dict = Field(default_factory=dict)


class PaginationWindow(BaseModel):
    """分页窗口。

    offset 恒等于 page * limit。
    """

    since_id: int = Field(0, ge=0, description="不包含的下界")
    max_id: int = Field(0, ge=0, description="包含的上界，0 表示不限")
    page: int = Field(0, ge=0, description="从 0 开始的页号")
    limit: int = Field(20, gt=0, description="每页条数")

    @property
    def offset(self) -> int:
        return self.page * self.limit

    def admits(self, item_id: int) -> bool:
        """判断条目 ID 是否落在窗口的 ID 范围内。"""
        return item_id > self.since_id and (self.max_id == 0 or item_id <= self.max_id)
