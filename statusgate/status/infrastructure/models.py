"""状态存储 ORM 模型。

定义联系人、状态条目、私信和图片元数据的 SQLAlchemy ORM 模型。
"""

from datetime import datetime, timezone
from enum import IntEnum

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from statusgate.database.models import Base


class ContactRelation(IntEnum):
    """联系人关系。"""

    none = 0
    follower = 1
    sharing = 2
    friend = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContactOrm(Base):
    """联系人 ORM 模型。

    uid 为 0 的记录是全站公共联系人缓存，其 id 用作对外的用户 ID。
    """

    __tablename__ = "contacts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    uid: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="所属账户 ID，0 表示公共缓存"
    )
    url: Mapped[str] = mapped_column(String(255), nullable=False, comment="主页地址")
    nurl: Mapped[str] = mapped_column(
        String(255), nullable=False, comment="标准化后的主页地址"
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    nick: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    micro: Mapped[str] = mapped_column(
        String(255), nullable=False, default="", comment="头像地址"
    )
    location: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    about: Mapped[str] = mapped_column(Text, nullable=False, default="")
    network: Mapped[str] = mapped_column(
        String(8), nullable=False, default="", comment="网络代码，如 dfrn"
    )
    is_self: Mapped[bool] = mapped_column(
        "self", Boolean, nullable=False, default=False, comment="是否为账户自身"
    )
    rel: Mapped[int] = mapped_column(
        Integer, nullable=False, default=ContactRelation.none, comment="关系类型"
    )
    blocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    pending: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (
        Index("idx_contacts_uid_nurl", "uid", "nurl"),
        Index("idx_contacts_nick", "nick"),
    )


class ItemOrm(Base):
    """状态条目 ORM 模型。

    每个账户保存一份自己可见的副本，parent 指向所属会话根条目的 id。
    """

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    uid: Mapped[int] = mapped_column(Integer, nullable=False, comment="所属账户 ID")
    guid: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    uri: Mapped[str] = mapped_column(String(255), nullable=False, comment="全局 URI")
    parent: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="会话根条目 id"
    )
    thr_parent: Mapped[str] = mapped_column(
        String(255), nullable=False, default="", comment="直接回复对象的 URI"
    )
    contact_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    author_id: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="作者联系人 id"
    )
    author_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    author_link: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    author_avatar: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    owner_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    owner_link: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    owner_avatar: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    app: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    verb: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    network: Mapped[str] = mapped_column(String(8), nullable=False, default="")
    coord: Mapped[str] = mapped_column(
        String(100), nullable=False, default="", comment="'纬度 经度'"
    )
    plink: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    edited: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    # 访问控制列表，形如 <1><2>
    allow_cid: Mapped[str] = mapped_column(Text, nullable=False, default="")
    allow_gid: Mapped[str] = mapped_column(Text, nullable=False, default="")
    deny_cid: Mapped[str] = mapped_column(Text, nullable=False, default="")
    deny_gid: Mapped[str] = mapped_column(Text, nullable=False, default="")
    private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    starred: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    wall: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    moderated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    unseen: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    mention: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("idx_items_uid_id", "uid", "id"),
        Index("idx_items_uri", "uri"),
        Index("idx_items_parent", "parent"),
    )


class MailOrm(Base):
    """私信 ORM 模型。"""

    __tablename__ = "mails"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    uid: Mapped[int] = mapped_column(Integer, nullable=False)
    contact_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    from_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    from_url: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    from_photo: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    seen: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    uri: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    parent_uri: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (Index("idx_mails_uid_id", "uid", "id"),)


class PhotoOrm(Base):
    """图片元数据 ORM 模型，供实体提取器查询尺寸。"""

    __tablename__ = "photos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    url: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    width: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    height: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    mimetype: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    filesize: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
