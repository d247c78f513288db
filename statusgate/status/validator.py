"""发布参数验证器。

验证并清理 statuses/update 的请求参数。
"""

import logging
from collections.abc import Mapping

from pydantic import BaseModel, Field
from returns.result import Failure, Result, Success

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """验证错误。"""

    def __init__(self, message: str, missing_fields: list[str] | None = None) -> None:
        """初始化验证错误。

        Args:
            message: 错误消息
            missing_fields: 缺失的字段列表
        """
        self.message = message
        self.missing_fields = missing_fields or []
        super().__init__(message)


class StatusDraft(BaseModel):
    """待发布的状态。"""

    body: str = Field(..., description="正文标记")
    title: str = Field("", description="标题")
    parent_id: int | None = Field(None, description="回复的条目 ID")
    parent_uri: str = Field("", description="回复的条目 URI")
    coord: str = Field("", description="'纬度 经度'")
    source: str = Field("", description="客户端名称")

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None or bool(self.parent_uri)


class StatusUpdateValidator:
    """发布参数验证器。"""

    def __init__(self, max_length: int) -> None:
        self.max_length = max_length

    def validate(self, params: Mapping[str, str]) -> Result[StatusDraft, ValidationError]:
        """验证请求参数。

        Args:
            params: 请求参数（POST 优先）

        Returns:
            Result[StatusDraft, ValidationError]: 成功时返回待发布的状态
        """
        if params.get("htmlstatus"):
            return Failure(ValidationError("HTML status updates are not supported"))

        body = (params.get("status") or "").replace("\r\n", "\n").strip()
        if not body:
            return Failure(ValidationError("Missing required fields: status", ["status"]))

        if self.max_length and len(body) > self.max_length:
            return Failure(
                ValidationError(f"Status is longer than {self.max_length} characters")
            )

        parent = (params.get("in_reply_to_status_id") or "").strip()
        # 部分客户端以 -1 表示不是回复
        if parent == "-1":
            parent = ""

        coord = ""
        lat, long = params.get("lat"), params.get("long")
        if lat and long:
            try:
                coord = f"{float(lat)} {float(long)}"
            except ValueError:
                return Failure(ValidationError("Invalid coordinates"))

        draft = StatusDraft(
            body=body,
            title=(params.get("title") or "").strip(),
            parent_id=int(parent) if parent.isdigit() else None,
            parent_uri="" if parent.isdigit() else parent,
            coord=coord,
            source=(params.get("source") or "").strip(),
        )
        logger.debug(f"状态参数验证通过: reply={draft.is_reply}")
        return Success(draft)
