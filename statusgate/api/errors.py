"""HTTP 错误类型。

处理器和组件抛出这些异常，由分发器统一转换为错误信封。
"""


class HTTPFault(Exception):
    """带 HTTP 状态码的错误基类。"""

    code: int = 500
    description: str = "Internal Server Error"

    def __init__(self, message: str = "", headers: dict[str, str] | None = None) -> None:
        """初始化错误。

        Args:
            message: 错误消息，为空时使用状态描述
            headers: 需要随响应返回的额外头部
        """
        self.message = message
        self.headers = headers or {}
        super().__init__(message or self.description)

    @property
    def error(self) -> str:
        return self.message or self.description

    @property
    def status_line(self) -> str:
        """形如 "401 Unauthorized" 的状态描述。"""
        return f"{self.code} {self.description}"


class BadRequest(HTTPFault):
    code = 400
    description = "Bad Request"


class Unauthorized(HTTPFault):
    """未认证错误，附带 Basic 认证质询头。"""

    code = 401
    description = "Unauthorized"

    def __init__(self, message: str = "", realm: str = "Statusgate") -> None:
        super().__init__(message, {"WWW-Authenticate": f'Basic realm="{realm}"'})


class Forbidden(HTTPFault):
    code = 403
    description = "Forbidden"


class NotFound(HTTPFault):
    code = 404
    description = "Not Found"


class MethodNotAllowed(HTTPFault):
    code = 405
    description = "Method Not Allowed"


class TooManyRequests(HTTPFault):
    code = 429
    description = "Too Many Requests"


class InternalServerError(HTTPFault):
    code = 500
    description = "Internal Server Error"


class NotImplementedFault(HTTPFault):
    code = 501
    description = "Not Implemented"
