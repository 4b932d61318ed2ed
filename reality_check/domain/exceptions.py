"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在会话层或 UI 层做统一捕获与用户提示。
"""

from typing import Literal


ErrorKind = Literal["configuration", "empty_response", "upstream"]


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "MISSING_API_KEY"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 provider、upstream_status 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ReframeError(BusinessError):
    """重构（reframe）调用失败的基类，带有用于分派的 kind 标签。"""

    kind: ErrorKind = "upstream"


class ConfigurationError(ReframeError):
    """缺少 API 凭证等配置问题，在任何网络请求之前抛出。"""

    kind: ErrorKind = "configuration"


class EmptyResponseError(ReframeError):
    """上游调用成功，但没有返回可用文本。"""

    kind: ErrorKind = "empty_response"


class UpstreamError(ReframeError):
    """网络或第三方 API 层面的失败，message 中保留上游信息。"""

    kind: ErrorKind = "upstream"
