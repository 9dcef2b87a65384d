"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在控制器或 UI 层做统一捕获与用户提示。

TransportError 及其子类只由补全客户端抛出，ExchangeController
负责把它们吸收为会话中的一条错误提示消息。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "SETTINGS_READ_ERROR"）。
        message: 错误详情，仅用于日志与诊断。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 turn_id、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class TransportError(BusinessError):
    """补全请求失败的基类。"""


class NetworkError(TransportError):
    """网络层错误，例如连接失败、超时、无响应等。"""


class InvalidFormatError(TransportError):
    """请求序列化失败，或响应体无法解码 / 结构不符合预期。"""


class ApiError(TransportError):
    """传输正常但返回内容语义无效（空 choices、非 2xx 状态码等）。"""


class RateLimitError(ApiError):
    """Provider 限流错误（HTTP 429），不自动重试。"""
