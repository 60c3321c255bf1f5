"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
调度器在 Provider 边界统一捕获并转换为 error 结果卡片。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "MISSING_API_KEY"）。
        message: 用户可读错误信息，直接展示在 Provider 的错误卡片上。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ValidationError(BusinessError):
    """参数校验失败（空 prompt、未知预设等）。"""


class MissingCredentialError(ValidationError):
    """Provider 未配置 API 密钥，在发起任何网络请求前抛出。"""


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(BusinessError):
    """第三方 API 返回非 2xx 状态时抛出。"""


class RateLimitError(ApiError):
    """Provider 限流（HTTP 429）。本项目不做重试/退避。"""
