"""
自定义异常模块

定义应用特定的异常类，用于统一的错误处理。
所有业务异常都继承自 AppError，在 main.py 中有统一的异常处理器，
响应格式为 {"code": ..., "message": ..., "data": null}。

webhook 处理流程中的异常分类：
- ConfigurationError: 服务端未配置 webhook 密钥，所有请求都会失败
- AuthorizationError: Bearer token 不匹配，不写入任何记录
- EventValidationError: 请求体格式错误或缺少事件类型，不写入任何记录
- MappingError: 无法把 app_user_id 映射到用户资料，事件记录标记为失败
- TransitionError: 应用订阅状态变更时出现意外错误，事件记录标记为失败
"""
from __future__ import annotations


class AppError(Exception):
    """
    应用自定义异常基类

    - code: 业务错误码（用于区分不同错误）
    - message: 错误消息
    - status_code: HTTP 状态码

    使用示例：
        raise AppError(code=404101, message="Unknown billing provider", status_code=404)
    """

    def __init__(self, *, code: int, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code


class ConfigurationError(AppError):
    def __init__(self, message: str = "RC_WEBHOOK_TOKEN is not configured") -> None:
        super().__init__(code=500101, message=message, status_code=500)


class AuthorizationError(AppError):
    def __init__(self, message: str = "Invalid webhook token") -> None:
        super().__init__(code=401101, message=message, status_code=401)


class EventValidationError(AppError):
    def __init__(self, message: str = "Missing event type") -> None:
        super().__init__(code=400101, message=message, status_code=400)


class MappingError(AppError):
    def __init__(self, message: str = "Unable to map app_user_id to user profile") -> None:
        super().__init__(code=400102, message=message, status_code=400)


class TransitionError(AppError):
    def __init__(self, message: str = "Failed to apply subscription transition") -> None:
        super().__init__(code=500102, message=message, status_code=500)


def payload_too_large(limit: int) -> AppError:
    """创建"请求体过大"异常"""
    return AppError(
        code=413101,
        message=f"Request body exceeds {limit} bytes",
        status_code=413,
    )
