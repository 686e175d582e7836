"""
FastAPI 依赖注入模块

提供可复用的依赖项，用于路由处理函数中。

- get_db: 每个请求一个数据库会话
- get_revenuecat_webhook_processor: 按配置构建的 webhook 处理器
- read_webhook_body: 带大小限制的 JSON 请求体读取
- require_webhook_token: 用 webhook token 保护只读查询接口
"""
import json
from collections.abc import Generator  # 生成器类型，用于资源管理
from typing import Annotated, Any  # 类型注解，用于依赖注入

from fastapi import Depends, Header, Request
from sqlmodel import Session  # 数据库会话

from walklog_billing.api.errors import EventValidationError, payload_too_large
from walklog_billing.core.config import settings
from walklog_billing.core.db import engine
from walklog_billing.services.revenuecat_service import (
    RevenueCatWebhookProcessor,
    get_revenuecat_webhook_processor,
)


def get_db() -> Generator[Session, None, None]:
    """
    获取数据库会话（依赖注入）

    使用 yield 确保会话在请求结束后自动关闭。
    """
    with Session(engine) as session:
        yield session


async def read_webhook_body(request: Request) -> Any:
    """
    读取 webhook 请求体并解析 JSON

    先按 Content-Length 快速拒绝；分块传输没有 Content-Length，
    边读边累计字节数，超过上限立即中止读取。

    Raises:
        AppError: 请求体超过 WEBHOOK_MAX_BODY_BYTES（413）
        EventValidationError: 请求体不是合法 JSON
    """
    limit = settings.WEBHOOK_MAX_BODY_BYTES
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise payload_too_large(limit)

    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise payload_too_large(limit)
        chunks.append(chunk)

    body = b"".join(chunks)
    if not body:
        return {}
    try:
        return json.loads(body)
    except ValueError:
        raise EventValidationError("Invalid JSON body")


# 类型别名，简化依赖注入的写法
SessionDep = Annotated[Session, Depends(get_db)]  # 数据库会话依赖
WebhookProcessorDep = Annotated[
    RevenueCatWebhookProcessor, Depends(get_revenuecat_webhook_processor)
]  # webhook 处理器依赖
WebhookBodyDep = Annotated[Any, Depends(read_webhook_body)]  # 请求体依赖


def require_webhook_token(
    processor: WebhookProcessorDep,
    authorization: Annotated[str | None, Header()] = None,
) -> RevenueCatWebhookProcessor:
    """
    校验只读接口的 Bearer token

    与 webhook 使用同一个 token，校验失败抛出 401，未配置抛出 500。
    """
    processor.authenticate(authorization)
    return processor


WebhookAuthDep = Annotated[RevenueCatWebhookProcessor, Depends(require_webhook_token)]
