"""
RevenueCat webhook 处理服务

Webhook: https://www.revenuecat.com/docs/integrations/webhooks

每个事件的处理流程：
1. 校验 Authorization: Bearer <token>
2. 规范化请求体（支持外层 event 包装），缺少事件类型直接拒绝
3. 按 event_id 去重，重复事件直接确认
4. 在业务处理前写入事件记录（processed=False），保证崩溃时也有审计记录
5. 不支持的事件类型标记为 ignored 并确认
6. 解析用户订阅资料，失败则记录错误并抛出
7. 应用订阅状态迁移并保存
8. 标记处理成功；第 6、7 步的任何失败都写入 processing_error 后重新抛出
"""

import hmac
import logging
import time
from typing import Any

from sqlmodel import Session

from walklog_billing import crud
from walklog_billing.api.errors import (
    AppError,
    AuthorizationError,
    ConfigurationError,
    EventValidationError,
    MappingError,
    TransitionError,
)
from walklog_billing.api.schemas import RevenueCatWebhookEvent, WebhookAck
from walklog_billing.core.config import settings
from walklog_billing.enums import WebhookEventType
from walklog_billing.models import BillingWebhookEvent, utc_now
from walklog_billing.services.transitions import apply_transition, iso_from_ms

logger = logging.getLogger(__name__)


def _to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_webhook_event(payload: Any) -> RevenueCatWebhookEvent:
    """
    解析 Webhook 请求体

    请求体可以是事件本身，也可以把事件包在 "event" 字段里。
    缺少 id 时用 "类型:app_user_id:event_timestamp_ms" 合成事件 ID，
    时间戳缺失时使用当前时间。

    Args:
        payload: 请求体 JSON

    Returns:
        规范化后的事件

    Raises:
        EventValidationError: 请求体不是对象，或缺少事件类型
    """
    if not isinstance(payload, dict):
        raise EventValidationError("Invalid webhook payload")

    event = payload.get("event")
    if not isinstance(event, dict):
        event = payload

    event_type = _to_str(event.get("type")).upper()
    if not event_type:
        raise EventValidationError("Missing event type")

    app_user_id = _to_str(event.get("app_user_id"))
    event_id = _to_str(event.get("id"))
    if not event_id:
        timestamp = event.get("event_timestamp_ms") or int(time.time() * 1000)
        event_id = f"{event_type}:{app_user_id}:{_to_str(timestamp)}"

    return RevenueCatWebhookEvent(
        event_id=event_id,
        event_type=event_type,
        app_user_id=app_user_id,
        event=event,
        payload=payload,
    )


class RevenueCatWebhookProcessor:
    """RevenueCat webhook 事件处理器"""

    def __init__(
        self,
        webhook_token: str | None,
        *,
        subscription_source: str = "revenuecat",
        retry_failed_events: bool = False,
    ):
        """
        初始化处理器

        Args:
            webhook_token: RevenueCat 后台配置的 Authorization token
            subscription_source: 写入用户资料的计费系统标识
            retry_failed_events: 为 True 时，之前处理失败的事件重投后会重新处理
        """
        self.webhook_token = (webhook_token or "").strip()
        self.subscription_source = subscription_source
        self.retry_failed_events = retry_failed_events

    def authenticate(self, authorization: str | None) -> None:
        """
        校验 Authorization 头部

        Raises:
            ConfigurationError: 未配置 webhook token
            AuthorizationError: token 不匹配
        """
        if not self.webhook_token:
            logger.error("RevenueCat webhook token is not configured")
            raise ConfigurationError()

        received = (authorization or "").strip().encode()
        expected = f"Bearer {self.webhook_token}".encode()
        if not hmac.compare_digest(received, expected):
            logger.warning("Rejected RevenueCat webhook with invalid token")
            raise AuthorizationError()

    def handle(
        self, *, session: Session, authorization: str | None, payload: Any
    ) -> WebhookAck:
        """
        处理一次 webhook 投递

        Returns:
            确认响应（duplicate / ignored / processed）

        Raises:
            AppError: 鉴权失败、请求体无效或处理失败
        """
        self.authenticate(authorization)
        event = parse_webhook_event(payload)

        record = self._record(session, event)
        if record is None:
            return WebhookAck(duplicate=True)

        if not WebhookEventType.is_supported(event.event_type):
            crud.mark_webhook_event_outcome(
                session=session,
                record=record,
                error=f"ignored:{event.event_type}",
                processed=True,
            )
            logger.info(f"Ignored RevenueCat event {event.event_id} ({event.event_type})")
            return WebhookAck(ignored=True)

        try:
            self._apply(session, record, event)
        except AppError as e:
            self._fail(session, record, e.message)
            raise
        except Exception as e:
            self._fail(session, record, str(e) or e.__class__.__name__)
            raise TransitionError(str(e) or "Failed to apply subscription transition") from e

        logger.info(f"Processed RevenueCat event {event.event_id} ({event.event_type})")
        return WebhookAck(processed=True, event_type=event.event_type)

    def _record(
        self, session: Session, event: RevenueCatWebhookEvent
    ) -> BillingWebhookEvent | None:
        """写入事件记录；重复事件返回 None"""
        existing = crud.get_webhook_event(session=session, event_id=event.event_id)
        if existing is None:
            record = crud.create_webhook_event(
                session=session,
                event_id=event.event_id,
                event_type=event.event_type,
                app_user_id=event.app_user_id,
                payload=event.payload,
            )
            if record is not None:
                return record
            # 并发投递抢先写入了同一个 event_id
            existing = crud.get_webhook_event(session=session, event_id=event.event_id)

        if existing is not None and self._can_retry(existing):
            logger.info(f"Retrying failed RevenueCat event {event.event_id}")
            return existing

        logger.info(f"Duplicate RevenueCat event {event.event_id} acknowledged")
        return None

    def _can_retry(self, record: BillingWebhookEvent) -> bool:
        return self.retry_failed_events and not record.processed and bool(record.processing_error)

    def _apply(
        self, session: Session, record: BillingWebhookEvent, event: RevenueCatWebhookEvent
    ) -> None:
        profile = crud.resolve_profile(
            session=session,
            app_user_id=event.app_user_id,
            source=self.subscription_source,
        )
        if profile is None:
            raise MappingError()

        apply_transition(
            profile,
            event.event_type,
            event.event,
            event.app_user_id,
            self.subscription_source,
        )
        profile.revenuecat_last_event = event.event_type
        profile.revenuecat_last_event_at = iso_from_ms(event.event.get("event_timestamp_ms"))
        profile.updated_at = utc_now()
        session.add(profile)

        record.user_id = profile.user_id
        crud.mark_webhook_event_outcome(session=session, record=record, error=None)

    def _fail(self, session: Session, record: BillingWebhookEvent, error: str) -> None:
        session.rollback()
        logger.error(f"Failed to process RevenueCat event {record.event_id}: {error}")
        crud.mark_webhook_event_outcome(session=session, record=record, error=error)


# 全局处理器实例
_webhook_processor: RevenueCatWebhookProcessor | None = None


def init_revenuecat_webhook_processor(
    webhook_token: str | None,
    *,
    subscription_source: str = "revenuecat",
    retry_failed_events: bool = False,
) -> RevenueCatWebhookProcessor:
    """用显式配置初始化全局处理器"""
    global _webhook_processor
    _webhook_processor = RevenueCatWebhookProcessor(
        webhook_token,
        subscription_source=subscription_source,
        retry_failed_events=retry_failed_events,
    )
    return _webhook_processor


def get_revenuecat_webhook_processor() -> RevenueCatWebhookProcessor:
    """
    获取全局处理器（FastAPI 依赖）

    第一次调用时从 settings 构建，之后复用同一个实例。
    """
    if _webhook_processor is None:
        return init_revenuecat_webhook_processor(
            settings.REVENUECAT_WEBHOOK_TOKEN,
            subscription_source=settings.BILLING_SUBSCRIPTION_SOURCE,
            retry_failed_events=settings.REVENUECAT_RETRY_FAILED_EVENTS,
        )
    return _webhook_processor
