"""计费 webhook 事件 CRUD 操作"""
import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from walklog_billing.models import BillingWebhookEvent, utc_now

logger = logging.getLogger(__name__)


def get_by_event_id(*, session: Session, event_id: str) -> BillingWebhookEvent | None:
    """根据外部事件 ID 查询事件记录，不存在返回 None"""
    if not event_id:
        return None
    statement = select(BillingWebhookEvent).where(BillingWebhookEvent.event_id == event_id)
    return session.exec(statement).first()


def create(
    *,
    session: Session,
    event_id: str,
    event_type: str,
    app_user_id: str,
    payload: dict[str, Any],
) -> BillingWebhookEvent | None:
    """
    写入一条未处理的事件记录并提交

    event_id 已存在时数据库唯一约束会拒绝插入，此时回滚并返回 None，
    调用方据此判定为重复事件。
    """
    record = BillingWebhookEvent(
        event_id=event_id,
        event_type=event_type,
        app_user_id=app_user_id,
        payload=payload,
        processed=False,
    )
    session.add(record)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.info(f"Webhook event {event_id} already recorded")
        return None
    session.refresh(record)
    return record


def mark_outcome(
    *,
    session: Session,
    record: BillingWebhookEvent,
    error: str | None,
    processed: bool | None = None,
) -> BillingWebhookEvent:
    """
    记录处理结果

    processed 未指定时按 error 推断：无错误为已处理，否则为失败。
    被忽略的事件显式传 processed=True，同时把 "ignored:<类型>" 写入 processing_error。
    """
    record.processed = (not error) if processed is None else processed
    record.processed_at = utc_now()
    record.processing_error = error or ""
    session.add(record)
    session.commit()
    session.refresh(record)
    return record
