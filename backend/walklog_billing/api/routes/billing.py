from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Header

from walklog_billing import crud
from walklog_billing.api.deps import (
    SessionDep,
    WebhookAuthDep,
    WebhookBodyDep,
)
from walklog_billing.api.errors import AppError
from walklog_billing.api.schemas import (
    ApiEnvelope,
    SubscriptionStatusData,
    WebhookAck,
    WebhookEventPublic,
)
from walklog_billing.enums import BillingProvider
from walklog_billing.services.transitions import has_premium_access

router = APIRouter(prefix="/billing", tags=["billing"])


def _check_provider(provider: str) -> None:
    if provider not in BillingProvider._value2member_map_:
        raise AppError(code=404101, message="Unknown billing provider", status_code=404)


@router.post(
    "/{provider}/webhook",
    response_model=WebhookAck,
    response_model_exclude_none=True,
)
def webhook(
    provider: str,
    session: SessionDep,
    # token 校验先于读取请求体
    processor: WebhookAuthDep,
    payload: WebhookBodyDep,
    authorization: Annotated[str | None, Header()] = None,
) -> WebhookAck:
    _check_provider(provider)
    return processor.handle(session=session, authorization=authorization, payload=payload)


@router.get("/{provider}/events/{event_id}", response_model=ApiEnvelope)
def webhook_event(
    provider: str, event_id: str, session: SessionDep, _: WebhookAuthDep
) -> ApiEnvelope:
    _check_provider(provider)
    record = crud.get_webhook_event(session=session, event_id=event_id)
    if not record:
        raise AppError(code=404102, message="Webhook event not found", status_code=404)
    return ApiEnvelope(data=WebhookEventPublic.model_validate(record, from_attributes=True))


@router.get("/profiles/{user_id}", response_model=ApiEnvelope)
def subscription_status(user_id: str, session: SessionDep, _: WebhookAuthDep) -> ApiEnvelope:
    profile = crud.get_profile_by_user_id(session=session, user_id=user_id)
    if not profile:
        raise AppError(code=404103, message="Subscription profile not found", status_code=404)
    return ApiEnvelope(
        data=SubscriptionStatusData(
            user_id=profile.user_id,
            subscription_tier=profile.subscription_tier,
            subscription_expires_at=profile.subscription_expires_at,
            subscription_source=profile.subscription_source,
            is_premium=has_premium_access(profile, datetime.now(timezone.utc)),
            last_event=profile.revenuecat_last_event,
            last_event_at=profile.revenuecat_last_event_at,
        )
    )
