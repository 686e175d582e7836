from __future__ import annotations

import pytest

from walklog_billing.api.errors import (
    AuthorizationError,
    ConfigurationError,
    EventValidationError,
)
from walklog_billing.services import revenuecat_service
from walklog_billing.services.revenuecat_service import (
    RevenueCatWebhookProcessor,
    parse_webhook_event,
)


def test_parse_flat_payload():
    payload = {"type": "initial_purchase", "app_user_id": " u1 ", "id": "evt1"}
    event = parse_webhook_event(payload)

    assert event.event_id == "evt1"
    assert event.event_type == "INITIAL_PURCHASE"
    assert event.app_user_id == "u1"
    assert event.event == payload
    assert event.payload == payload


def test_parse_wrapped_payload():
    payload = {"api_version": "1.0", "event": {"type": "RENEWAL", "app_user_id": "u2", "id": "evt2"}}
    event = parse_webhook_event(payload)

    assert event.event_id == "evt2"
    assert event.event == payload["event"]
    assert event.payload == payload


def test_parse_synthesizes_event_id():
    event = parse_webhook_event(
        {"type": "EXPIRATION", "app_user_id": "u3", "event_timestamp_ms": 1700000000000.0}
    )
    assert event.event_id == "EXPIRATION:u3:1700000000000"


def test_parse_synthesized_event_id_falls_back_to_now(monkeypatch):
    monkeypatch.setattr(revenuecat_service.time, "time", lambda: 1700000000.5)
    event = parse_webhook_event({"type": "RENEWAL", "app_user_id": 42, "event_timestamp_ms": 0})
    assert event.event_id == "RENEWAL:42:1700000000500"


@pytest.mark.parametrize("payload", [{}, {"event": {"app_user_id": "u1"}}, {"type": "  "}, [], "x", None])
def test_parse_rejects_malformed(payload):
    with pytest.raises(EventValidationError):
        parse_webhook_event(payload)


def test_authenticate():
    processor = RevenueCatWebhookProcessor("  s3cret ")
    processor.authenticate("Bearer s3cret")
    processor.authenticate("  Bearer s3cret  ")

    for header in (None, "", "s3cret", "Bearer other", "bearer s3cret", "Bearer s3cret2"):
        with pytest.raises(AuthorizationError):
            processor.authenticate(header)


@pytest.mark.parametrize("token", [None, "", "   "])
def test_authenticate_requires_configured_token(token):
    with pytest.raises(ConfigurationError) as exc_info:
        RevenueCatWebhookProcessor(token).authenticate("Bearer anything")
    assert exc_info.value.status_code == 500


def test_global_processor_is_built_from_settings(monkeypatch):
    monkeypatch.setattr(revenuecat_service, "_webhook_processor", None)
    monkeypatch.setattr(revenuecat_service.settings, "REVENUECAT_WEBHOOK_TOKEN", "from-env")
    monkeypatch.setattr(revenuecat_service.settings, "REVENUECAT_RETRY_FAILED_EVENTS", True)

    processor = revenuecat_service.get_revenuecat_webhook_processor()
    assert processor.webhook_token == "from-env"
    assert processor.retry_failed_events is True
    assert processor.subscription_source == "revenuecat"
    assert revenuecat_service.get_revenuecat_webhook_processor() is processor
