from __future__ import annotations

from datetime import datetime, timezone

import pytest

from walklog_billing.api.errors import TransitionError
from walklog_billing.enums import SubscriptionTier
from walklog_billing.models import UserProfile
from walklog_billing.services.transitions import (
    apply_transition,
    has_premium_access,
    iso_from_ms,
)


def _profile(**kwargs) -> UserProfile:
    return UserProfile(user_id="u1", **kwargs)


@pytest.mark.parametrize(
    "value, expected",
    [
        (1700000000000, "2023-11-14T22:13:20.000Z"),
        ("1700000000123", "2023-11-14T22:13:20.123Z"),
        (1700000000123.9, "2023-11-14T22:13:20.123Z"),
        (1, "1970-01-01T00:00:00.001Z"),
        (0, ""),
        (-1000, ""),
        (None, ""),
        ("", ""),
        ("soon", ""),
        (True, ""),
        (float("nan"), ""),
        (float("inf"), ""),
        (10**20, ""),
    ],
)
def test_iso_from_ms(value, expected):
    assert iso_from_ms(value) == expected


@pytest.mark.parametrize("event_type", ["INITIAL_PURCHASE", "RENEWAL", "CANCELLATION"])
def test_paid_events_grant_premium(event_type):
    profile = _profile()
    apply_transition(profile, event_type, {"expiration_at_ms": 1700000000000}, "rc_1", "revenuecat")

    assert profile.subscription_tier == SubscriptionTier.premium
    assert profile.subscription_expires_at == "2023-11-14T22:13:20.000Z"
    assert profile.revenuecat_app_user_id == "rc_1"
    assert profile.subscription_source == "revenuecat"


def test_purchase_without_expiration_has_empty_expiry():
    profile = _profile()
    apply_transition(profile, "INITIAL_PURCHASE", {}, "u1", "revenuecat")
    assert profile.subscription_tier == SubscriptionTier.premium
    assert profile.subscription_expires_at == ""


def test_expiration_clears_premium():
    profile = _profile(
        subscription_tier=SubscriptionTier.premium,
        subscription_expires_at="2023-11-14T22:13:20.000Z",
    )
    apply_transition(profile, "EXPIRATION", {"expiration_at_ms": 1700000000000}, "u1", "store")

    assert profile.subscription_tier == SubscriptionTier.free
    assert profile.subscription_expires_at == ""
    assert profile.subscription_source == "store"


def test_unsupported_event_is_rejected_untouched():
    profile = _profile(subscription_source="old")
    with pytest.raises(TransitionError):
        apply_transition(profile, "PRODUCT_CHANGE", {}, "u1", "revenuecat")
    assert profile.subscription_source == "old"
    assert profile.subscription_tier == SubscriptionTier.free


def test_has_premium_access():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    assert has_premium_access(_profile(), now) is False
    assert has_premium_access(_profile(subscription_tier="premium"), now) is True
    assert has_premium_access(
        _profile(subscription_tier="premium", subscription_expires_at="2024-06-01T00:00:00.000Z"), now
    ) is True
    assert has_premium_access(
        _profile(subscription_tier="premium", subscription_expires_at="2023-11-14T22:13:20.000Z"), now
    ) is False
