"""Subscription billing constants."""

from __future__ import annotations

from datetime import time, timedelta, timezone
from enum import Enum


class WebhookEventStatus(str, Enum):
    """Payment statuses delivered by the provider webhook."""

    PAID = "Paid"
    CANCELLED = "Cancelled"


class SubscriptionState(str, Enum):
    """Subscription state derived from the latest ledger row."""

    NONE = "none"
    ACTIVE = "active"
    LAPSED = "lapsed"
    CANCELLED = "cancelled"


# Billing calendar is Korea Standard Time, which has no daylight saving
BILLING_TIMEZONE = timezone(timedelta(hours=9), name="KST")

SUBSCRIPTION_PERIOD = timedelta(days=30)
GRACE_DAY_OFFSET = timedelta(days=1)
GRACE_DEADLINE_TIME = time(23, 59, 59)
NEXT_CHARGE_HOUR = 10

# Half-width of the window searched when cancelling a scheduled charge
SCHEDULE_SEARCH_MARGIN = timedelta(hours=24)

DEFAULT_CANCEL_REASON = "Subscription cancelled by customer"
