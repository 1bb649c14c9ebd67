"""Billing calendar arithmetic.

Both deadlines are anchored on the billing date: the calendar day, as seen
in the billing timezone, of ``end_at`` plus one day. Results are returned
as UTC instants.
"""

import random
from datetime import date, datetime, time, timezone

from src.modules.billing.constants import (
    BILLING_TIMEZONE,
    GRACE_DAY_OFFSET,
    GRACE_DEADLINE_TIME,
    NEXT_CHARGE_HOUR,
)


def _require_aware(value: datetime) -> None:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError("end_at must be timezone-aware")


def billing_date(end_at: datetime) -> date:
    """Calendar date of ``end_at + 1 day`` in the billing timezone."""
    _require_aware(end_at)
    return (end_at + GRACE_DAY_OFFSET).astimezone(BILLING_TIMEZONE).date()


def _at_local_time(day: date, local_time: time) -> datetime:
    local = datetime.combine(day, local_time, tzinfo=BILLING_TIMEZONE)
    return local.astimezone(timezone.utc)


def compute_grace_deadline(end_at: datetime) -> datetime:
    """Return 23:59:59 local time on the billing date."""
    return _at_local_time(billing_date(end_at), GRACE_DEADLINE_TIME)


def compute_next_charge_instant(
    end_at: datetime, rng: random.Random | None = None
) -> datetime:
    """Return a random instant between 10:00:00 and 10:59:59 local time on the billing date.

    Minute and second are drawn uniformly so renewals do not all hit the
    provider at the top of the hour.
    """
    rng = rng or random.Random()
    minute = rng.randint(0, 59)
    second = rng.randint(0, 59)
    return _at_local_time(
        billing_date(end_at), time(NEXT_CHARGE_HOUR, minute, second)
    )
