"""Subscription billing orchestration for provider webhook events."""

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable
from uuid import uuid4

from src.database.models import Payment, PaymentStatus
from src.modules.billing.constants import (
    SCHEDULE_SEARCH_MARGIN,
    SUBSCRIPTION_PERIOD,
    WebhookEventStatus,
)
from src.modules.billing.exceptions import NotFoundError, UpstreamError, ValidationError
from src.modules.billing.ledger import PaymentLedgerRepository
from src.modules.billing.portone import PortOneClient
from src.modules.billing.time_windows import (
    compute_grace_deadline,
    compute_next_charge_instant,
)
from src.utils.logger import get_logger


class EventOutcome(str, Enum):
    RECORDED = "recorded"
    DUPLICATE = "duplicate"


class ReconciliationStage(str, Enum):
    CREATE_SCHEDULE = "create_schedule"
    LOOKUP_PAYMENT = "lookup_payment"
    LIST_SCHEDULES = "list_schedules"
    CANCEL_SCHEDULE = "cancel_schedule"


@dataclass(frozen=True)
class ScheduleReconciliationWarning:
    """Provider schedule step that failed after the ledger write committed."""

    stage: ReconciliationStage
    payment_id: str
    schedule_id: str | None
    reason: str
    renewal_gap: bool = False


@dataclass
class BillingEventResult:
    """Outcome of one webhook event.

    The ledger effect is final once a result exists. ``warnings`` lists the
    provider-side schedule work that still needs out-of-band attention.
    """

    event: WebhookEventStatus
    outcome: EventOutcome
    entry: Payment | None = None
    scheduled_charge_at: datetime | None = None
    cancelled_schedule_ids: list[str] = field(default_factory=list)
    warnings: list[ScheduleReconciliationWarning] = field(default_factory=list)

    @property
    def renewal_gap(self) -> bool:
        """True when the ledger expects a renewal the provider will not charge."""
        return any(warning.renewal_gap for warning in self.warnings)

    @property
    def cleanup_pending(self) -> bool:
        return self.event == WebhookEventStatus.CANCELLED and bool(self.warnings)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_schedule_id() -> str:
    return str(uuid4())


class BillingEventHandler:
    """Drives the Paid and Cancelled workflows against the ledger and PortOne.

    Failures before the ledger write abort the event with nothing written.
    After the write, provider schedule failures never undo the ledger row;
    they come back as ``ScheduleReconciliationWarning`` entries.
    """

    def __init__(
        self,
        ledger: PaymentLedgerRepository,
        provider: PortOneClient,
        clock: Callable[[], datetime] = _utcnow,
        rng: random.Random | None = None,
        schedule_id_factory: Callable[[], str] = _new_schedule_id,
    ):
        self.ledger = ledger
        self.provider = provider
        self.clock = clock
        self.rng = rng or random.Random()
        self.schedule_id_factory = schedule_id_factory
        self.logger = get_logger(self.__class__.__name__)

    @staticmethod
    def validate(payment_id: object, status: object) -> WebhookEventStatus:
        if not isinstance(payment_id, str) or not payment_id.strip():
            raise ValidationError("payment_id is required")
        if not status:
            raise ValidationError("status is required")
        try:
            return WebhookEventStatus(status)
        except ValueError:
            raise ValidationError(
                f"Unknown payment status: {status}", details={"status": status}
            ) from None

    async def handle(self, payment_id: object, status: object) -> BillingEventResult:
        event = self.validate(payment_id, status)
        validated_id = str(payment_id)
        if event == WebhookEventStatus.PAID:
            return await self.handle_paid(validated_id)
        return await self.handle_cancelled(validated_id)

    async def handle_paid(self, payment_id: str) -> BillingEventResult:
        now = self.clock()

        try:
            info = await self.provider.get_payment(payment_id)
        except UpstreamError as e:
            self.logger.error(
                "Payment lookup failed, nothing recorded",
                payment_id=payment_id,
                error=e.message,
            )
            raise

        existing = await self.ledger.find_paid_in_period(info.id, now)
        if existing is not None:
            self.logger.info(
                "Duplicate Paid event ignored",
                payment_id=info.id,
                entry_id=existing.id,
            )
            return BillingEventResult(
                event=WebhookEventStatus.PAID,
                outcome=EventOutcome.DUPLICATE,
                entry=existing,
            )

        end_at = now + SUBSCRIPTION_PERIOD
        next_schedule_at = compute_next_charge_instant(end_at, self.rng)
        next_schedule_id = self.schedule_id_factory()

        entry = await self.ledger.append(
            transaction_key=info.id,
            amount=info.amount.total,
            status=PaymentStatus.PAID,
            start_at=now,
            end_at=end_at,
            end_grace_at=compute_grace_deadline(end_at),
            next_schedule_at=next_schedule_at,
            next_schedule_id=next_schedule_id,
        )
        result = BillingEventResult(
            event=WebhookEventStatus.PAID,
            outcome=EventOutcome.RECORDED,
            entry=entry,
        )

        if not info.billing_key:
            self.logger.info(
                "Payment has no billing key, next charge not scheduled",
                payment_id=info.id,
            )
            return result

        try:
            await self.provider.create_scheduled_charge(
                schedule_id=next_schedule_id,
                billing_key=info.billing_key,
                order_name=info.order_name,
                customer_id=info.customer.id,
                amount=info.amount.total,
                charge_at=next_schedule_at,
            )
        except Exception as e:
            result.warnings.append(
                ScheduleReconciliationWarning(
                    stage=ReconciliationStage.CREATE_SCHEDULE,
                    payment_id=info.id,
                    schedule_id=next_schedule_id,
                    reason=str(e),
                    renewal_gap=True,
                )
            )
            self.logger.error(
                "Next charge scheduling failed, subscription will not renew",
                alert="renewal_gap",
                payment_id=info.id,
                schedule_id=next_schedule_id,
                next_schedule_at=next_schedule_at.isoformat(),
                error=str(e),
            )
            return result

        result.scheduled_charge_at = next_schedule_at
        self.logger.info(
            "Next charge scheduled",
            payment_id=info.id,
            schedule_id=next_schedule_id,
            next_schedule_at=next_schedule_at.isoformat(),
        )
        return result

    async def handle_cancelled(self, payment_id: str) -> BillingEventResult:
        found = await self.ledger.find_latest(payment_id)
        if found is None:
            raise NotFoundError(
                f"No ledger entry for payment {payment_id}",
                details={"payment_id": payment_id},
            )

        if found.status == PaymentStatus.CANCEL:
            self.logger.info(
                "Duplicate Cancelled event ignored",
                payment_id=payment_id,
                entry_id=found.id,
            )
            return BillingEventResult(
                event=WebhookEventStatus.CANCELLED,
                outcome=EventOutcome.DUPLICATE,
                entry=found,
            )

        # Pure reversal of the Paid row, no recomputation
        entry = await self.ledger.append(
            transaction_key=found.transaction_key,
            amount=-found.amount,
            status=PaymentStatus.CANCEL,
            start_at=found.start_at,
            end_at=found.end_at,
            end_grace_at=found.end_grace_at,
            next_schedule_at=found.next_schedule_at,
            next_schedule_id=found.next_schedule_id,
        )
        result = BillingEventResult(
            event=WebhookEventStatus.CANCELLED,
            outcome=EventOutcome.RECORDED,
            entry=entry,
        )

        try:
            info = await self.provider.get_payment(payment_id)
        except Exception as e:
            self._warn(result, ReconciliationStage.LOOKUP_PAYMENT, found, e)
            return result

        if info.billing_key and found.next_schedule_at is not None:
            await self._revoke_next_charge(found, info.billing_key, result)
        return result

    async def _revoke_next_charge(
        self, found: Payment, billing_key: str, result: BillingEventResult
    ) -> None:
        window_from = found.next_schedule_at - SCHEDULE_SEARCH_MARGIN
        window_until = found.next_schedule_at + SCHEDULE_SEARCH_MARGIN

        try:
            items = await self.provider.list_scheduled(
                billing_key, window_from, window_until
            )
        except Exception as e:
            self._warn(result, ReconciliationStage.LIST_SCHEDULES, found, e)
            return

        match = next(
            (item for item in items if item.payment_id == found.next_schedule_id),
            None,
        )
        if match is None:
            self.logger.info(
                "No provider schedule matched the ledger",
                payment_id=found.transaction_key,
                schedule_id=found.next_schedule_id,
                candidates=len(items),
            )
            return

        try:
            revoked = await self.provider.cancel_scheduled([match.id])
        except Exception as e:
            self._warn(result, ReconciliationStage.CANCEL_SCHEDULE, found, e)
            return

        result.cancelled_schedule_ids.extend(revoked)
        self.logger.info(
            "Scheduled charge cancelled",
            payment_id=found.transaction_key,
            schedule_id=found.next_schedule_id,
            provider_schedule_id=match.id,
        )

    def _warn(
        self,
        result: BillingEventResult,
        stage: ReconciliationStage,
        found: Payment,
        error: Exception,
    ) -> None:
        result.warnings.append(
            ScheduleReconciliationWarning(
                stage=stage,
                payment_id=found.transaction_key,
                schedule_id=found.next_schedule_id,
                reason=str(error),
            )
        )
        self.logger.warning(
            "Schedule cleanup failed, provider schedule may still charge",
            stage=stage.value,
            payment_id=found.transaction_key,
            schedule_id=found.next_schedule_id,
            error=str(error),
        )
