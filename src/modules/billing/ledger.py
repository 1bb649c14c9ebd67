"""Append-only payment ledger."""

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from src.core.base import BaseService
from src.database.models import Payment, PaymentStatus
from src.modules.billing.constants import SubscriptionState
from src.modules.billing.exceptions import StorageError


class PaymentLedgerRepository(BaseService):
    """Insert and filtered-select primitives over the ``payment`` table.

    Rows are never updated or deleted. The current state of a transaction
    key is its latest row.
    """

    async def append(
        self,
        *,
        transaction_key: str,
        amount: int,
        status: PaymentStatus,
        start_at: datetime,
        end_at: datetime,
        end_grace_at: datetime,
        next_schedule_at: datetime | None,
        next_schedule_id: str | None,
    ) -> Payment:
        """Insert one ledger row and commit it."""
        entry = Payment(
            transaction_key=transaction_key,
            amount=amount,
            status=status.value,
            start_at=start_at,
            end_at=end_at,
            end_grace_at=end_grace_at,
            next_schedule_at=next_schedule_at,
            next_schedule_id=next_schedule_id,
        )
        try:
            self.db.add(entry)
            await self.db.commit()
        except (SQLAlchemyError, ValueError) as e:
            await self.db.rollback()
            self.logger.error(
                "Ledger append failed",
                transaction_key=transaction_key,
                status=status.value,
                error=str(e),
            )
            raise StorageError(
                f"Failed to append ledger entry for {transaction_key}",
                details={"transaction_key": transaction_key},
            ) from e

        self.logger.info(
            "Ledger entry appended",
            transaction_key=transaction_key,
            status=status.value,
            amount=amount,
            entry_id=entry.id,
        )
        return entry

    async def find_latest(self, transaction_key: str) -> Payment | None:
        """Most recent row for a transaction key, or None."""
        stmt = (
            select(Payment)
            .where(Payment.transaction_key == transaction_key)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .limit(1)
        )
        return await self._scalar(stmt)

    async def find_paid_in_period(
        self, transaction_key: str, at: datetime
    ) -> Payment | None:
        """Paid row for the key whose billing period contains ``at``."""
        stmt = (
            select(Payment)
            .where(
                Payment.transaction_key == transaction_key,
                Payment.status == PaymentStatus.PAID.value,
                Payment.start_at <= at,
                Payment.end_at > at,
            )
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .limit(1)
        )
        return await self._scalar(stmt)

    async def list_entries(self, transaction_key: str) -> list[Payment]:
        """All rows for a key, oldest first."""
        stmt = (
            select(Payment)
            .where(Payment.transaction_key == transaction_key)
            .order_by(Payment.created_at.asc(), Payment.id.asc())
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read ledger for {transaction_key}") from e
        return list(result.scalars().all())

    async def net_amount(self, transaction_key: str) -> int:
        stmt = select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.transaction_key == transaction_key
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read ledger for {transaction_key}") from e
        return int(result.scalar() or 0)

    async def get_subscription_state(
        self, transaction_key: str, now: datetime | None = None
    ) -> tuple[SubscriptionState, Payment | None]:
        """Derive the subscription state from the latest row.

        A Paid row keeps the subscription active until its grace deadline
        has passed.
        """
        now = now or datetime.now(timezone.utc)
        latest = await self.find_latest(transaction_key)
        if latest is None:
            return SubscriptionState.NONE, None
        if latest.status == PaymentStatus.CANCEL:
            return SubscriptionState.CANCELLED, latest
        if now > latest.end_grace_at:
            return SubscriptionState.LAPSED, latest
        return SubscriptionState.ACTIVE, latest

    async def _scalar(self, stmt) -> Payment | None:
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            self.logger.error("Ledger query failed", error=str(e))
            raise StorageError("Failed to query ledger") from e
        return result.scalar_one_or_none()
