"""Payment ledger model."""

from datetime import datetime
from enum import Enum

from sqlalchemy import BigInteger, CheckConstraint, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UTCDateTime


class PaymentStatus(str, Enum):
    PAID = "Paid"
    CANCEL = "Cancel"


class Payment(Base):
    """One immutable ledger row per billing event (charge or reversal)."""

    __tablename__ = "payment"
    __table_args__ = (
        Index("ix_payment_transaction_key_created_at", "transaction_key", "created_at"),
        CheckConstraint("status IN ('Paid', 'Cancel')", name="ck_payment_status"),
    )
    # Load created_at back after INSERT
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    transaction_key: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)
    start_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_grace_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    next_schedule_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    next_schedule_id: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, server_default=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<Payment {self.transaction_key} {self.status} amount={self.amount}>"
        )
