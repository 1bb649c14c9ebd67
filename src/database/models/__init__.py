"""Database models for the subscription billing API."""

from .base import Base, UTCDateTime
from .payments import Payment, PaymentStatus

__all__ = [
    # Base
    "Base",
    "UTCDateTime",
    # Enums
    "PaymentStatus",
    # Models
    "Payment",
]
