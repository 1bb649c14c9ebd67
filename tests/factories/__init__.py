"""Test factories for the billing API models."""

from .base import AsyncSQLAlchemyModelFactory
from .payments import FIXED_NOW, PaymentFactory, build_payment_info

__all__ = [
    "FIXED_NOW",
    "AsyncSQLAlchemyModelFactory",
    "PaymentFactory",
    "build_payment_info",
]
