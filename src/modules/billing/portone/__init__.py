"""PortOne payment provider client."""

from .client import PortOneClient, get_portone_client
from .schemas import BillingKeyChargeResult, PaymentInfo, ScheduleItem

__all__ = [
    "PortOneClient",
    "get_portone_client",
    "PaymentInfo",
    "ScheduleItem",
    "BillingKeyChargeResult",
]
