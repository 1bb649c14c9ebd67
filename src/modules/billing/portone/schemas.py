"""PortOne v2 payload models (only the fields the billing flow reads)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class PortOneModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class PaymentAmount(PortOneModel):
    total: int
    tax_free: int = 0
    vat: int | None = None
    supply: int | None = None
    discount: int = 0
    paid: int = 0
    cancelled: int = 0
    cancelled_tax_free: int = 0


class PaymentCustomer(PortOneModel):
    id: str | None = None
    name: str | None = None
    email: str | None = None
    phone_number: str | None = None


class PaymentInfo(PortOneModel):
    id: str
    status: str
    billing_key: str | None = None
    order_name: str
    amount: PaymentAmount
    currency: str
    customer: PaymentCustomer = PaymentCustomer()


class ScheduleItem(PortOneModel):
    id: str
    payment_id: str
    status: str | None = None
    billing_key: str | None = None
    time_to_pay: datetime | None = None


class BillingKeyChargeResult(PortOneModel):
    pg_tx_id: str | None = None
    paid_at: datetime | None = None
