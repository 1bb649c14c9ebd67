"""Payment API schemas (combined requests/models)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.modules.billing.constants import SubscriptionState


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CustomerRef(CamelModel):
    id: str = Field(min_length=1)


class BillingKeyPaymentRequest(CamelModel):
    billing_key: str = Field(min_length=1)
    order_name: str = Field(min_length=1)
    amount: int = Field(gt=0)
    customer: CustomerRef


class BillingKeyPaymentResponse(CamelModel):
    success: bool
    payment_id: str
    data: dict


class CancelPaymentRequest(CamelModel):
    transaction_key: str = Field(min_length=1)


class CancelPaymentResponse(CamelModel):
    success: bool


class LedgerEntryModel(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    transaction_key: str
    amount: int
    status: str
    start_at: datetime
    end_at: datetime
    end_grace_at: datetime
    next_schedule_at: datetime | None
    next_schedule_id: str | None
    created_at: datetime


class SubscriptionStateModel(CamelModel):
    transaction_key: str
    state: SubscriptionState
    net_amount: int
    latest_entry: LedgerEntryModel
