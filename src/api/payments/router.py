"""Client-initiated payment endpoints (billing-key charge and cancellation)."""

import secrets

from fastapi import APIRouter, Path, status

from src.api.core.dependencies import PaymentLedgerDep, PortOneClientDep
from src.api.core.exceptions.base import BillingAPIException
from src.api.core.messages import APIResponse, MessageCode
from src.api.payments.schemas import (
    BillingKeyPaymentRequest,
    BillingKeyPaymentResponse,
    CancelPaymentRequest,
    CancelPaymentResponse,
    LedgerEntryModel,
    SubscriptionStateModel,
)
from src.modules.billing.constants import DEFAULT_CANCEL_REASON, SubscriptionState
from src.modules.billing.exceptions import ProviderError
from src.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


def generate_payment_id() -> str:
    return f"payment-{secrets.token_hex(8)}"


@router.post("", response_model=BillingKeyPaymentResponse)
async def create_billing_key_payment(
    body: BillingKeyPaymentRequest,
    portone: PortOneClientDep,
) -> BillingKeyPaymentResponse:
    """Charge the first period with an issued billing key.

    PortOne reports the outcome back through the webhook, which records the
    ledger row and schedules the renewal.
    """
    payment_id = generate_payment_id()
    try:
        charge = await portone.charge_billing_key(
            payment_id=payment_id,
            billing_key=body.billing_key,
            order_name=body.order_name,
            customer_id=body.customer.id,
            amount=body.amount,
        )
    except ProviderError as e:
        # Provider decline reason is returned to the caller
        raise BillingAPIException(
            MessageCode.EXTERNAL_SERVICE_ERROR,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"error_type": e.error_type, "payment_id": payment_id},
            message=e.provider_message,
        ) from e
    logger.info("Billing key payment requested", payment_id=payment_id)
    return BillingKeyPaymentResponse(
        success=True,
        payment_id=payment_id,
        data=charge.model_dump(by_alias=True, mode="json"),
    )


@router.post("/cancel", response_model=CancelPaymentResponse)
async def cancel_payment(
    body: CancelPaymentRequest,
    portone: PortOneClientDep,
) -> CancelPaymentResponse:
    """Ask PortOne to cancel a payment; the Cancelled webhook does the bookkeeping."""
    await portone.cancel_payment(body.transaction_key, DEFAULT_CANCEL_REASON)
    logger.info("Payment cancellation requested", payment_id=body.transaction_key)
    return CancelPaymentResponse(success=True)


@router.get(
    "/{transaction_key}/subscription",
    response_model=APIResponse[SubscriptionStateModel],
)
async def get_subscription_state(
    ledger: PaymentLedgerDep,
    transaction_key: str = Path(min_length=1),
) -> APIResponse[SubscriptionStateModel]:
    """Current subscription state derived from the latest ledger row."""
    state, latest = await ledger.get_subscription_state(transaction_key)
    if state == SubscriptionState.NONE:
        raise BillingAPIException(
            MessageCode.SUBSCRIPTION_NOT_FOUND,
            status.HTTP_404_NOT_FOUND,
            details={"transaction_key": transaction_key},
        )

    payload = SubscriptionStateModel(
        transaction_key=transaction_key,
        state=state,
        net_amount=await ledger.net_amount(transaction_key),
        latest_entry=LedgerEntryModel.model_validate(latest),
    )
    return APIResponse.ok(data=payload)
