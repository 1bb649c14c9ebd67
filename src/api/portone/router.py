"""PortOne webhook endpoint."""

from fastapi import APIRouter, Request, Response, status
from pydantic import ValidationError as PydanticValidationError

from src.api.core.constants import (
    CLEANUP_PENDING,
    MAX_WEBHOOK_PAYLOAD_BYTES,
    RENEWAL_GAP,
    SCHEDULE_RECONCILIATION_HEADER,
)
from src.api.core.dependencies import BillingEventHandlerDep
from src.api.core.exceptions.base import BillingAPIException
from src.api.core.messages import MessageCode
from src.api.portone.schemas import PortOneWebhookRequest, PortOneWebhookResponse
from src.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/portone", tags=["portone"])


@router.post("", response_model=PortOneWebhookResponse)
async def portone_webhook(
    request: Request,
    response: Response,
    handler: BillingEventHandlerDep,
) -> PortOneWebhookResponse:
    """Record a PortOne payment event and reconcile the next scheduled charge."""
    payload = await request.body()

    if not payload:
        raise BillingAPIException(
            MessageCode.BAD_REQUEST,
            status.HTTP_400_BAD_REQUEST,
            details={"description": "Empty webhook payload"},
        )

    if len(payload) > MAX_WEBHOOK_PAYLOAD_BYTES:
        raise BillingAPIException(
            MessageCode.BAD_REQUEST,
            status.HTTP_413_CONTENT_TOO_LARGE,
            details={"description": "Webhook payload too large"},
        )

    try:
        event = PortOneWebhookRequest.model_validate_json(payload)
    except PydanticValidationError:
        raise BillingAPIException(
            MessageCode.INVALID_INPUT,
            status.HTTP_400_BAD_REQUEST,
            details={"description": "Invalid webhook data"},
        )

    result = await handler.handle(event.payment_id, event.status)

    if result.renewal_gap:
        response.headers[SCHEDULE_RECONCILIATION_HEADER] = RENEWAL_GAP
    elif result.cleanup_pending:
        response.headers[SCHEDULE_RECONCILIATION_HEADER] = CLEANUP_PENDING

    logger.info(
        f"Processed webhook event: {result.event.value}",
        payment_id=event.payment_id,
        outcome=result.outcome.value,
        warnings=len(result.warnings),
    )
    return PortOneWebhookResponse(success=True)
