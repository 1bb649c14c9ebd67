"""PortOne webhook schemas."""

from pydantic import BaseModel, ConfigDict


class PortOneWebhookRequest(BaseModel):
    """Webhook body. Fields stay optional so missing values reach the 400 path."""

    model_config = ConfigDict(extra="ignore")

    payment_id: str | None = None
    status: str | None = None


class PortOneWebhookResponse(BaseModel):
    success: bool
