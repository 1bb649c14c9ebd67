"""Client for the PortOne v2 REST API."""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

import aiohttp
from pydantic import BaseModel, ValidationError as PydanticValidationError

from src.modules.billing.exceptions import ProviderError, TransportError
from src.modules.billing.portone.schemas import (
    BillingKeyChargeResult,
    PaymentInfo,
    ScheduleItem,
)
from src.utils.logger import get_logger
from src.utils.settings.portone import portone_settings


logger = get_logger(__name__)


def _isoformat(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


class PortOneClient:
    """Typed calls to the PortOne payment API.

    Non-success responses raise ``ProviderError``; timeouts and connection
    failures raise ``TransportError``.
    """

    def __init__(
        self,
        api_secret: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        currency: str | None = None,
    ):
        self.api_secret = (
            api_secret or portone_settings.PORTONE_API_SECRET.get_secret_value()
        )
        self.base_url = (base_url or portone_settings.PORTONE_API_BASE_URL).rstrip(
            "/"
        )
        self.timeout = timeout or portone_settings.PORTONE_TIMEOUT_SECONDS
        self.currency = currency or portone_settings.PORTONE_CURRENCY

    async def _request(
        self, method: str, path: str, payload: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = {
            "Authorization": f"PortOne {self.api_secret}",
            "Content-Type": "application/json",
        }
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as session:
                async with session.request(
                    method, url, json=payload, headers=headers
                ) as response:
                    body = self._decode(await response.text())
                    if response.status >= 400:
                        message = body.get("message") or response.reason or "error"
                        logger.warning(
                            "PortOne request rejected",
                            method=method,
                            path=path,
                            status_code=response.status,
                            error_type=body.get("type"),
                        )
                        raise ProviderError(
                            f"PortOne {method} {path} failed: {message}",
                            status_code=response.status,
                            error_type=body.get("type"),
                            provider_message=body.get("message"),
                        )
                    return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(
                "PortOne request failed", method=method, path=path, error=repr(e)
            )
            raise TransportError(f"PortOne unreachable: {e!r}") from e

    @staticmethod
    def _decode(text: str) -> dict[str, Any]:
        if not text:
            return {}
        try:
            data = json.loads(text)
        except ValueError:
            return {"message": text}
        return data if isinstance(data, dict) else {"data": data}

    @staticmethod
    def _parse(model: type[BaseModel], data: Any) -> Any:
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise ProviderError(
                f"Unexpected PortOne payload for {model.__name__}: "
                f"{e.error_count()} invalid fields"
            ) from e

    async def get_payment(self, payment_id: str) -> PaymentInfo:
        data = await self._request("GET", f"/payments/{quote(payment_id, safe='')}")
        return self._parse(PaymentInfo, data)

    async def create_scheduled_charge(
        self,
        schedule_id: str,
        billing_key: str,
        order_name: str,
        customer_id: str | None,
        amount: int,
        charge_at: datetime,
    ) -> dict[str, Any]:
        """Schedule a future billing-key charge under ``schedule_id``."""
        payment: dict[str, Any] = {
            "billingKey": billing_key,
            "orderName": order_name,
            "amount": {"total": amount},
            "currency": self.currency,
        }
        if customer_id:
            payment["customer"] = {"id": customer_id}

        return await self._request(
            "POST",
            f"/payments/{quote(schedule_id, safe='')}/schedule",
            {"payment": payment, "timeToPay": _isoformat(charge_at)},
        )

    async def list_scheduled(
        self, billing_key: str, from_at: datetime, until_at: datetime
    ) -> list[ScheduleItem]:
        """Scheduled or charged items for a billing key in ``[from_at, until_at]``."""
        data = await self._request(
            "GET",
            "/payment-schedules",
            {
                "filter": {
                    "billingKey": billing_key,
                    "from": _isoformat(from_at),
                    "until": _isoformat(until_at),
                }
            },
        )
        return [self._parse(ScheduleItem, item) for item in data.get("items", [])]

    async def cancel_scheduled(self, schedule_ids: list[str]) -> list[str]:
        """Revoke provider-side schedules, returning the revoked ids."""
        data = await self._request(
            "DELETE", "/payment-schedules", {"scheduleIds": schedule_ids}
        )
        return list(data.get("revokedScheduleIds", schedule_ids))

    async def charge_billing_key(
        self,
        payment_id: str,
        billing_key: str,
        order_name: str,
        customer_id: str,
        amount: int,
    ) -> BillingKeyChargeResult:
        data = await self._request(
            "POST",
            f"/payments/{quote(payment_id, safe='')}/billing-key",
            {
                "billingKey": billing_key,
                "orderName": order_name,
                "customer": {"id": customer_id},
                "amount": {"total": amount},
                "currency": self.currency,
            },
        )
        return self._parse(BillingKeyChargeResult, data.get("payment", {}))

    async def cancel_payment(self, payment_id: str, reason: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/payments/{quote(payment_id, safe='')}/cancel",
            {"reason": reason},
        )


async def get_portone_client() -> PortOneClient:
    """Get PortOne client for dependency injection."""
    return PortOneClient()
