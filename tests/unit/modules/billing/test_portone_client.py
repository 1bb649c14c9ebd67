"""PortOne client tests against a local aiohttp server."""

import asyncio
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp import test_utils

from src.modules.billing.exceptions import ProviderError, TransportError
from src.modules.billing.portone import PortOneClient


PAYMENT_BODY = {
    "status": "PAID",
    "id": "pay_1",
    "billingKey": "bk_1",
    "orderName": "IT Magazine monthly subscription",
    "amount": {"total": 9900, "taxFree": 0, "paid": 9900, "cancelled": 0},
    "currency": "KRW",
    "customer": {"id": "customer-1", "name": "Hong Gildong"},
    "channel": {"type": "TEST"},
}


class FakePortOne:
    """Records incoming requests and replays canned responses."""

    def __init__(self):
        self.requests: list[dict] = []
        self.responses: dict[tuple[str, str], web.Response] = {}
        self.delay = 0.0

    def respond(self, method: str, path: str, status: int = 200, body=None, text=None):
        if text is not None:
            self.responses[(method, path)] = web.Response(status=status, text=text)
        else:
            self.responses[(method, path)] = web.json_response(body or {}, status=status)

    async def handle(self, request: web.Request) -> web.Response:
        raw = await request.read()
        self.requests.append(
            {
                "method": request.method,
                "path": request.path,
                "raw_path": request.raw_path,
                "authorization": request.headers.get("Authorization"),
                "json": await request.json() if raw else None,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.responses.get(
            (request.method, request.path),
            web.json_response({"type": "NOT_FOUND", "message": "no route"}, status=404),
        )


@pytest_asyncio.fixture
async def fake_portone():
    fake = FakePortOne()
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", fake.handle)
    server = test_utils.TestServer(app)
    await server.start_server()
    fake.base_url = str(server.make_url(""))
    yield fake
    await server.close()


@pytest.fixture
def client(fake_portone) -> PortOneClient:
    return PortOneClient(
        api_secret="secret-123",
        base_url=fake_portone.base_url + "/",
        timeout=2.0,
        currency="KRW",
    )


class TestPortOneClient:
    @pytest.mark.asyncio
    async def test_get_payment(self, client, fake_portone):
        fake_portone.respond("GET", "/payments/pay_1", body=PAYMENT_BODY)

        info = await client.get_payment("pay_1")

        assert info.id == "pay_1"
        assert info.billing_key == "bk_1"
        assert info.amount.total == 9900
        assert info.customer.id == "customer-1"
        request = fake_portone.requests[0]
        assert request["method"] == "GET"
        assert request["authorization"] == "PortOne secret-123"

    @pytest.mark.asyncio
    async def test_payment_id_is_path_escaped(self, client, fake_portone):
        with pytest.raises(ProviderError):
            await client.get_payment("pay/1")

        assert fake_portone.requests[0]["raw_path"] == "/payments/pay%2F1"

    @pytest.mark.asyncio
    async def test_create_scheduled_charge_body(self, client, fake_portone):
        fake_portone.respond(
            "POST",
            "/payments/schedule-1/schedule",
            body={"schedule": {"id": "provider-schedule-1"}},
        )
        charge_at = datetime(2026, 4, 2, 1, 23, 45, tzinfo=timezone.utc)

        await client.create_scheduled_charge(
            schedule_id="schedule-1",
            billing_key="bk_1",
            order_name="IT Magazine monthly subscription",
            customer_id="customer-1",
            amount=9900,
            charge_at=charge_at,
        )

        body = fake_portone.requests[0]["json"]
        assert body == {
            "payment": {
                "billingKey": "bk_1",
                "orderName": "IT Magazine monthly subscription",
                "amount": {"total": 9900},
                "currency": "KRW",
                "customer": {"id": "customer-1"},
            },
            "timeToPay": "2026-04-02T01:23:45+00:00",
        }

    @pytest.mark.asyncio
    async def test_create_scheduled_charge_without_customer(
        self, client, fake_portone
    ):
        fake_portone.respond("POST", "/payments/schedule-1/schedule", body={})

        await client.create_scheduled_charge(
            schedule_id="schedule-1",
            billing_key="bk_1",
            order_name="IT Magazine monthly subscription",
            customer_id=None,
            amount=9900,
            charge_at=datetime(2026, 4, 2, 1, 0, 0, tzinfo=timezone.utc),
        )

        assert "customer" not in fake_portone.requests[0]["json"]["payment"]

    @pytest.mark.asyncio
    async def test_list_scheduled(self, client, fake_portone):
        fake_portone.respond(
            "GET",
            "/payment-schedules",
            body={
                "items": [
                    {
                        "id": "provider-schedule-1",
                        "paymentId": "schedule-1",
                        "status": "SCHEDULED",
                        "timeToPay": "2026-04-02T01:23:45Z",
                    }
                ]
            },
        )

        items = await client.list_scheduled(
            "bk_1",
            datetime(2026, 4, 1, 1, 23, 45, tzinfo=timezone.utc),
            datetime(2026, 4, 3, 1, 23, 45, tzinfo=timezone.utc),
        )

        assert [(item.id, item.payment_id) for item in items] == [
            ("provider-schedule-1", "schedule-1")
        ]
        assert fake_portone.requests[0]["json"] == {
            "filter": {
                "billingKey": "bk_1",
                "from": "2026-04-01T01:23:45+00:00",
                "until": "2026-04-03T01:23:45+00:00",
            }
        }

    @pytest.mark.asyncio
    async def test_cancel_scheduled(self, client, fake_portone):
        fake_portone.respond(
            "DELETE",
            "/payment-schedules",
            body={"revokedScheduleIds": ["provider-schedule-1"]},
        )

        revoked = await client.cancel_scheduled(["provider-schedule-1"])

        assert revoked == ["provider-schedule-1"]
        assert fake_portone.requests[0]["json"] == {
            "scheduleIds": ["provider-schedule-1"]
        }

    @pytest.mark.asyncio
    async def test_charge_billing_key(self, client, fake_portone):
        fake_portone.respond(
            "POST",
            "/payments/payment-1/billing-key",
            body={
                "payment": {"pgTxId": "pg-1", "paidAt": "2026-03-02T03:15:00Z"}
            },
        )

        result = await client.charge_billing_key(
            payment_id="payment-1",
            billing_key="bk_1",
            order_name="IT Magazine monthly subscription",
            customer_id="customer-1",
            amount=9900,
        )

        assert result.pg_tx_id == "pg-1"
        assert result.paid_at == datetime(2026, 3, 2, 3, 15, tzinfo=timezone.utc)
        assert fake_portone.requests[0]["json"] == {
            "billingKey": "bk_1",
            "orderName": "IT Magazine monthly subscription",
            "customer": {"id": "customer-1"},
            "amount": {"total": 9900},
            "currency": "KRW",
        }

    @pytest.mark.asyncio
    async def test_cancel_payment(self, client, fake_portone):
        fake_portone.respond("POST", "/payments/pay_1/cancel", body={"cancellation": {}})

        await client.cancel_payment("pay_1", "Subscription cancelled by customer")

        assert fake_portone.requests[0]["json"] == {
            "reason": "Subscription cancelled by customer"
        }


class TestPortOneClientErrors:
    @pytest.mark.asyncio
    async def test_error_response_raises_provider_error(self, client, fake_portone):
        fake_portone.respond(
            "GET",
            "/payments/pay_1",
            status=404,
            body={"type": "PAYMENT_NOT_FOUND", "message": "Payment not found"},
        )

        with pytest.raises(ProviderError) as exc_info:
            await client.get_payment("pay_1")

        assert exc_info.value.status_code == 404
        assert exc_info.value.error_type == "PAYMENT_NOT_FOUND"
        assert exc_info.value.provider_message == "Payment not found"
        assert "Payment not found" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_non_json_error_body(self, client, fake_portone):
        fake_portone.respond("GET", "/payments/pay_1", status=502, text="Bad Gateway")

        with pytest.raises(ProviderError) as exc_info:
            await client.get_payment("pay_1")

        assert exc_info.value.status_code == 502
        assert "Bad Gateway" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_malformed_payment_payload(self, client, fake_portone):
        fake_portone.respond("GET", "/payments/pay_1", body={"id": "pay_1"})

        with pytest.raises(ProviderError):
            await client.get_payment("pay_1")

    @pytest.mark.asyncio
    async def test_timeout_raises_transport_error(self, fake_portone):
        fake_portone.respond("GET", "/payments/pay_1", body=PAYMENT_BODY)
        fake_portone.delay = 1.0
        client = PortOneClient(
            api_secret="secret-123", base_url=fake_portone.base_url, timeout=0.1
        )

        with pytest.raises(TransportError):
            await client.get_payment("pay_1")

    @pytest.mark.asyncio
    async def test_unreachable_host_raises_transport_error(self):
        client = PortOneClient(
            api_secret="secret-123", base_url="http://127.0.0.1:1", timeout=1.0
        )

        with pytest.raises(TransportError):
            await client.get_payment("pay_1")
