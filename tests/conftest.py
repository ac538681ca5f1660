import os
import uuid
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Test settings; must be set before app.core.config.get_settings() is first called
os.environ.setdefault("MONGODB_DB_NAME", "cardhavi_test")
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-characters-long")
os.environ.setdefault("NOWPAYMENTS_API_KEY", "test-api-key")
os.environ.setdefault("NOWPAYMENTS_IPN_SECRET", "test-ipn-secret")
os.environ.setdefault("ADMIN_EMAILS", "admin@cardhavi.test")
os.environ.setdefault("PUBLIC_BASE_URL", "https://shop.cardhavi.test")
os.environ.setdefault("PUBLIC_API_URL", "https://api.cardhavi.test")

ADMIN_EMAIL = "admin@cardhavi.test"
ADMIN_PASSWORD = "admin-password"


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory MongoDB with all Beanie models registered."""
    from mongomock_motor import AsyncMongoMockClient

    from app.db.init import init_models

    mongo = AsyncMongoMockClient()
    database = mongo[f"cardhavi_test_{uuid.uuid4().hex}"]
    await init_models(database)
    yield database


@pytest_asyncio.fixture
async def client(db) -> AsyncGenerator[AsyncClient, None]:
    from app.main import app
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_client(client: AsyncClient) -> AsyncClient:
    r = await client.post(
        "/api/auth/signup",
        json={"name": "Admin", "email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
    )
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "admin"
    return client


class FakeGateway:
    """Records NOWPayments calls and answers through httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.response: dict = {"id": "inv_1", "invoice_url": "https://pay/inv_1"}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.response)

    def client(self, api_key: str = "test-api-key"):
        from app.services.nowpayments import NowPaymentsClient
        return NowPaymentsClient(
            api_key=api_key,
            base_url="https://api.nowpayments.test",
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def gateway():
    from app.deps import get_payment_gateway
    from app.main import app

    fake = FakeGateway()
    app.dependency_overrides[get_payment_gateway] = lambda: fake.client()
    yield fake
    app.dependency_overrides.pop(get_payment_gateway, None)


@pytest.fixture
def order_payload():
    return {
        "user": {"id": "user-1", "name": "Ash", "email": "ash@example.com"},
        "items": [{"name": "X", "price": 10, "quantity": 2}],
        "total": 20,
        "address": "1 Pallet Town",
    }
