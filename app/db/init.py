import asyncio
from typing import Awaitable, Callable

import certifi
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.core.config import get_settings
from app.core.logging import get_logger
from app.models.audit_log import AuditLog
from app.models.card import Card
from app.models.order import Order
from app.models.user import User

log = get_logger(__name__)

DOCUMENT_MODELS = [
    User,
    Card,
    Order,
    AuditLog,
]


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true). Avoids TLS for plain mongodb:// in CI."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


def backoff_delay(attempt: int, max_delay: float = 30.0) -> float:
    """Seconds to wait after the given failed attempt (1-based): 2, 4, 8, ... capped."""
    return float(min(2 ** attempt, max_delay))


def create_client(uri: str) -> AsyncIOMotorClient:
    kwargs = {
        "serverSelectionTimeoutMS": 5000,
        "socketTimeoutMS": 45000,
    }
    # Atlas in Docker: tlsCAFile + tlsDisableOCSPEndpointCheck avoid TLSV1_ALERT_INTERNAL_ERROR
    if _use_tls(uri):
        kwargs["tlsCAFile"] = certifi.where()
        kwargs["tlsDisableOCSPEndpointCheck"] = True
    return AsyncIOMotorClient(uri, **kwargs)


async def wait_for_server(
    client: AsyncIOMotorClient,
    max_delay: float = 30.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> int:
    """Ping until the server answers. Retries forever; returns the number of failed attempts."""
    attempt = 0
    while True:
        try:
            await client.admin.command("ping")
        except PyMongoError as e:
            attempt += 1
            delay = backoff_delay(attempt, max_delay)
            log.error("db_connect_failed", attempt=attempt, error=str(e), retry_in_s=delay)
            await sleep(delay)
            continue
        log.info("db_connected", failed_attempts=attempt)
        return attempt


async def init_models(database: AsyncIOMotorDatabase) -> None:
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)


async def init_db() -> AsyncIOMotorClient:
    settings = get_settings()
    client = create_client(settings.mongodb_uri)
    log.info("db_connecting", db=settings.mongodb_db_name)
    await wait_for_server(client, max_delay=settings.mongodb_max_backoff_seconds)
    await init_models(client[settings.mongodb_db_name])
    return client
