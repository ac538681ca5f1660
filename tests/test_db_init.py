import pytest
from pymongo.errors import ServerSelectionTimeoutError

from app.db.init import _use_tls, backoff_delay, wait_for_server


def test_backoff_delay_doubles_then_caps():
    assert [backoff_delay(a) for a in range(1, 8)] == [2, 4, 8, 16, 30, 30, 30]
    assert backoff_delay(3, max_delay=5) == 5


def test_use_tls():
    assert _use_tls("mongodb+srv://cluster.example.net/db")
    assert _use_tls("mongodb://host:27017/?tls=true")
    assert not _use_tls("mongodb://localhost:27017")


class _FlakyAdmin:
    def __init__(self, failures: int):
        self.failures = failures
        self.calls = 0

    async def command(self, name):
        self.calls += 1
        if self.calls <= self.failures:
            raise ServerSelectionTimeoutError("no servers")
        return {"ok": 1}


class _FlakyClient:
    def __init__(self, failures: int):
        self.admin = _FlakyAdmin(failures)


@pytest.mark.asyncio
async def test_wait_for_server_retries_with_backoff():
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    client = _FlakyClient(failures=3)
    failed = await wait_for_server(client, max_delay=5, sleep=fake_sleep)
    assert failed == 3
    assert slept == [2, 4, 5]
    assert client.admin.calls == 4


@pytest.mark.asyncio
async def test_wait_for_server_no_sleep_when_up():
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    assert await wait_for_server(_FlakyClient(failures=0), sleep=fake_sleep) == 0
    assert slept == []
