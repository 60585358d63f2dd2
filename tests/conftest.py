import json
import os
import sys
import time
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt

BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("SUPABASE_URL", "http://supabase.test")
os.environ.setdefault("SUPABASE_KEY", "anon-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ADMIN_EMAIL", "admin@pony.test")
os.environ.setdefault("BACKEND_URL", "http://relay.test")
os.environ.setdefault("UNREAD_POLL_INTERVAL", "3600")

from app.config.settings import Settings
from app.models.message import Message
from app.services.inbox_service import InboxRegistry
from app.services.message_store import MessageStoreError
from app.services.relay_client import BackendRelayClient
from app.utils.timestamps import parse_timestamp

ADMIN = "admin@pony.test"


class StubMessageStore:
    """In-memory stand-in for the Supabase message table"""

    def __init__(self, rows=None):
        self.rows = list(rows or [])
        self.fail = False
        self.calls = []

    def _select(self, platform, cursor=None):
        if self.fail:
            raise MessageStoreError("store unavailable")
        selected = [r for r in self.rows if r.get("platform") == platform]
        if cursor:
            bound = parse_timestamp(cursor)
            selected = [r for r in selected if parse_timestamp(r.get("created_at")) >= bound]
        selected.sort(key=lambda r: parse_timestamp(r.get("created_at")))
        return [Message(**r) for r in selected]

    async def fetch_messages(self, platform):
        self.calls.append(("full", platform, None))
        return self._select(platform)

    async def fetch_messages_since(self, platform, cursor):
        self.calls.append(("since", platform, cursor))
        return self._select(platform, cursor)


class FakeRelay:
    """Request recorder behind httpx.MockTransport"""

    def __init__(self):
        self.counts = {}
        self.requests = []
        self.fail_status = None
        self.unreachable = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.unreachable:
            raise httpx.ConnectError("relay down", request=request)

        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))

        if self.fail_status:
            return httpx.Response(self.fail_status, json={"error": "relay failure"})

        path = request.url.path
        if path.endswith("/unread-count"):
            platform = path.strip("/").split("/")[0]
            return httpx.Response(200, json={"counts": self.counts.get(platform, {})})
        if path.endswith("/mark-read"):
            return httpx.Response(200, json={"ok": True})
        if path.endswith("/send"):
            return httpx.Response(200, json={"ok": True, "echo": body})
        return httpx.Response(404, json={"error": "not found"})

    def paths(self, method=None):
        return [p for (m, p, _) in self.requests if method is None or m == method]


def make_token(email=ADMIN, expires_in=3600, secret="test-jwt-secret", sub="operator-1"):
    now = int(time.time())
    claims = {
        "sub": sub,
        "email": email,
        "aud": "authenticated",
        "role": "authenticated",
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def store():
    return StubMessageStore()


@pytest.fixture
def fake_relay():
    return FakeRelay()


@pytest.fixture
def relay(settings, fake_relay):
    return BackendRelayClient(settings, transport=httpx.MockTransport(fake_relay.handler))


@pytest.fixture
def registry(settings, store, relay):
    return InboxRegistry(settings, reader=store, relay=relay)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture(scope="function")
def client(registry, monkeypatch):
    import main
    from app.services.inbox_service import get_inbox_registry

    monkeypatch.setattr(main, "get_inbox_registry", lambda: registry)
    main.app.dependency_overrides[get_inbox_registry] = lambda: registry
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


@pytest.fixture
def west_of_utc():
    """Run the test with the host clock in a timezone behind UTC"""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    previous = os.environ.get("TZ")
    os.environ["TZ"] = "America/New_York"
    time.tzset()
    yield
    if previous is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = previous
    time.tzset()
