import uuid
from datetime import timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from quickflip.config import reload_settings
from quickflip.db import create_db_and_tables, get_session, reset_engine
from quickflip.main import app
from quickflip.models.marketplace_token_db import MarketplaceToken, utcnow
from quickflip.routers.analysis import get_openai_client

JWT_SECRET = "test-secret"
USER = "user-1"


def create_access_token(data, secret=JWT_SECRET, expires_delta=timedelta(minutes=15)):
    """Stands in for the identity provider that issues bearer tokens in front of the service."""
    return jwt.encode({**data, "exp": utcnow() + expires_delta}, secret, algorithm="HS256")


TEST_ENV = {
    "JWT_SECRET": JWT_SECRET,
    "OPENAI_API_KEY": "sk-test",
    "EBAY_CLIENT_ID": "ebay-id",
    "EBAY_CLIENT_SECRET": "ebay-secret",
    "EBAY_REDIRECT_URI": "Quick-Flip-RuName",
    "EBAY_SANDBOX": "false",
    "ETSY_CLIENT_ID": "etsy-keystring",
    "ETSY_CLIENT_SECRET": "etsy-secret",
    "ETSY_REDIRECT_URI": "https://quickflip.test/etsy/callback",
    "STOCKX_CLIENT_ID": "stockx-id",
    "STOCKX_CLIENT_SECRET": "stockx-secret",
    "STOCKX_REDIRECT_URI": "https://quickflip.test/stockx/callback",
    "STOCKX_API_KEY": "stockx-key",
}


@pytest.fixture
def settings(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'quickflip-test.db'}")
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("ETSY_SHOP_ID", raising=False)
    monkeypatch.delenv("OPENAI_BASE_URL", raising=False)

    reset_engine()
    settings = reload_settings()
    create_db_and_tables()
    yield settings
    reset_engine()


class FakeCompletions:
    def __init__(self):
        self.calls = []
        self.content = "ITEM: Red Mug"
        self.error = None

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(role="assistant", content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(index=0, message=message)])


class FakeOpenAI:
    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def openai_client():
    return FakeOpenAI()


@pytest.fixture
def client(settings, openai_client):
    app.dependency_overrides[get_openai_client] = lambda: openai_client
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(settings):
    token = create_access_token({"sub": USER}, JWT_SECRET)
    return {"Authorization": f"Bearer {token}"}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else str(payload))

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeHTTP:
    """Stands in for requests.get/put/post; answers by the longest matching URL fragment."""

    def __init__(self):
        self.routes = []
        self.calls = []

    def add(self, method, fragment, status_code=200, payload=None, text=None):
        self.routes.append((method, fragment, FakeResponse(status_code, payload, text)))

    def request(self, method, url, **kwargs):
        self.calls.append(SimpleNamespace(method=method, url=url, **kwargs))
        matches = [(fragment, response) for m, fragment, response in self.routes if m == method and fragment in url]
        if not matches:
            raise AssertionError(f"Unexpected {method} {url}")
        return max(matches, key=lambda match: len(match[0]))[1]

    def find(self, method, fragment):
        return [call for call in self.calls if call.method == method and fragment in call.url]


@pytest.fixture
def http(monkeypatch):
    fake = FakeHTTP()
    monkeypatch.setattr("requests.get", lambda url, **kwargs: fake.request("GET", url, **kwargs))
    monkeypatch.setattr("requests.put", lambda url, **kwargs: fake.request("PUT", url, **kwargs))
    monkeypatch.setattr("requests.post", lambda url, **kwargs: fake.request("POST", url, **kwargs))
    return fake


@pytest.fixture
def store_token(settings):
    def _store(marketplace, expires_in=3600, **fields):
        record = MarketplaceToken(
            id=str(uuid.uuid4()),
            user_id=fields.pop("user_id", USER),
            marketplace=marketplace,
            access_token=fields.pop("access_token", "access-123"),
            expires_at=utcnow() + timedelta(seconds=expires_in),
            **fields,
        )
        with get_session() as session:
            session.add(record)
            session.commit()
    return _store
