import pytest
from fastapi.testclient import TestClient

from app.api.schemas import ApiKeyMetadata
from app.core.config import Settings
from app.core.security import hash_secret_key


@pytest.fixture
def api_key_meta():
    return ApiKeyMetadata(
        id="1",
        key="your-api-key",
        creatorWalletAddress="creator-address",
        secretHash="secret-hash",
        walletAddresses=[],
        domains=["example.com", "*.example.com"],
        bundleIds=["com.example.app"],
        services=[],
        accountId="test-account-id",
    )


@pytest.fixture
def make_client(monkeypatch):
    """Build a TestClient for an app configured from the given env vars."""

    def _make(**env):
        for name in (
            "API_KEYS_FILE",
            "CLIENT_ID",
            "SECRET_KEY",
            "ALLOWED_DOMAINS",
            "ALLOWED_BUNDLE_IDS",
            "KEY_SERVICE_URL",
            "SERVICE_API_KEY",
        ):
            monkeypatch.delenv(name, raising=False)
        for name, value in env.items():
            monkeypatch.setenv(name, value)
        from app.main import create_app

        return TestClient(create_app(Settings()))

    return _make


@pytest.fixture
def test_secret_hash():
    return hash_secret_key("test-secret")
