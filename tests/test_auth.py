import json

from app.core.security import derive_client_id, hash_secret_key

CLIENT_ENV = {
    "CLIENT_ID": "test-client",
    "SECRET_KEY": "test-secret",
    "ALLOWED_DOMAINS": "example.com,*.example.com",
    "ALLOWED_BUNDLE_IDS": "com.example.app",
}


def test_health_needs_no_auth(make_client):
    client = make_client(**CLIENT_ENV)
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["key_store"]["registry_size"] == 1
    assert "X-Request-Id" in resp.headers


def test_auth_success_with_secret_key(make_client):
    client = make_client(**CLIENT_ENV)
    resp = client.get(
        "/api/v1/key",
        headers={"x-client-id": "test-client", "x-secret-key": "test-secret", "origin": "https://evil.io"},
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["key"] == "test-client"
    assert "secretHash" not in data


def test_auth_invalid_secret_key(make_client):
    client = make_client(**CLIENT_ENV)
    resp = client.get(
        "/api/v1/key",
        headers={"x-client-id": "test-client", "x-secret-key": "wrong", "origin": "https://example.com"},
    )
    assert resp.status_code == 401
    assert resp.json()["error"] == {
        "code": "SECRET_INVALID",
        "message": "The secret is invalid. Please check you secret-key",
        "statusCode": 401,
    }


def test_auth_empty_secret_key_is_checked(make_client):
    env = dict(CLIENT_ENV, ALLOWED_DOMAINS="*")
    client = make_client(**env)
    resp = client.get("/api/v1/key", headers={"x-client-id": "test-client", "x-secret-key": ""})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "SECRET_INVALID"


def test_auth_client_id_derived_from_secret_key(make_client):
    env = dict(CLIENT_ENV)
    del env["CLIENT_ID"]
    client = make_client(**env)
    resp = client.get("/api/v1/key", headers={"x-secret-key": "test-secret"})
    assert resp.status_code == 200
    assert resp.json()["data"]["key"] == derive_client_id(hash_secret_key("test-secret"))


def test_auth_origin_allowed(make_client):
    client = make_client(**CLIENT_ENV)
    resp = client.get(
        "/api/v1/key",
        headers={"x-client-id": "test-client", "origin": "https://app.Example.com"},
    )
    assert resp.status_code == 200


def test_auth_referer_used_without_origin(make_client):
    client = make_client(**CLIENT_ENV)
    resp = client.get(
        "/api/v1/key",
        headers={"x-client-id": "test-client", "referer": "https://example.com/page"},
    )
    assert resp.status_code == 200


def test_auth_origin_rejected(make_client):
    client = make_client(**CLIENT_ENV)
    resp = client.get(
        "/api/v1/key",
        headers={"x-client-id": "test-client", "origin": "https://notexample.com"},
    )
    assert resp.status_code == 401
    error = resp.json()["error"]
    assert error["code"] == "ORIGIN_UNAUTHORIZED"
    assert "notexample.com" in error["message"]


def test_auth_bundle_rejected_before_origin(make_client):
    client = make_client(**CLIENT_ENV)
    resp = client.get(
        "/api/v1/key",
        headers={"x-client-id": "test-client", "x-bundle-id": "com.foo.bar", "origin": "https://example.com"},
    )
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "BUNDLE_UNAUTHORIZED"


def test_auth_bundle_allowed(make_client):
    client = make_client(**CLIENT_ENV)
    resp = client.get("/api/v1/key", headers={"x-client-id": "test-client", "x-bundle-id": "com.example.app"})
    assert resp.status_code == 200


def test_auth_missing_credentials(make_client):
    client = make_client(**CLIENT_ENV)
    resp = client.get("/api/v1/key")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "MISSING_CREDENTIALS"


def test_auth_unknown_client(make_client):
    client = make_client(**CLIENT_ENV)
    resp = client.get("/api/v1/key", headers={"x-client-id": "nobody"})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "KEY_NOT_FOUND"


def test_auth_remote_lookup_failure(make_client):
    # nothing listens on port 9, so the lookup fails at connect time
    client = make_client(KEY_SERVICE_URL="http://127.0.0.1:9", KEY_SERVICE_TIMEOUT_SECONDS="1", **CLIENT_ENV)
    resp = client.get("/api/v1/key", headers={"x-client-id": "remote-only"})
    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "KEY_LOOKUP_FAILED"


def test_denials_counted_in_metrics(make_client):
    client = make_client(**CLIENT_ENV)
    client.get("/api/v1/key", headers={"x-client-id": "test-client", "origin": "https://evil.io"})
    client.get("/api/v1/key", headers={"x-client-id": "test-client", "origin": "https://example.com"})
    metrics = client.get("/api/v1/health").json()["metrics"]
    assert metrics["auth_denials_total"] == {"ORIGIN_UNAUTHORIZED": 1}
    assert metrics["requests_total"]["test-client"] == 1


def test_request_id_is_echoed(make_client):
    client = make_client(**CLIENT_ENV)
    resp = client.get("/api/v1/health", headers={"X-Request-Id": "abc-123"})
    assert resp.headers["X-Request-Id"] == "abc-123"
    resp = client.get("/api/v1/health", headers={"X-Request-Id": "bad id with spaces"})
    assert resp.headers["X-Request-Id"] != "bad id with spaces"


def test_authorize_endpoint(make_client):
    client = make_client(**CLIENT_ENV)
    ok = client.post(
        "/api/v1/authorize",
        json={"clientId": "test-client", "secretKeyHash": hash_secret_key("test-secret")},
    )
    assert ok.status_code == 200
    assert ok.json()["authorized"] is True
    assert "secretHash" not in ok.json()["apiKeyMeta"]

    denied = client.post("/api/v1/authorize", json={"clientId": "test-client", "bundleId": "com.foo.bar"})
    assert denied.status_code == 401
    assert denied.json() == {
        "authorized": False,
        "errorMessage": (
            "The bundleId: com.foo.bar, is not authorized for this key. "
            "Please update your key permissions on the thirdweb dashboard"
        ),
        "errorCode": "BUNDLE_UNAUTHORIZED",
        "status": 401,
    }


def test_authorize_endpoint_unknown_key(make_client):
    client = make_client(**CLIENT_ENV)
    resp = client.post("/api/v1/authorize", json={"clientId": "nobody"})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "KEY_NOT_FOUND"


def test_authorize_endpoint_requires_service_key(make_client):
    client = make_client(SERVICE_API_KEY="svc", **CLIENT_ENV)
    body = {"clientId": "test-client", "origin": "example.com"}
    resp = client.post("/api/v1/authorize", json=body)
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "SERVICE_UNAUTHORIZED"
    resp = client.post("/api/v1/authorize", json=body, headers={"x-service-api-key": "svc"})
    assert resp.status_code == 200


def test_registry_loaded_from_file(make_client, tmp_path):
    path = tmp_path / "keys.json"
    path.write_text(
        json.dumps(
            [
                {
                    "id": "1",
                    "key": "file-client",
                    "accountId": "acct",
                    "secretHash": hash_secret_key("file-secret"),
                    "domains": ["*"],
                    "bundleIds": [],
                }
            ]
        )
    )
    client = make_client(API_KEYS_FILE=str(path))
    resp = client.get("/api/v1/key", headers={"x-client-id": "file-client"})
    assert resp.status_code == 200
    assert client.get("/api/v1/key", headers={"x-client-id": "test-client"}).status_code == 401


def test_authorize_endpoint_remote_lookup_failure(make_client):
    client = make_client(KEY_SERVICE_URL="http://127.0.0.1:9", KEY_SERVICE_TIMEOUT_SECONDS="1", **CLIENT_ENV)
    resp = client.post("/api/v1/authorize", json={"clientId": "remote-only", "origin": "example.com"})
    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "KEY_LOOKUP_FAILED"
