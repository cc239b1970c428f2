import logging
from typing import Optional
from urllib.parse import urlsplit

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from app.api.schemas import AuthorizationFailure, ClientAuthorizationPayload, ErrorDetail, ErrorResponse
from app.clients.key_service_client import KeyLookupError
from app.core.security import derive_client_id, hash_secret_key, redact
from app.services.authorization import authorize_client
from app.services.key_store import KeyStore

PUBLIC_PATHS = {"/api/v1/health", "/api/v1/authorize", "/docs", "/redoc", "/openapi.json"}


def error_response(code: str, message: str, status_code: int) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, status_code=status_code))
    return JSONResponse(body.model_dump(by_alias=True), status_code=status_code)


def normalize_origin(raw: Optional[str]) -> Optional[str]:
    """Reduce an Origin/Referer header to a lowercased ``host[:port]``."""
    if raw is None:
        return None
    raw = raw.strip()
    if not raw or raw == "null":
        return None
    parts = urlsplit(raw if "://" in raw else f"//{raw}")
    host = parts.netloc.rsplit("@", 1)[-1]
    return host.lower() or None


class AuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, key_store: KeyStore):
        super().__init__(app)
        self.key_store = key_store

    async def dispatch(self, request, call_next):
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        client_id = request.headers.get("x-client-id")
        secret_key = request.headers.get("x-secret-key")
        secret_key_hash = hash_secret_key(secret_key) if secret_key is not None else None
        if not client_id and secret_key_hash is not None:
            client_id = derive_client_id(secret_key_hash)

        if not client_id:
            logging.error("Auth fail: missing credentials", extra={"code": "MISSING_CREDENTIALS"})
            request.state.auth_error_code = "MISSING_CREDENTIALS"
            return error_response(
                "MISSING_CREDENTIALS",
                "Please pass a valid client id (x-client-id) or secret key (x-secret-key)",
                401,
            )

        try:
            meta = await self.key_store.get(client_id)
        except KeyLookupError as e:
            logging.error("Auth fail: key lookup failed err=%s", e, extra={"client_id": client_id})
            request.state.auth_error_code = "KEY_LOOKUP_FAILED"
            return error_response("KEY_LOOKUP_FAILED", "Unable to verify the API key, please retry", 503)

        if meta is None:
            logging.error("Auth fail: key not found", extra={"client_id": client_id})
            request.state.auth_error_code = "KEY_NOT_FOUND"
            return error_response("KEY_NOT_FOUND", f"The client id: {client_id}, was not found", 401)

        payload = ClientAuthorizationPayload(
            secret_key_hash=secret_key_hash,
            bundle_id=request.headers.get("x-bundle-id"),
            origin=normalize_origin(request.headers.get("origin") or request.headers.get("referer")),
        )
        result = authorize_client(payload, meta)
        if isinstance(result, AuthorizationFailure):
            logging.error(
                "Auth fail: %s client_id=%s secret_prefix=%s",
                result.error_code,
                client_id,
                redact(secret_key_hash),
                extra={"client_id": client_id, "code": result.error_code},
            )
            request.state.auth_error_code = result.error_code
            return error_response(result.error_code, result.error_message, result.status)

        request.state.client_id = client_id
        request.state.api_key_meta = result.api_key_meta
        return await call_next(request)
