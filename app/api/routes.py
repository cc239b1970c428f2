import hmac
import logging
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.api.schemas import AuthorizeRequest, AuthorizationFailure
from app.clients.key_service_client import KeyLookupError
from app.middleware.auth import error_response
from app.services.authorization import authorize_client

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    state = request.app.state
    return {
        "ok": True,
        "key_service_enabled": state.settings.KEY_SERVICE_ENABLED,
        "key_store": state.key_store.stats(),
        "metrics": state.metrics.snapshot(),
    }


@router.post("/authorize")
async def authorize(req: AuthorizeRequest, request: Request):
    """Decide whether the given credentials may act as the key ``clientId``."""
    settings = request.app.state.settings
    if settings.SERVICE_API_KEY:
        presented = request.headers.get("x-service-api-key", "")
        if not hmac.compare_digest(presented.encode("utf-8"), settings.SERVICE_API_KEY.encode("utf-8")):
            logging.error("authorize_rejected reason=service_key client_id=%s", req.client_id)
            request.state.auth_error_code = "SERVICE_UNAUTHORIZED"
            return error_response("SERVICE_UNAUTHORIZED", "Invalid service api key", 401)

    try:
        meta = await request.app.state.key_store.get(req.client_id)
    except KeyLookupError as e:
        logging.error("authorize_lookup_failed client_id=%s err=%s", req.client_id, e)
        return error_response("KEY_LOOKUP_FAILED", "Unable to verify the API key, please retry", 503)
    if meta is None:
        return error_response("KEY_NOT_FOUND", f"The client id: {req.client_id}, was not found", 401)

    result = authorize_client(req.to_payload(), meta)
    logging.info(
        "authorize_decision client_id=%s authorized=%s",
        req.client_id,
        result.authorized,
    )
    if isinstance(result, AuthorizationFailure):
        return JSONResponse(result.model_dump(mode="json", by_alias=True), status_code=result.status)
    return {"authorized": True, "apiKeyMeta": result.api_key_meta.public_view()}


@router.get("/key")
async def current_key(request: Request):
    meta = request.state.api_key_meta
    return {"data": meta.public_view()}
