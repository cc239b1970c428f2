"""
Client authorization decision.

Decides whether a request may act as an API key. The checks run in a fixed
order and the first one that applies decides:

1. secret key hash (trusted backends), ignoring bundle id and origin
2. bundle id (native apps)
3. origin (browsers), which may itself be missing

Policy failures are returned as ``AuthorizationFailure`` values, never raised.
"""
from enum import Enum

from app.api.schemas import (
    ApiKeyMetadata,
    AuthorizationFailure,
    AuthorizationResult,
    AuthorizationSuccess,
    ClientAuthorizationPayload,
)
from app.core.matchers import bundle_matches, domain_matches
from app.core.security import secrets_match

UNAUTHORIZED_STATUS = 401


class AuthorizationErrorCode(str, Enum):
    SECRET_INVALID = "SECRET_INVALID"
    BUNDLE_UNAUTHORIZED = "BUNDLE_UNAUTHORIZED"
    ORIGIN_UNAUTHORIZED = "ORIGIN_UNAUTHORIZED"


SECRET_INVALID_MESSAGE = "The secret is invalid. Please check you secret-key"
BUNDLE_UNAUTHORIZED_MESSAGE = (
    "The bundleId: {bundle_id}, is not authorized for this key. "
    "Please update your key permissions on the thirdweb dashboard"
)
ORIGIN_UNAUTHORIZED_MESSAGE = (
    "The domain: {origin}, is not authorized for this key. "
    "Please update your key permissions on the thirdweb dashboard"
)


def _unauthorized(code: AuthorizationErrorCode, message: str) -> AuthorizationFailure:
    return AuthorizationFailure(
        error_message=message,
        error_code=code.value,
        status=UNAUTHORIZED_STATUS,
    )


def authorize_client(
    payload: ClientAuthorizationPayload, meta: ApiKeyMetadata
) -> AuthorizationResult:
    if payload.secret_key_hash is not None:
        if secrets_match(payload.secret_key_hash, meta.secret_hash):
            return AuthorizationSuccess(api_key_meta=meta)
        return _unauthorized(AuthorizationErrorCode.SECRET_INVALID, SECRET_INVALID_MESSAGE)

    # presence, not truthiness: an empty bundle id is still checked
    if payload.bundle_id is not None:
        if bundle_matches(payload.bundle_id, meta.bundle_ids):
            return AuthorizationSuccess(api_key_meta=meta)
        return _unauthorized(
            AuthorizationErrorCode.BUNDLE_UNAUTHORIZED,
            BUNDLE_UNAUTHORIZED_MESSAGE.format(bundle_id=payload.bundle_id),
        )

    if domain_matches(payload.origin, meta.domains):
        return AuthorizationSuccess(api_key_meta=meta)
    return _unauthorized(
        AuthorizationErrorCode.ORIGIN_UNAUTHORIZED,
        ORIGIN_UNAUTHORIZED_MESSAGE.format(origin=payload.origin),
    )
