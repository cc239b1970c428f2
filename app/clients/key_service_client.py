"""
HTTP client for the remote API key service.
"""
import logging
import time
from typing import Optional

import httpx
from pydantic import ValidationError

from app.api.schemas import ApiKeyMetadata
from app.core.config import Settings

logger = logging.getLogger(__name__)


class KeyLookupError(RuntimeError):
    """The key service could not be reached or answered with an error."""


class KeyServiceClient:
    def __init__(
        self,
        base_url: str,
        service_api_key: str = "",
        timeout_seconds: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_api_key = service_api_key
        self.timeout = timeout_seconds
        self.transport = transport

    async def fetch_key(self, client_id: str) -> Optional[ApiKeyMetadata]:
        """
        Fetch the metadata of the key identified by client_id.
        Returns None when the service does not know the key, raises
        KeyLookupError on any other failure.
        """
        url = f"{self.base_url}/v1/keys/use"
        headers = {"x-service-api-key": self.service_api_key}
        timeout = httpx.Timeout(self.timeout)
        start = time.perf_counter()
        logger.info("[KEYCLIENT] event=start dependency=key-service client_id=%s", client_id)
        async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
            try:
                resp = await client.get(url, params={"clientId": client_id}, headers=headers)
            except httpx.HTTPError as e:
                logger.exception("[KEYCLIENT] event=error dependency=key-service err=%s", e)
                raise KeyLookupError(f"Key service unreachable: {e}") from e

        latency_ms = (time.perf_counter() - start) * 1000
        if resp.status_code == 404:
            logger.info(
                "[KEYCLIENT] event=not_found dependency=key-service client_id=%s latency_ms=%.2f",
                client_id,
                latency_ms,
            )
            return None
        if resp.status_code != 200:
            logger.error(
                "[KEYCLIENT] event=error status=%s dependency=key-service latency_ms=%.2f",
                resp.status_code,
                latency_ms,
            )
            raise KeyLookupError(f"Key service error status {resp.status_code}")

        try:
            data = resp.json().get("data")
            meta = ApiKeyMetadata.model_validate(data) if data else None
        except (ValueError, AttributeError, ValidationError) as e:
            logger.error("[KEYCLIENT] event=bad_response dependency=key-service err=%s", e)
            raise KeyLookupError("Key service returned an invalid key record") from e

        logger.info(
            "[KEYCLIENT] event=ok dependency=key-service found=%s latency_ms=%.2f",
            meta is not None,
            latency_ms,
        )
        return meta


def build_client(settings: Settings) -> Optional[KeyServiceClient]:
    if not settings.KEY_SERVICE_ENABLED:
        return None
    return KeyServiceClient(
        base_url=settings.KEY_SERVICE_URL,
        service_api_key=settings.KEY_SERVICE_API_KEY,
        timeout_seconds=settings.KEY_SERVICE_TIMEOUT_SECONDS,
    )
