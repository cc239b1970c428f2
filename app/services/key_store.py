import json
import logging
from typing import Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from app.api.schemas import ApiKeyMetadata
from app.clients.key_service_client import KeyServiceClient, build_client
from app.core.cache import LRUCache
from app.core.config import Settings
from app.core.security import derive_client_id, hash_secret_key

_records = TypeAdapter(List[ApiKeyMetadata])


def load_registry(path: str) -> Dict[str, ApiKeyMetadata]:
    """Load a JSON list of key records, indexed by client id (the ``key`` field)."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            records = _records.validate_python(json.load(f))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"Invalid API keys file {path}: {e}") from e
    return {record.key: record for record in records}


def demo_registry(settings: Settings) -> Dict[str, ApiKeyMetadata]:
    secret_hash = hash_secret_key(settings.SECRET_KEY)
    client_id = settings.CLIENT_ID or derive_client_id(secret_hash)
    meta = ApiKeyMetadata(
        id=client_id,
        key=client_id,
        account_id="demo-account",
        secret_hash=secret_hash,
        domains=settings.ALLOWED_DOMAINS,
        bundle_ids=settings.ALLOWED_BUNDLE_IDS,
    )
    return {meta.key: meta}


class KeyStore:
    """
    Resolves a client id to its key metadata: local registry first, then the
    TTL cache, then the remote key service when one is configured.
    """

    def __init__(
        self,
        registry: Optional[Dict[str, ApiKeyMetadata]] = None,
        client: Optional[KeyServiceClient] = None,
        cache: Optional[LRUCache] = None,
    ):
        self.registry = registry or {}
        self.client = client
        self.cache = cache or LRUCache()

    async def get(self, client_id: str) -> Optional[ApiKeyMetadata]:
        meta = self.registry.get(client_id)
        if meta is not None:
            return meta
        if self.client is None:
            return None

        meta = self.cache.get(client_id)
        if meta is not None:
            return meta
        # KeyLookupError propagates to the caller
        meta = await self.client.fetch_key(client_id)
        if meta is not None:
            self.cache.set(client_id, meta)
        return meta

    def stats(self) -> Dict[str, int]:
        stats = self.cache.stats()
        stats["registry_size"] = len(self.registry)
        return stats


def build_key_store(settings: Settings) -> KeyStore:
    if settings.API_KEYS_FILE:
        registry = load_registry(settings.API_KEYS_FILE)
    else:
        registry = demo_registry(settings)
    logging.info(
        "key_store_configured registry_size=%d key_service_enabled=%s",
        len(registry),
        settings.KEY_SERVICE_ENABLED,
    )
    return KeyStore(
        registry=registry,
        client=build_client(settings),
        cache=LRUCache(max_size=settings.KEY_CACHE_MAX_SIZE, default_ttl=settings.KEY_CACHE_TTL_SECONDS),
    )
