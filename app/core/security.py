import hmac
import hashlib
from typing import Optional

CLIENT_ID_LENGTH = 32


def hash_secret_key(secret_key: str) -> str:
    """Hash a raw secret key the same way the key service stores secretHash."""
    return hashlib.sha256(secret_key.encode("utf-8")).hexdigest()


def derive_client_id(secret_key_hash: str) -> str:
    """The client id of a key is the leading part of its secret hash."""
    return secret_key_hash[:CLIENT_ID_LENGTH]


def secrets_match(presented: str, stored: Optional[str]) -> bool:
    """Constant-time comparison of a presented secret hash against the stored one."""
    if stored is None:
        return False
    return hmac.compare_digest(presented.encode("utf-8"), stored.encode("utf-8"))


def redact(value: Optional[str], keep: int = 8) -> str:
    if not value:
        return ""
    return value[:keep] + "..."
