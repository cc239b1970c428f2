import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _csv(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


class Settings:
    def __init__(self):
        self.PORT: int = int(os.environ.get("PORT", 8080))
        self.LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

        # Local key registry: a JSON file of ApiKeyMetadata records, or a single
        # demo key built from the variables below.
        self.API_KEYS_FILE: str = os.environ.get("API_KEYS_FILE", "")
        self.CLIENT_ID: str = os.environ.get("CLIENT_ID", "")
        self.SECRET_KEY: str = os.environ.get("SECRET_KEY", "demo-secret")
        self.ALLOWED_DOMAINS: List[str] = _csv(os.environ.get("ALLOWED_DOMAINS", "*"))
        self.ALLOWED_BUNDLE_IDS: List[str] = _csv(os.environ.get("ALLOWED_BUNDLE_IDS", ""))

        self.KEY_SERVICE_URL: str = os.environ.get("KEY_SERVICE_URL", "")
        self.KEY_SERVICE_API_KEY: str = os.environ.get("KEY_SERVICE_API_KEY", "")
        self.KEY_SERVICE_TIMEOUT_SECONDS: int = int(os.environ.get("KEY_SERVICE_TIMEOUT_SECONDS", 5))
        self.KEY_CACHE_TTL_SECONDS: int = int(os.environ.get("KEY_CACHE_TTL_SECONDS", 60))
        self.KEY_CACHE_MAX_SIZE: int = int(os.environ.get("KEY_CACHE_MAX_SIZE", 5000))

        # Required on /authorize when set
        self.SERVICE_API_KEY: str = os.environ.get("SERVICE_API_KEY", "")

    @property
    def KEY_SERVICE_ENABLED(self) -> bool:
        return bool(self.KEY_SERVICE_URL.strip())


settings = Settings()
