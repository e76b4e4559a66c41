# app/core/config.py
from pydantic_settings import BaseSettings
from pydantic import AnyHttpUrl # AnyHttpUrl stays in pydantic core
from typing import List, Literal, Optional
from functools import lru_cache
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

class Settings(BaseSettings):
    PROJECT_NAME: str = "Pinning API"
    LOG_LEVEL: str = "INFO"

    # Pinata credentials. Either the key/secret pair (REST adapter)
    # or a JWT (v3 uploads adapter) must be present.
    PINATA_ADAPTER: Literal["auto", "jwt", "rest"] = "auto"
    PINATA_API_KEY: Optional[str] = None
    PINATA_SECRET_API_KEY: Optional[str] = None
    PINATA_JWT: Optional[str] = None

    PINATA_API_URL: AnyHttpUrl = "https://api.pinata.cloud"
    PINATA_UPLOAD_URL: AnyHttpUrl = "https://uploads.pinata.cloud/v3"

    # Outbound call policy
    PINATA_TIMEOUT_SECONDS: float = 30.0
    PINATA_MAX_RETRIES: int = 2
    PINATA_RETRY_BACKOFF_SECONDS: float = 0.5

    # Payload limits
    MAX_FILE_SIZE_BYTES: int = 5 * 1024 ** 2  # 5 MB limit
    MAX_JSON_SIZE_BYTES: Optional[int] = None  # unset = no limit on pinJson

    # Comma-separated https domains; any subdomain is accepted too
    ALLOWED_ORIGIN_DOMAINS: str = "centrifuge.io,k-f.dev,centrifugelabs.io"

    # Ledger of pins created by live tests, used for cleanup
    TEST_PINS_FILE: str = ".test-pins.json"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields from .env

    @property
    def allowed_origin_domains(self) -> List[str]:
        return [d.strip().lower() for d in self.ALLOWED_ORIGIN_DOMAINS.split(",") if d.strip()]

@lru_cache() # Cache the settings object for performance
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
