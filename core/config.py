import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load .env file
load_dotenv('.env')

# Sandbox customer used when CUSTOMER_ID is not set
DEFAULT_CUSTOMER_ID = "7ab03456-833c-4c8d-8a83-833b777363c6"


def get_env(name: str, default: Optional[str] = None) -> str:
    val = os.getenv(name, default)
    if val is None:
        raise RuntimeError(f"Missing required env var: {name}")
    return val


@dataclass(frozen=True)
class Settings:
    APP_NAME: str
    APP_VERSION: str
    DEBUG: bool
    LOG_LEVEL: str
    PORT: int

    # Yuno API
    API_URL: str
    ACCOUNT_CODE: str
    PUBLIC_API_KEY: str
    PRIVATE_SECRET_KEY: str
    CUSTOMER_ID: str
    YUNO_TIMEOUT_SECONDS: float

    # Public URL used to build callback URLs; empty means "use the request host"
    BASE_URL: str
    STORE_NAME: str

    # Front-end pages
    STATIC_DIR: str
    INDEX_PAGE: str
    SDK_LITE_PAGE: str

    @classmethod
    def from_env(cls) -> "Settings":
        debug = get_env("DEBUG", "False").lower() == "true"
        return cls(
            APP_NAME=get_env("APP_NAME", "Checkout Gateway"),
            APP_VERSION=get_env("APP_VERSION", "1.0.0"),
            DEBUG=debug,
            LOG_LEVEL=get_env("LOG_LEVEL", "DEBUG" if debug else "INFO").upper(),
            PORT=int(get_env("PORT", "8082")),
            API_URL=get_env("API_URL", "https://api-sandbox.y.uno").rstrip("/"),
            ACCOUNT_CODE=get_env("ACCOUNT_CODE", ""),
            PUBLIC_API_KEY=get_env("PUBLIC_API_KEY", ""),
            PRIVATE_SECRET_KEY=get_env("PRIVATE_SECRET_KEY", ""),
            CUSTOMER_ID=get_env("CUSTOMER_ID", DEFAULT_CUSTOMER_ID),
            YUNO_TIMEOUT_SECONDS=float(get_env("YUNO_TIMEOUT_SECONDS", "20")),
            BASE_URL=get_env("BASE_URL", ""),
            STORE_NAME=get_env("STORE_NAME", "Pigeonz Street Wear"),
            STATIC_DIR=get_env("STATIC_DIR", "2.images.png"),
            INDEX_PAGE=get_env("INDEX_PAGE", "index.html"),
            SDK_LITE_PAGE=get_env("SDK_LITE_PAGE", os.path.join("4.sdk lite 1.5", "sdk-lite.html")),
        )


settings = Settings.from_env()


def get_settings() -> Settings:
    """FastAPI dependency returning the process-wide settings."""
    return settings
