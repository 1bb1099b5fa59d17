import os
from dataclasses import dataclass, field
from typing import List
from dotenv import load_dotenv

load_dotenv()


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: List[str] = field(default_factory=lambda: _split_origins(os.getenv("CORS_ORIGINS", "*")))

    # Client settings
    api_url: str = os.getenv("CATALOG_API_URL", "")

    # Database settings
    db_file: str = os.getenv("CATALOG_DB_FILE", "catalog.db")

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Book Catalog")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def __post_init__(self) -> None:
        if not self.api_url:
            self.api_url = f"http://{self.api_host}:{self.api_port}"


settings = Settings()
