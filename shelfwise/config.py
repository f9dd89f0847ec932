import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # Application
    app_name: str = os.getenv("APP_NAME", "Shelfwise")
    log_level: str = os.getenv("LOG_LEVEL", "WARNING").upper()

    # Database
    database_file: str = os.getenv("LIBRARY_DB_FILE", "shelfwise.db")

    # ISBN metadata (Google Books)
    google_books_api_key: Optional[str] = os.getenv("GOOGLE_BOOKS_API_KEY")
    google_books_base_url: str = os.getenv("GOOGLE_BOOKS_BASE_URL", "https://www.googleapis.com/books/v1")
    metadata_timeout: float = float(os.getenv("METADATA_TIMEOUT", "10"))
    metadata_retries: int = int(os.getenv("METADATA_RETRIES", "1"))
    metadata_retry_backoff: float = float(os.getenv("METADATA_RETRY_BACKOFF", "0.5"))

    # CLI
    output_mode: str = os.getenv("LIB_CLI_OUTPUT", "plain").lower()
    confirm_deletions: bool = _env_flag("CONFIRM_DELETIONS", "True")


settings = Settings()
