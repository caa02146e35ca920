"""Configuration loading from environment variables."""

import os
from dataclasses import dataclass
from typing import Optional

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _parse_int_env(name: str, default: int, min_value: Optional[int] = None,
                   max_value: Optional[int] = None) -> int:
    """Parse an int environment variable, clamping and falling back to the default."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        value = default
    else:
        try:
            value = int(raw.strip())
        except ValueError:
            value = default

    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value
    return value


def _parse_log_level_env(name: str, default: str = "INFO") -> str:
    """Upper-cased level name, or the default when it is not a standard level."""
    value = os.environ.get(name, default).strip().upper()
    return value if value in LOG_LEVELS else default


@dataclass
class ServerConfig:
    # Relational backend
    database_url: Optional[str] = None
    db_schema: str = "public"
    pool_min_size: int = 1
    pool_max_size: int = 10

    # Google backend
    credentials_config: Optional[str] = None
    token_path: str = "token.json"
    credentials_path: str = "credentials.json"
    service_account_path: str = "service_account.json"
    drive_page_size: int = 10
    search_page_size: int = 10

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        pool_max_size = _parse_int_env("DB_POOL_MAX_SIZE", 10, min_value=1, max_value=100)
        return cls(
            database_url=os.environ.get("DATABASE_URL") or None,
            db_schema=os.environ.get("DB_SCHEMA", "public"),
            pool_min_size=_parse_int_env("DB_POOL_MIN_SIZE", 1, min_value=0, max_value=pool_max_size),
            pool_max_size=pool_max_size,
            credentials_config=os.environ.get("CREDENTIALS_CONFIG") or None,
            token_path=os.environ.get("TOKEN_PATH", "token.json"),
            credentials_path=os.environ.get("CREDENTIALS_PATH", "credentials.json"),
            service_account_path=os.environ.get("SERVICE_ACCOUNT_PATH", "service_account.json"),
            drive_page_size=_parse_int_env("DRIVE_PAGE_SIZE", 10, min_value=1, max_value=1000),
            search_page_size=_parse_int_env("SEARCH_PAGE_SIZE", 10, min_value=1, max_value=1000),
            log_level=_parse_log_level_env("LOG_LEVEL"),
        )
