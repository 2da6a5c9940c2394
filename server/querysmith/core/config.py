"""
QuerySmith - Configuration
Environment variables and settings
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv


def _load_dotenv_files() -> None:
    """Load .env files for local development."""
    server_dir = Path(__file__).resolve().parents[2]
    load_dotenv(server_dir / ".env", override=False)
    load_dotenv(server_dir / ".env.local", override=False)


_load_dotenv_files()


def get_env(key: str, default: str = "") -> str:
    """Get environment variable with default value."""
    return os.environ.get(key, default)


def get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer."""
    return int(os.environ.get(key, str(default)))


def get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as boolean."""
    val = os.environ.get(key, str(default)).lower()
    return val in ("true", "1", "yes")


def get_env_list(key: str, default: str = "") -> List[str]:
    """Get environment variable as list (comma-separated)."""
    val = os.environ.get(key, default)
    if not val:
        return []
    return [item.strip() for item in val.split(",") if item.strip()]


class Settings:
    """Application settings from environment variables."""

    # General
    QUERYSMITH_ENV: str = get_env("QUERYSMITH_ENV", "dev")
    QUERYSMITH_CORS_ORIGINS: List[str] = get_env_list(
        "QUERYSMITH_CORS_ORIGINS", "http://localhost:5173"
    )
    # Empty: DEBUG in dev, INFO elsewhere
    QUERYSMITH_LOG_LEVEL: str = get_env("QUERYSMITH_LOG_LEVEL", "").upper()

    # Query defaults
    QUERYSMITH_DEFAULT_SIZE: int = get_env_int("QUERYSMITH_DEFAULT_SIZE", 100)
    QUERYSMITH_QUERY_ANALYZER: str = get_env(
        "QUERYSMITH_QUERY_ANALYZER", "custom_analyzer_combo"
    )
    QUERYSMITH_QUERY_FUZZINESS: int = get_env_int("QUERYSMITH_QUERY_FUZZINESS", 2)

    # OpenSearch
    OPENSEARCH_HOST: str = get_env("OPENSEARCH_HOST", "http://localhost:9200")
    OPENSEARCH_VERIFY_SSL: bool = get_env_bool("OPENSEARCH_VERIFY_SSL", False)
    OPENSEARCH_USERNAME: str = get_env("OPENSEARCH_USERNAME", "")
    OPENSEARCH_PASSWORD: str = get_env("OPENSEARCH_PASSWORD", "")


settings = Settings()
