# config.py
import logging
import os

STORAGE_BACKEND = os.getenv("CIDR_GUARDIAN_STORAGE", "memory").strip().lower()
DATABASE_URL = os.getenv("CIDR_GUARDIAN_DATABASE_URL", "sqlite:///./cidr_guardian.db")
INITIAL_CIDRS = [
    c.strip() for c in os.getenv("CIDR_GUARDIAN_INITIAL_CIDRS", "").split(",") if c.strip()
]
LOG_LEVEL = os.getenv("CIDR_GUARDIAN_LOG_LEVEL", "INFO").upper()

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class ConfigError(Exception):
    pass


def validate_config() -> None:
    if STORAGE_BACKEND not in ("memory", "sql"):
        raise ConfigError(
            f"Unsupported storage backend '{STORAGE_BACKEND}' (expected 'memory' or 'sql')"
        )


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
