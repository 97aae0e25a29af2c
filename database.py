# database.py
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

import config

logger = logging.getLogger(__name__)

Base = declarative_base()


def make_engine(url: str, **kwargs):
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, **kwargs)


def make_session_factory(bind):
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


def init_db(bind) -> None:
    """Creates the pool tables if they do not exist yet."""
    import models  # noqa: F401  registers the tables on Base.metadata
    Base.metadata.create_all(bind=bind)


def build_storage():
    """Builds the storage backend selected by CIDR_GUARDIAN_STORAGE."""
    config.validate_config()
    if config.STORAGE_BACKEND == "sql":
        from sql_storage import SQLIPStorage

        engine = make_engine(config.DATABASE_URL)
        init_db(engine)
        logger.info("Using SQL storage at %s", engine.url.render_as_string(hide_password=True))
        return SQLIPStorage(make_session_factory(engine))

    from memory_storage import MemoryIPStorage

    logger.info("Using in-memory storage")
    return MemoryIPStorage()


_guardian = None


def get_guardian():
    """Process-wide allocation engine, created on first use."""
    global _guardian
    if _guardian is None:
        from ip_allocator import CIDRGuardian

        _guardian = CIDRGuardian(build_storage(), initial_cidrs=config.INITIAL_CIDRS)
    return _guardian
