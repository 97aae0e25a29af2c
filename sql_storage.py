# sql_storage.py
import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

import crud
from errors import AddressAlreadyAllocated, AddressUnavailable, NotAllocated, StorageFailure
from storage import IPStorage

logger = logging.getLogger(__name__)


class SQLIPStorage(IPStorage):
    """
    Storage backed by the ip_available / ip_allocated tables.

    Each call runs in its own transaction, so the check and the mutation
    of a single address commit or roll back together.
    """

    def __init__(self, session_factory):
        self.SessionLocal = session_factory

    @contextmanager
    def _transaction(self, action: str):
        try:
            with self.SessionLocal.begin() as db:
                yield db
        except SQLAlchemyError as e:
            logger.error("Storage %s failed: %s", action, e)
            raise StorageFailure(f"Storage {action} failed: {e}") from e

    def add_available(self, ip: str) -> None:
        with self._transaction("add") as db:
            if crud.get_allocated(db, ip):
                raise AddressAlreadyAllocated(f"IP {ip} is already allocated")
            crud.get_or_create_available(db, ip)

    def remove_available(self, ip: str) -> None:
        with self._transaction("remove") as db:
            if not crud.delete_available(db, ip):
                raise AddressUnavailable(f"IP {ip} is not in the available pool")

    def is_available(self, ip: str) -> bool:
        with self._transaction("lookup") as db:
            return crud.get_available(db, ip) is not None

    def list_available(self) -> list[str]:
        with self._transaction("list") as db:
            return crud.list_available(db)

    def allocate(self, ip: str, description: str) -> None:
        with self._transaction("allocate") as db:
            if not crud.delete_available(db, ip):
                raise AddressUnavailable(f"IP {ip} is not in the available pool")
            crud.create_allocated(db, ip, description)

    def deallocate(self, ip: str) -> None:
        with self._transaction("deallocate") as db:
            if not crud.delete_allocated(db, ip):
                raise NotAllocated(f"IP {ip} is not allocated")
            crud.get_or_create_available(db, ip)

    def list_allocated(self) -> dict[str, str]:
        with self._transaction("list") as db:
            return crud.list_allocated(db)

    def count_available(self) -> int:
        with self._transaction("count") as db:
            return crud.count_available(db)

    def count_allocated(self) -> int:
        with self._transaction("count") as db:
            return crud.count_allocated(db)

    def close(self) -> None:
        """Releases the engine's pooled connections."""
        self.SessionLocal.kw["bind"].dispose()
