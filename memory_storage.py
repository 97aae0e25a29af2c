# memory_storage.py
import threading

from errors import AddressAlreadyAllocated, AddressUnavailable, NotAllocated
from storage import IPStorage
from utils import ip_sort_key


class MemoryIPStorage(IPStorage):
    """In-process storage. One lock guards both sets for every call."""

    def __init__(self):
        self._lock = threading.Lock()
        self.available: set[str] = set()
        self.allocated: dict[str, str] = {}

    def add_available(self, ip: str) -> None:
        with self._lock:
            if ip in self.allocated:
                raise AddressAlreadyAllocated(f"IP {ip} is already allocated")
            self.available.add(ip)

    def remove_available(self, ip: str) -> None:
        with self._lock:
            if ip not in self.available:
                raise AddressUnavailable(f"IP {ip} is not in the available pool")
            self.available.discard(ip)

    def is_available(self, ip: str) -> bool:
        with self._lock:
            return ip in self.available

    def list_available(self) -> list[str]:
        with self._lock:
            return sorted(self.available, key=ip_sort_key)

    def allocate(self, ip: str, description: str) -> None:
        with self._lock:
            if ip not in self.available:
                raise AddressUnavailable(f"IP {ip} is not in the available pool")
            self.available.discard(ip)
            self.allocated[ip] = description

    def deallocate(self, ip: str) -> None:
        with self._lock:
            if ip not in self.allocated:
                raise NotAllocated(f"IP {ip} is not allocated")
            del self.allocated[ip]
            self.available.add(ip)

    def list_allocated(self) -> dict[str, str]:
        with self._lock:
            return dict(self.allocated)

    def count_available(self) -> int:
        with self._lock:
            return len(self.available)

    def count_allocated(self) -> int:
        with self._lock:
            return len(self.allocated)
