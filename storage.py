# storage.py
from abc import ABC, abstractmethod


class IPStorage(ABC):
    """
    Key-addressed store behind the allocation engine.

    Tracks two disjoint sets of IPv4 addresses (as dotted-quad strings):
    Available, and Allocated (address -> description). Every method acts on
    one address at a time and must be atomic on its own; nothing here spans
    several addresses, so callers compensate for multi-address sequences.

    Contract outcomes are raised as errors.AddressAlreadyAllocated,
    errors.AddressUnavailable and errors.NotAllocated. Any other backend
    failure is raised as errors.StorageFailure.
    """

    @abstractmethod
    def add_available(self, ip: str) -> None:
        """Adds ip to Available. Fails if it is currently allocated."""

    @abstractmethod
    def remove_available(self, ip: str) -> None:
        """Removes ip from Available. Fails if it is not there."""

    @abstractmethod
    def is_available(self, ip: str) -> bool:
        ...

    @abstractmethod
    def list_available(self) -> list[str]:
        """All Available addresses, lowest address first."""

    @abstractmethod
    def allocate(self, ip: str, description: str) -> None:
        """Moves ip from Available to Allocated."""

    @abstractmethod
    def deallocate(self, ip: str) -> None:
        """Moves ip from Allocated back to Available."""

    @abstractmethod
    def list_allocated(self) -> dict[str, str]:
        ...

    @abstractmethod
    def count_available(self) -> int:
        ...

    @abstractmethod
    def count_allocated(self) -> int:
        ...
