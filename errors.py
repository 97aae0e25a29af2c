# errors.py
from dataclasses import dataclass, field


@dataclass
class Rollback:
    """Outcome of undoing a partially applied multi-address operation."""
    operation: str
    attempted: int = 0
    failures: list = field(default_factory=list)  # (ip, exception) pairs

    @property
    def clean(self) -> bool:
        return not self.failures


class GuardianError(Exception):
    # Set when the failing operation ran compensation before raising.
    rollback: Rollback | None = None


class InvalidCIDR(GuardianError):
    pass


class InvalidAddress(GuardianError):
    pass


class InvalidPrefix(GuardianError):
    pass


class DuplicateCIDR(GuardianError):
    pass


class NotManaged(GuardianError):
    pass


class AddressUnavailable(GuardianError):
    pass


class AddressAlreadyAllocated(GuardianError):
    pass


class NotAllocated(GuardianError):
    pass


class NoCapacity(GuardianError):
    pass


class NoAlignedBlock(GuardianError):
    pass


class NoAvailableAddress(GuardianError):
    pass


class Cancelled(GuardianError):
    pass


class StorageFailure(GuardianError):
    """A backend error that is not one of the storage contract outcomes."""
    pass
