import ipaddress
import logging
import threading
from contextlib import contextmanager
from typing import Optional

from errors import (
    AddressAlreadyAllocated, AddressUnavailable, Cancelled, DuplicateCIDR, GuardianError,
    InvalidCIDR, InvalidPrefix, NoAlignedBlock, NoAvailableAddress, NoCapacity, NotAllocated,
    NotManaged, Rollback,
)
from memory_storage import MemoryIPStorage
from reporting import available_cidrs, format_snapshot, used_cidrs
from schemas import ManagedCIDR, StatusSnapshot, UsedCIDR
from storage import IPStorage
from utils import ip_sort_key, is_aligned, iter_addresses, parse_cidr, parse_ip

logger = logging.getLogger(__name__)


class SharedLock:
    """Many concurrent readers or one writer."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    @contextmanager
    def shared(self):
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def exclusive(self):
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


def _check_cancelled(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise Cancelled("Operation cancelled")


class CIDRGuardian:
    """
    Allocation engine over one IPStorage.

    Keeps the registry of managed CIDR blocks and drives the storage through
    multi-address sequences. Storage only guarantees single-address atomicity,
    so add_cidr and allocate_cidr undo their own partial work on failure and
    attach the outcome to the raised error as `rollback`.

    Every public method takes an optional `cancel` event. It is checked before
    the operation and between per-address steps, never during a storage call.
    """

    def __init__(self, storage: Optional[IPStorage] = None, initial_cidrs=(), cancel=None):
        self.storage = storage if storage is not None else MemoryIPStorage()
        self._lock = SharedLock()
        self._cidrs: dict[str, ManagedCIDR] = {}
        for cidr in initial_cidrs:
            self.add_cidr(cidr, "initial CIDR", cancel=cancel)

    # ---------- Registry ----------
    def add_cidr(self, cidr: str, description: str = "", cancel=None) -> None:
        """
        Registers a block and puts every address in it into the available pool.
        Addresses that are already allocated are left as they are. A failure
        part-way removes only the addresses this call put into the pool.
        """
        _check_cancelled(cancel)
        network = parse_cidr(cidr)
        key = str(network)

        with self._lock.exclusive():
            if key in self._cidrs:
                raise DuplicateCIDR(f"CIDR {key} is already managed")

            added = []
            try:
                for ip in iter_addresses(network):
                    _check_cancelled(cancel)
                    if self.storage.is_available(ip):
                        continue
                    try:
                        self.storage.add_available(ip)
                    except AddressAlreadyAllocated:
                        continue
                    added.append(ip)
            except GuardianError as e:
                e.rollback = self._rollback("add_cidr", added, self.storage.remove_available)
                raise

            self._cidrs[key] = ManagedCIDR(cidr=key, description=description, network=network)

        logger.info("Added CIDR %s (%d new addresses)", key, len(added))

    def remove_cidr(self, cidr: str, cancel=None) -> None:
        """
        Drains a block's still-available addresses and forgets the block.
        Allocated addresses inside it stay allocated. A failure part-way
        leaves the block partially drained and still registered.
        """
        _check_cancelled(cancel)
        key = str(parse_cidr(cidr))

        with self._lock.exclusive():
            managed = self._cidrs.get(key)
            if managed is None:
                raise NotManaged(f"CIDR {key} is not managed")

            removed = 0
            for ip in iter_addresses(managed.network):
                _check_cancelled(cancel)
                if self.storage.is_available(ip):
                    self.storage.remove_available(ip)
                    removed += 1

            del self._cidrs[key]

        logger.info("Removed CIDR %s (%d addresses drained)", key, removed)

    def get_managed_cidrs(self, cancel=None) -> dict[str, str]:
        _check_cancelled(cancel)
        with self._lock.shared():
            return {key: m.description for key, m in self._cidrs.items()}

    def expand_pool(self, cidr: str, description: str = "expanded pool", cancel=None) -> None:
        """Adds a block's unallocated addresses to the pool, then registers it."""
        _check_cancelled(cancel)
        network = parse_cidr(cidr)

        allocated = self.storage.list_allocated()
        for ip in iter_addresses(network):
            _check_cancelled(cancel)
            if ip not in allocated:
                self.storage.add_available(ip)

        self.add_cidr(str(network), description, cancel=cancel)

    # ---------- Single addresses ----------
    def add_single_ip(self, ip: str, cancel=None) -> None:
        _check_cancelled(cancel)
        self.storage.add_available(str(parse_ip(ip)))

    def remove_single_ip(self, ip: str, cancel=None) -> None:
        _check_cancelled(cancel)
        self.storage.remove_available(str(parse_ip(ip)))

    def allocate_ip(self, ip: str, description: str = "", cancel=None) -> None:
        _check_cancelled(cancel)
        self.storage.allocate(str(parse_ip(ip)), description)

    def release_ip(self, ip: str, cancel=None) -> None:
        _check_cancelled(cancel)
        self.storage.deallocate(str(parse_ip(ip)))

    def get_next_available_ip(self, description: str = "", cancel=None) -> str:
        """Allocates the lowest available address."""
        _check_cancelled(cancel)
        available = self.storage.list_available()
        if not available:
            raise NoAvailableAddress("No available IP addresses")

        ip = min(available, key=ip_sort_key)
        self.storage.allocate(ip, description)
        logger.debug("Allocated next available IP %s", ip)
        return ip

    # ---------- Blocks ----------
    def allocate_cidr(self, prefixlen: int, description: str = "", cancel=None) -> str:
        """
        Allocates an aligned /prefixlen block from the pool and returns it.

        The candidate is the lowest available address aligned on a /prefixlen
        boundary. Only that candidate is tried: if any address of its block is
        missing, the call fails with AddressUnavailable.

        The network address is recorded as allocated with the description
        "<cidr> - <description>"; the rest of the block leaves the pool.
        """
        _check_cancelled(cancel)
        if isinstance(prefixlen, bool) or not isinstance(prefixlen, int) or not 0 <= prefixlen <= 32:
            raise InvalidPrefix(f"Invalid prefix length: {prefixlen!r}")

        size = 1 << (32 - prefixlen)
        available = self.storage.list_available()
        if len(available) < size:
            raise NoCapacity(f"Not enough available IPs for a /{prefixlen} block")

        available.sort(key=ip_sort_key)
        start = next((ip for ip in available if is_aligned(ip, prefixlen)), None)
        if start is None:
            raise NoAlignedBlock(f"No available IP is aligned on a /{prefixlen} boundary")

        network = ipaddress.IPv4Network(f"{start}/{prefixlen}")
        cidr = str(network)
        block = list(iter_addresses(network))

        for ip in block:
            _check_cancelled(cancel)
            if not self.storage.is_available(ip):
                raise AddressUnavailable(f"IP {ip} in {cidr} is not available")

        self.storage.allocate(start, UsedCIDR(cidr=cidr, description=description).record())

        removed = []
        try:
            for ip in block[1:]:
                self.storage.remove_available(ip)
                removed.append(ip)
        except GuardianError as e:
            rollback = self._rollback("allocate_cidr", removed, self.storage.add_available)
            start_undo = self._rollback("allocate_cidr", [start], self.storage.deallocate)
            rollback.attempted += start_undo.attempted
            rollback.failures += start_undo.failures
            e.rollback = rollback
            raise

        logger.info("Allocated CIDR %s for '%s'", cidr, description)
        return cidr

    def release_cidr(self, cidr: str, cancel=None) -> None:
        """
        Returns an allocated block to the pool.

        Only addresses covered by a currently managed CIDR are put back.
        Addresses outside every managed block are not restored.
        """
        _check_cancelled(cancel)
        network = parse_cidr(cidr)
        key = str(network)
        network_addr = str(network.network_address)

        allocated = self.storage.list_allocated()
        if network_addr not in allocated:
            raise NotAllocated(f"CIDR {key} is not allocated")

        recorded = UsedCIDR.parse(allocated[network_addr])
        if recorded is not None and recorded.cidr != key and _is_cidr(recorded.cidr):
            raise NotAllocated(f"{network_addr} is allocated as {recorded.cidr}, not {key}")

        with self._lock.shared():
            managed = [m.network for m in self._cidrs.values()]

        skipped = 0
        for ip in iter_addresses(network):
            _check_cancelled(cancel)
            if ip in allocated:
                continue
            addr = ipaddress.IPv4Address(ip)
            if not any(addr in net for net in managed):
                skipped += 1
                continue
            try:
                self.storage.add_available(ip)
            except AddressAlreadyAllocated:
                pass

        if skipped:
            logger.warning(
                "Releasing %s: %d address(es) outside every managed CIDR were not restored",
                key, skipped,
            )

        self.storage.deallocate(network_addr)
        logger.info("Released CIDR %s", key)

    # ---------- Reporting ----------
    def get_available_cidrs(self, cancel=None) -> list[str]:
        _check_cancelled(cancel)
        return available_cidrs(self.storage)

    def get_used_cidrs(self, cancel=None) -> dict[str, str]:
        _check_cancelled(cancel)
        return used_cidrs(self.storage)

    def available_count(self, cancel=None) -> int:
        _check_cancelled(cancel)
        return self.storage.count_available()

    def allocated_count(self, cancel=None) -> int:
        _check_cancelled(cancel)
        return self.storage.count_allocated()

    def snapshot(self, cancel=None) -> StatusSnapshot:
        return StatusSnapshot(
            managed_cidrs=self.get_managed_cidrs(cancel=cancel),
            used_cidrs=self.get_used_cidrs(cancel=cancel),
            available_count=self.available_count(cancel=cancel),
            allocated_count=self.allocated_count(cancel=cancel),
            available_cidrs=self.get_available_cidrs(cancel=cancel),
        )

    def report(self, cancel=None) -> str:
        return format_snapshot(self.snapshot(cancel=cancel))

    # ---------- Internals ----------
    def _rollback(self, operation: str, ips, undo) -> Rollback:
        rollback = Rollback(operation=operation)
        for ip in ips:
            rollback.attempted += 1
            try:
                undo(ip)
            except Exception as e:
                rollback.failures.append((ip, e))
                logger.error("%s: rollback of %s failed: %s", operation, ip, e)
        return rollback


def _is_cidr(value: str) -> bool:
    try:
        parse_cidr(value)
    except InvalidCIDR:
        return False
    return True
