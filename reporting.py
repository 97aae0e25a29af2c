# reporting.py
"""Block-level views derived from the flat per-address pool state."""
from schemas import StatusSnapshot, UsedCIDR
from storage import IPStorage
from utils import group_by_supernet, ip_sort_key

SUMMARY_PREFIX = 24


def available_cidrs(storage: IPStorage) -> list[str]:
    """
    Groups every available address into its /24.
    This is an overview only: a listed /24 may be mostly allocated.
    """
    return group_by_supernet(storage.list_available(), prefixlen=SUMMARY_PREFIX)


def used_cidrs(storage: IPStorage) -> dict[str, str]:
    result = {}
    allocated = storage.list_allocated()
    for ip in sorted(allocated, key=ip_sort_key):
        used = UsedCIDR.parse(allocated[ip])
        if used is not None:
            result[used.cidr] = used.description
    return result


def format_snapshot(snapshot: StatusSnapshot) -> str:
    lines = ["CIDRGuardian status", "Managed CIDRs:"]
    if snapshot.managed_cidrs:
        lines += [f"  {cidr} - {desc}" for cidr, desc in snapshot.managed_cidrs.items()]
    else:
        lines.append("  none")

    lines += ["", "Allocated CIDRs:"]
    if snapshot.used_cidrs:
        lines += [f"  {cidr} - {desc}" for cidr, desc in snapshot.used_cidrs.items()]
    else:
        lines.append("  none")

    lines += [
        "",
        "IP counts:",
        f"  available: {snapshot.available_count}",
        f"  allocated: {snapshot.allocated_count}",
        "",
        "Available CIDR overview:",
    ]
    if snapshot.available_cidrs:
        lines += [f"  {cidr}" for cidr in snapshot.available_cidrs]
    else:
        lines.append("  none")

    return "\n".join(lines) + "\n"
