import ipaddress

from errors import InvalidAddress, InvalidCIDR


def parse_cidr(cidr: str) -> ipaddress.IPv4Network:
    """
    Parses an "a.b.c.d/n" string into an IPv4Network.
    Host bits are allowed and masked off, so "10.0.0.7/24" yields 10.0.0.0/24.
    """
    if not isinstance(cidr, str) or "/" not in cidr:
        raise InvalidCIDR(f"Invalid CIDR format: {cidr!r}")
    try:
        return ipaddress.IPv4Network(cidr.strip(), strict=False)
    except ValueError as e:
        raise InvalidCIDR(f"Invalid CIDR format {cidr!r}: {e}") from e


def parse_ip(ip: str) -> ipaddress.IPv4Address:
    try:
        return ipaddress.IPv4Address(ip)
    except ValueError as e:
        raise InvalidAddress(f"Invalid IP address format: {ip!r}") from e


def clone_ip(ip) -> bytearray:
    """Returns a private, mutable copy of a packed IPv4 address."""
    if isinstance(ip, ipaddress.IPv4Address):
        ip = ip.packed
    return bytearray(ip)


def next_ip(ip: bytearray) -> None:
    """
    Increments a packed address in place, carrying from the last byte.
    255.255.255.255 wraps around to 0.0.0.0.
    """
    for i in range(len(ip) - 1, -1, -1):
        ip[i] = (ip[i] + 1) & 0xFF
        if ip[i] > 0:
            break


def is_aligned(ip, prefixlen: int) -> bool:
    """True when ip is a valid network address for a /prefixlen block."""
    value = int(ipaddress.IPv4Address(ip))
    mask = (0xFFFFFFFF << (32 - prefixlen)) & 0xFFFFFFFF
    return value == value & mask


def ip_sort_key(ip: str) -> int:
    return int(ipaddress.IPv4Address(ip))


def iter_addresses(network: ipaddress.IPv4Network):
    """Yields every address of the block as a string, lowest first."""
    ip = clone_ip(network.network_address)
    for _ in range(network.num_addresses):
        yield str(ipaddress.IPv4Address(bytes(ip)))
        next_ip(ip)


def group_by_supernet(addresses, prefixlen: int = 24) -> list[str]:
    """
    Groups addresses into their containing fixed-size block
    and returns the distinct blocks in ascending order.
    """
    supernets = set()
    for ip in addresses:
        network = ipaddress.IPv4Network(f"{ip}/{prefixlen}", strict=False)
        supernets.add(network)
    return [str(n) for n in sorted(supernets)]
