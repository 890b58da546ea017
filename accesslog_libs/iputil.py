"""
IP address helpers for beacon collection.

Resolves the client address of a tracking hit from proxy headers and
classifies addresses (private, loopback, link-local, public). IPv4-mapped
IPv6 addresses (``::ffff:192.0.2.1``) are treated as IPv4 throughout.
"""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

IPV4 = 4
IPV6 = 6

# Checked in order; X-Forwarded-For contributes its first (client) entry
CLIENT_IP_HEADERS = (
    "X-Forwarded-For",
    "X-Real-IP",
    "X-Client-IP",
    "CF-Connecting-IP",
    "True-Client-IP",
)

PRIVATE_NETWORKS = (
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
)

_IPV4_CANDIDATE = re.compile(r"\b(?:[0-9]{1,3}\.){3}[0-9]{1,3}\b")
_IPV6_CANDIDATE = re.compile(r"\b(?:[0-9a-fA-F]{1,4}:){7}[0-9a-fA-F]{1,4}\b")


def _parse(ip: str) -> Optional[IPAddress]:
    # Zone ids ("fe80::1%eth0") are not addresses of a remote client
    if not isinstance(ip, str) or "%" in ip:
        return None
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return None
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
        return address.ipv4_mapped
    return address


def _require(ip: str) -> IPAddress:
    address = _parse(ip)
    if address is None:
        raise ValueError(f"invalid IP address: {ip}")
    return address


def is_valid_ip(ip: str) -> bool:
    return _parse(ip) is not None


def is_valid_ipv4(ip: str) -> bool:
    return isinstance(_parse(ip), ipaddress.IPv4Address)


def is_valid_ipv6(ip: str) -> bool:
    return isinstance(_parse(ip), ipaddress.IPv6Address)


def get_ip_version(ip: str) -> int:
    """
    Return 4 or 6.

    Raises:
        ValueError: If ``ip`` is not an address
    """
    return _require(ip).version


def normalize_ip(ip: str) -> str:
    """
    Canonical text form (``"2001:DB8:0::1"`` -> ``"2001:db8::1"``).

    Raises:
        ValueError: If ``ip`` is not an address
    """
    return str(_require(ip))


def is_private_ip(ip: str) -> bool:
    """RFC 1918 IPv4 ranges, IPv6 unique-local (fc00::/7) and link-local (fe80::/10)."""
    address = _parse(ip)
    if address is None:
        return False
    return any(
        address.version == network.version and address in network
        for network in PRIVATE_NETWORKS
    )


def is_loopback_ip(ip: str) -> bool:
    address = _parse(ip)
    return address is not None and address.is_loopback


def is_link_local_ip(ip: str) -> bool:
    address = _parse(ip)
    return address is not None and address.is_link_local


def is_public_ip(ip: str) -> bool:
    """A valid address that is not private, loopback or link-local."""
    if _parse(ip) is None:
        return False
    return not (is_private_ip(ip) or is_loopback_ip(ip) or is_link_local_ip(ip))


def extract_ips(text: str) -> list[str]:
    """
    Find IP addresses in free text such as a log line.

    IPv4 matches come first, then fully expanded (eight group) IPv6
    matches; each group keeps its order of appearance.
    """
    found = [m for m in _IPV4_CANDIDATE.findall(text) if is_valid_ipv4(m)]
    found += [m for m in _IPV6_CANDIDATE.findall(text) if is_valid_ipv6(m)]
    return found


def _header(headers: Mapping[str, str], name: str) -> str:
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        value = next((v for k, v in headers.items() if k.lower() == lowered), "")
    return value or ""


def _split_host_port(remote_addr: str) -> Optional[str]:
    if remote_addr.startswith("["):
        host, sep, port = remote_addr[1:].partition("]:")
        return host if sep and port else None
    if remote_addr.count(":") == 1:
        host, _, port = remote_addr.partition(":")
        return host if port else None
    return None


def get_client_ip(headers: Mapping[str, str], remote_addr: str = "") -> str:
    """
    Resolve the client address of a request.

    Proxy headers are consulted in ``CLIENT_IP_HEADERS`` order (names match
    case-insensitively) and the first valid address wins. Otherwise the
    host part of ``remote_addr`` (``host:port``, ``[v6]:port`` or a bare
    address) is used.

    Returns:
        The address as given, or ``""`` when nothing valid is found
    """
    for name in CLIENT_IP_HEADERS:
        value = _header(headers, name)
        if not value:
            continue
        if name == "X-Forwarded-For":
            value = value.split(",")[0]
        candidate = value.strip()
        if is_valid_ip(candidate):
            return candidate

    if remote_addr:
        host = _split_host_port(remote_addr)
        if host is not None and is_valid_ip(host):
            return host
        if is_valid_ip(remote_addr):
            return remote_addr
    return ""


def is_in_subnet(ip: str, subnet: str) -> bool:
    """Check CIDR membership; invalid input on either side yields False."""
    address = _parse(ip)
    try:
        network = ipaddress.ip_network(subnet, strict=False)
    except ValueError:
        return False
    if address is None or address.version != network.version:
        return False
    return address in network


@dataclass(slots=True, frozen=True)
class SubnetInfo:
    """
    Attributes:
        network: First address of the subnet
        address: Address written in the CIDR (``"192.168.1.77/24"`` -> ``.77``)
        broadcast: Last address of an IPv4 subnet; None for IPv6
    """

    network: str
    address: str
    broadcast: Optional[str]


def get_subnet_info(subnet: str) -> SubnetInfo:
    """
    Describe a CIDR block.

    Raises:
        ValueError: If ``subnet`` is not CIDR notation
    """
    if "/" not in subnet:
        raise ValueError(f"invalid CIDR address: {subnet}")
    try:
        interface = ipaddress.ip_interface(subnet)
    except ValueError as e:
        raise ValueError(f"invalid CIDR address: {subnet}") from e

    network = interface.network
    broadcast = str(network.broadcast_address) if network.version == IPV4 else None
    return SubnetInfo(
        network=str(network.network_address),
        address=str(interface.ip),
        broadcast=broadcast,
    )


def ipv4_to_int(ip: str) -> int:
    """
    Raises:
        ValueError: If ``ip`` is not an IPv4 address
    """
    address = _parse(ip)
    if not isinstance(address, ipaddress.IPv4Address):
        raise ValueError(f"invalid IPv4 address: {ip}")
    return int(address)


def int_to_ipv4(value: int) -> str:
    """
    Raises:
        ValueError: If ``value`` does not fit in 32 bits
    """
    return str(ipaddress.IPv4Address(value))
