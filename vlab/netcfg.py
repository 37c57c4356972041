from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Iterator, List, Optional, Tuple
import ipaddress
import itertools

from .errors import InvalidNetworkConfigError


SUBNET_MISMATCH_DETAIL = "IP not in gateway's subnet"

_FIELDS = (
    ("ip", "IP address"),
    ("subnet_mask", "subnet mask"),
    ("gateway", "gateway"),
    ("dns", "DNS server"),
)


@dataclass(frozen=True)
class NetworkConfig:
    ip: str
    subnet_mask: str
    gateway: str
    dns: str


def _octets(text: str) -> Optional[List[int]]:
    parts = (text or "").split(".")
    if len(parts) != 4:
        return None
    out: List[int] = []
    for p in parts:
        if not (p.isascii() and p.isdigit()):
            return None
        n = int(p)
        # "01" or "256" fail the round trip / range check.
        if n > 255 or str(n) != p:
            return None
        out.append(n)
    return out


def is_valid_ipv4(text: str) -> bool:
    return _octets(text) is not None


def same_subnet(ip: str, gateway: str, mask: str) -> bool:
    a, b, m = _octets(ip), _octets(gateway), _octets(mask)
    if a is None or b is None or m is None:
        return False
    return all((x & k) == (y & k) for x, y, k in zip(a, b, m))


def validate_network_config(cfg: NetworkConfig) -> NetworkConfig:
    """Raise InvalidNetworkConfigError on the first problem found."""
    for attr, title in _FIELDS:
        value = getattr(cfg, attr)
        if not is_valid_ipv4(value):
            raise InvalidNetworkConfigError(
                attr,
                InvalidNetworkConfigError.MALFORMED,
                f"Invalid {title} '{value}': expected four numbers 0-255 separated by dots.",
            )
    if not same_subnet(cfg.ip, cfg.gateway, cfg.subnet_mask):
        raise InvalidNetworkConfigError("ip", InvalidNetworkConfigError.SUBNET_MISMATCH, SUBNET_MISMATCH_DETAIL)
    return cfg


def is_valid_config(cfg: NetworkConfig) -> bool:
    try:
        validate_network_config(cfg)
    except InvalidNetworkConfigError:
        return False
    return True


def _template_ints(template: NetworkConfig) -> Tuple[int, int]:
    for attr in ("subnet_mask", "gateway", "dns"):
        value = getattr(template, attr)
        if not is_valid_ipv4(value):
            raise InvalidNetworkConfigError(attr, InvalidNetworkConfigError.MALFORMED, f"Invalid {attr} '{value}'.")
    mask = int(ipaddress.IPv4Address(template.subnet_mask))
    gateway = int(ipaddress.IPv4Address(template.gateway))
    return mask, gateway


def _host_addresses(mask: int, gateway: int, host_offset: int) -> Iterator[int]:
    """Yield addresses sharing the gateway's masked bits, lazily.

    Host numbers are spread over the zero bits of the mask, lowest bit
    first, so a contiguous mask gives plain ``network + n`` and a
    non-contiguous one still satisfies the octet-wise subnet rule.
    Host number 0 and the all-ones host number are never yielded.
    """
    free_bits = [b for b in range(32) if not (mask >> b) & 1]
    last = (1 << len(free_bits)) - 1
    prefix = gateway & mask
    start = max(host_offset, 1)
    for n in itertools.chain(range(start, last), range(1, min(start, last))):
        addr = prefix
        for i, bit in enumerate(free_bits):
            if (n >> i) & 1:
                addr |= 1 << bit
        yield addr


def synthesize_config(template: NetworkConfig, taken: Iterable[str] = (), host_offset: int = 10) -> NetworkConfig:
    """Pick a free host address inside the template's subnet.

    Scans upward from host number ``host_offset`` first, then the lower hosts.
    The network, broadcast and gateway addresses and everything in ``taken``
    are skipped, so the result always passes validate_network_config.
    Candidates are generated one at a time; a /8 or a 0.0.0.0 mask costs no
    more than a /24.
    """
    mask, gateway = _template_ints(template)
    used = {str(t) for t in taken}
    used.add(template.gateway)

    for addr in _host_addresses(mask, gateway, host_offset):
        ip = str(ipaddress.IPv4Address(addr))
        if ip not in used:
            return replace(template, ip=ip)

    network = ipaddress.IPv4Address(gateway & mask)
    raise InvalidNetworkConfigError(
        "ip",
        InvalidNetworkConfigError.POOL_EXHAUSTED,
        f"No free address left in {network}/{template.subnet_mask}.",
    )
