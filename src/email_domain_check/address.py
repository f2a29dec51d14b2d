"""Target normalization for hostnames, email addresses, IP literals and URLs."""

import ipaddress
import re
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit

import idna

# RFC 5321 address literal: user@[127.0.0.1] or user@[IPv6:2001:db8::1]
_ADDRESS_LITERAL = re.compile(r"^\[(?:ipv6:)?([^\]]+)\]$", re.IGNORECASE)


class IPKind(Enum):
    """Kind of IP literal a target resolved to."""

    NONE = 0
    IPV4 = 4
    IPV6 = 6


def _ip_kind(value: str) -> IPKind:
    try:
        ip = ipaddress.ip_address(value)
    except ValueError:
        return IPKind.NONE
    return IPKind.IPV4 if ip.version == 4 else IPKind.IPV6


def _encode_hostname(hostname: str) -> str:
    """Lowercase and punycode-encode a hostname, dropping a trailing dot."""
    hostname = hostname.rstrip(".")
    if not hostname:
        return hostname
    try:
        return idna.encode(hostname, uts46=True).decode("ascii").lower()
    except idna.IDNAError:
        # Labels like "_dmarc" are not valid IDNA but are valid DNS names
        return ".".join(
            label if label.isascii() else idna.encode(label, uts46=True).decode("ascii")
            for label in hostname.split(".")
        ).lower()


@dataclass(frozen=True)
class Address:
    """
    Normalized lookup target.

    Attributes:
        source: Original target string
        hostname: Lowercase, punycode-encoded hostname or bare IP literal
        ip_kind: Which IP family the hostname is, if any
        user: Local part when the target was an email address
    """

    source: str
    hostname: str
    ip_kind: IPKind = IPKind.NONE
    user: str | None = None

    @classmethod
    def parse(cls, target: str, source: str | None = None) -> "Address":
        """
        Parse a hostname, email address or IP literal.

        Raises:
            ValueError: If a bracketed address literal does not hold an IP
        """
        source = source if source is not None else target
        target = target.strip()

        user = None
        at_pos = target.find("@")
        if at_pos >= 0:
            user = target[:at_pos]
            domain_part = target[at_pos + 1 :]
        else:
            domain_part = target

        kind = _ip_kind(domain_part)
        if kind is not IPKind.NONE:
            return cls(source=source, hostname=domain_part, ip_kind=kind, user=user)

        match = _ADDRESS_LITERAL.match(domain_part)
        if match:
            literal = match.group(1)
            kind = _ip_kind(literal)
            if kind is IPKind.NONE:
                raise ValueError(f"Parse error source:{domain_part}")
            return cls(source=source, hostname=literal, ip_kind=kind, user=user)

        return cls(source=source, hostname=_encode_hostname(domain_part), user=user)

    @classmethod
    def from_url(cls, url: str) -> "Address":
        """Build an address from the host part of a URL."""
        hostname = urlsplit(url).hostname or ""
        return cls.parse(hostname, source=url)

    @classmethod
    def load(cls, target: "Target") -> "Address":
        """Normalize any supported target into an Address."""
        if isinstance(target, Address):
            return target
        if "://" in target:
            return cls.from_url(target)
        return cls.parse(target)

    @property
    def is_ip(self) -> bool:
        return self.ip_kind is not IPKind.NONE

    @property
    def has_punycode(self) -> bool:
        return any(label.startswith("xn--") for label in self.hostname.split("."))

    @property
    def is_reserved(self) -> bool:
        """True for IP literals outside the globally routable unicast space."""
        if not self.is_ip:
            return False
        ip = ipaddress.ip_address(self.hostname)
        return not ip.is_global or ip.is_multicast

    def child(self, *labels: str) -> "Address":
        """Return the address of a name below this hostname."""
        return Address.parse(".".join([*labels, self.hostname]))

    def __str__(self) -> str:
        return self.hostname


Target = str | Address
