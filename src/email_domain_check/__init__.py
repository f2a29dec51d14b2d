"""Resolve and validate email authentication DNS records for a domain."""

from .address import Address, IPKind
from .checker import DomainChecker
from .config import CheckerOptions, load_options
from .mta_sts import MtaStsPolicy
from .resolver import DNSResolver, MxRecord, ResolverKind

__version__ = "0.1.0"

__all__ = [
    "Address",
    "CheckerOptions",
    "DNSResolver",
    "DomainChecker",
    "IPKind",
    "MtaStsPolicy",
    "MxRecord",
    "ResolverKind",
    "load_options",
]
