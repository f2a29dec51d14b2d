"""DNS resolver utilities."""

import logging

import dns.asyncresolver
import dns.resolver

from .constants import DEFAULT_DNS_PUBLIC_SERVERS, DEFAULT_DNS_TIMEOUT, DEFAULT_DNS_TRIES
from .resolver import DNSResolver, ResolverKind

logger = logging.getLogger(__name__)


def create_resolver(
    nameservers: list[str] | None = None,
    timeout: float = DEFAULT_DNS_TIMEOUT,
    tries: int = DEFAULT_DNS_TRIES,
    kind: ResolverKind | None = None,
    ns_hosts: list[str] | None = None,
) -> DNSResolver:
    """
    Create an async DNS resolver handle.

    Handles:
    - System DNS configuration with fallback to public DNS
    - Custom nameserver configuration
    - Timeout and retry budget

    Args:
        nameservers: Custom nameservers to pin the resolver to (optional).
                    If None, uses system DNS, falling back to public DNS.
        timeout: Per-server query timeout in seconds
        tries: Number of attempts; the overall lifetime is timeout * tries
        kind: Diagnostic tag, defaults to CUSTOM with nameservers else SYSTEM
        ns_hosts: Nameserver hostnames the resolver was derived from

    Returns:
        Configured DNSResolver
    """
    try:
        resolver = dns.asyncresolver.Resolver()
        if not resolver.nameservers:
            raise dns.resolver.NoResolverConfiguration("no nameservers")
    except (dns.resolver.NoResolverConfiguration, OSError):
        # System DNS not available, create unconfigured resolver
        resolver = dns.asyncresolver.Resolver(configure=False)
        logger.debug("System DNS not available, using public DNS servers")

    if nameservers:
        resolver.nameservers = list(nameservers)
        logger.debug(f"Using custom nameservers: {', '.join(nameservers)}")
    elif not resolver.nameservers:
        resolver.nameservers = list(DEFAULT_DNS_PUBLIC_SERVERS)
        logger.debug(
            f"Using fallback public DNS servers: {', '.join(DEFAULT_DNS_PUBLIC_SERVERS)}"
        )

    tries = max(tries, 1)
    resolver.timeout = timeout
    resolver.lifetime = timeout * tries

    if kind is None:
        kind = ResolverKind.CUSTOM if nameservers else ResolverKind.SYSTEM

    return DNSResolver(resolver=resolver, kind=kind, ns_hosts=list(ns_hosts or []), tries=tries)
