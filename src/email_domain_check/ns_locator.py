"""Locate the authoritative nameservers of a domain and pin a resolver to them."""

import asyncio
import logging

import dns.exception
import tldextract

from .address import Address, Target
from .constants import DEFAULT_DNS_TIMEOUT, DEFAULT_DNS_TRIES
from .dns_utils import create_resolver
from .resolver import DNSResolver, ResolverKind

logger = logging.getLogger(__name__)

# Bundled public suffix snapshot only; never fetched at runtime
_extract = tldextract.TLDExtract(suffix_list_urls=())


def registrable_domain(hostname: str) -> str | None:
    """Return the eTLD+1 of a hostname, or None if it has no public suffix."""
    ext = _extract(hostname)
    if not ext.domain or not ext.suffix:
        return None
    return f"{ext.domain}.{ext.suffix}"


class NameServerLocator:
    """
    Build resolvers that query a domain's own nameservers.

    The primary resolver answers the NS and address lookups. Whenever no
    nameserver address can be found the primary resolver itself is returned.
    """

    def __init__(
        self,
        primary: DNSResolver,
        timeout: float = DEFAULT_DNS_TIMEOUT,
        tries: int = DEFAULT_DNS_TRIES,
        ignore_ipv6: bool = False,
    ):
        self.primary = primary
        self.timeout = timeout
        self.tries = tries
        self.ignore_ipv6 = ignore_ipv6

    async def get_name_servers(self, hostname: str) -> list[str]:
        """NS host names of ``hostname``; raises dnspython errors."""
        return await self.primary.resolve_ns(hostname)

    async def _addresses(self, ns_hosts: list[str]) -> list[str]:
        lookups = []
        for host in ns_hosts:
            lookups.append(self.primary.resolve_a(host))
            if not self.ignore_ipv6:
                lookups.append(self.primary.resolve_aaaa(host))

        ips: list[str] = []
        for answer in await asyncio.gather(*lookups, return_exceptions=True):
            if isinstance(answer, BaseException):
                logger.debug(f"Nameserver address lookup failed: {answer}")
                continue
            for ip in answer:
                if ip not in ips:
                    ips.append(ip)
        return ips

    async def _locate(self, hostname: str) -> DNSResolver | None:
        try:
            ns_hosts = await self.get_name_servers(hostname)
        except dns.exception.DNSException as e:
            logger.debug(f"NS lookup failed for {hostname}: {e}")
            return None

        ips = await self._addresses(ns_hosts)
        if not ips:
            return None

        logger.debug(f"Using authoritative nameservers for {hostname}: {', '.join(ns_hosts)}")
        return create_resolver(
            nameservers=ips,
            timeout=self.timeout,
            tries=self.tries,
            kind=ResolverKind.HOST_NAME_SERVER,
            ns_hosts=ns_hosts,
        )

    async def locate(self, target: Target) -> DNSResolver:
        """
        Return a resolver pinned to the target's authoritative nameservers.

        Climbs once to the registrable domain when the hostname itself has
        no usable nameservers. Never raises; falls back to the primary
        resolver.
        """
        try:
            addr = Address.load(target)
        except ValueError as e:
            logger.debug(f"Cannot locate nameservers for {target}: {e}")
            return self.primary

        if addr.is_ip:
            return self.primary

        resolver = await self._locate(addr.hostname)
        if resolver is not None:
            return resolver

        parent = registrable_domain(addr.hostname)
        if parent and parent != addr.hostname:
            resolver = await self._locate(parent)
            if resolver is not None:
                return resolver

        logger.debug(f"No authoritative nameserver found for {addr.hostname}, using primary resolver")
        return self.primary
