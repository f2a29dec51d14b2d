"""Async DNS resolver handle used by the domain checker."""

import logging
from dataclasses import dataclass, field
from enum import Enum

import dns.asyncresolver
import dns.resolver

logger = logging.getLogger(__name__)

# Authoritative "nothing here" answers; every other DNS error is transient
EMPTY_ANSWER_ERRORS = (dns.resolver.NoAnswer, dns.resolver.NXDOMAIN)


class ResolverKind(Enum):
    """Where a resolver's nameservers came from."""

    SYSTEM = 0
    CUSTOM = 1
    FAILOVER = 2
    FAILOVER_SYSTEM = 3
    HOST_NAME_SERVER = 4


@dataclass(frozen=True)
class MxRecord:
    """A single MX answer."""

    exchange: str
    priority: int


@dataclass
class DNSResolver:
    """
    Wraps a dnspython async resolver with diagnostics metadata.

    Attributes:
        resolver: Underlying dnspython resolver
        kind: Origin of the configured nameservers
        ns_hosts: Nameserver hostnames a HOST_NAME_SERVER resolver was pinned to
        tries: Attempts budget folded into the resolver lifetime
    """

    resolver: dns.asyncresolver.Resolver
    kind: ResolverKind = ResolverKind.SYSTEM
    ns_hosts: list[str] = field(default_factory=list)
    tries: int = 1

    @property
    def nameservers(self) -> list[str]:
        return [str(ns) for ns in self.resolver.nameservers]

    @property
    def timeout(self) -> float:
        return self.resolver.timeout

    async def _resolve(self, hostname: str, rdtype: str) -> dns.resolver.Answer:
        logger.debug(f"{self.kind.name} resolver: {rdtype} {hostname} via {self.nameservers}")
        return await self.resolver.resolve(hostname, rdtype, search=False)

    async def resolve_mx(self, hostname: str) -> list[MxRecord]:
        answers = await self._resolve(hostname, "MX")
        return [
            MxRecord(
                exchange=rdata.exchange.to_text(omit_final_dot=True).lower(),
                priority=rdata.preference,
            )
            for rdata in answers
        ]

    async def resolve_txt(self, hostname: str) -> list[str]:
        """Return one string per TXT record, character-strings concatenated."""
        answers = await self._resolve(hostname, "TXT")
        return [b"".join(rdata.strings).decode("utf-8", errors="replace") for rdata in answers]

    async def resolve_ns(self, hostname: str) -> list[str]:
        answers = await self._resolve(hostname, "NS")
        return [rdata.target.to_text(omit_final_dot=True).lower() for rdata in answers]

    async def resolve_a(self, hostname: str) -> list[str]:
        answers = await self._resolve(hostname, "A")
        return [rdata.address for rdata in answers]

    async def resolve_aaaa(self, hostname: str) -> list[str]:
        answers = await self._resolve(hostname, "AAAA")
        return [rdata.address for rdata in answers]
