"""Domain checker: DNS lookups with failover, typed TXT records and BIMI checks."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import dns.exception

from .address import Address, Target
from .bimi.root_store import TrustStore
from .bimi.validator import BimiValidator
from .checks.bimi import BimiCheckResult
from .checks.spf import SpfCheckResult, check_spf
from .config import CheckerOptions
from .constants import BIMI_LABEL, DKIM_LABEL, DMARC_LABEL, MTA_STS_LABEL, TLSRPT_LABEL
from .dns_utils import create_resolver
from .http_utils import Fetcher, make_fetcher
from .mta_sts import MtaStsPolicy, filter_mx, get_mta_sts_policy
from .ns_locator import NameServerLocator
from .records import (
    BIMIRecord,
    DKIMRecord,
    DMARCRecord,
    KVRecord,
    SPFRecord,
    STSRecord,
    TLSRPTRecord,
    TXTQueryResult,
    classify,
)
from .resolver import EMPTY_ANSWER_ERRORS, DNSResolver, MxRecord, ResolverKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DomainChecker:
    """
    Resolve and validate email-authentication records of a target.

    A target is a hostname, an email address, an IP literal, a URL or an
    Address. Lookups for record kinds that only exist below a domain name
    (DKIM, DMARC, MTA-STS, BIMI, TLS-RPT) return None for IP targets.
    """

    def __init__(
        self,
        options: CheckerOptions | None = None,
        fetch: Fetcher | None = None,
        trust_store: TrustStore | None = None,
    ):
        """
        Initialize the checker.

        Args:
            options: Checker options (default: CheckerOptions())
            fetch: HTTPS download function (default: httpx based)
            trust_store: VMC trust anchors (default: process-wide store
                loaded from options.root_certs_dir)
        """
        self.options = options or CheckerOptions()
        self.fetch = fetch or make_fetcher(self.options.user_agent)

        self.resolver = create_resolver(
            nameservers=self.options.server,
            timeout=self.options.dns_timeout,
            tries=self.options.tries,
        )
        self.failover_resolvers = self._create_failover_resolvers()

        self.ns_locator = NameServerLocator(
            self.resolver,
            timeout=self.options.dns_timeout,
            tries=self.options.tries,
            ignore_ipv6=self.options.ignore_ipv6,
        )
        self.bimi_validator = BimiValidator(
            fetch=self.fetch,
            trust_store=trust_store,
            timeout=self.options.http_timeout,
            root_certs_dir=self.options.root_certs_dir,
        )

    def _create_failover_resolvers(self) -> list[DNSResolver]:
        servers = self.options.server or []
        resolvers = []
        for group in self.options.failover_servers:
            if set(group) & set(servers):
                logger.debug(f"Skipping failover group {group}: overlaps primary servers")
                continue
            resolvers.append(
                create_resolver(
                    nameservers=group,
                    timeout=self.options.dns_timeout,
                    tries=self.options.tries,
                    kind=ResolverKind.FAILOVER,
                )
            )

        if servers:
            resolvers.append(
                create_resolver(
                    timeout=self.options.dns_timeout,
                    tries=self.options.tries,
                    kind=ResolverKind.FAILOVER_SYSTEM,
                )
            )
        return resolvers

    async def _resolve(
        self,
        addr: Address,
        query: Callable[[DNSResolver], Awaitable[T]],
        empty: T,
        prefer_domain_ns: bool = False,
    ) -> tuple[T, DNSResolver]:
        """
        Run a query on the primary resolver, then on each failover resolver.

        NXDOMAIN and NODATA end the lookup with ``empty``. Other DNS errors
        move on to the next resolver; the last one is raised when every
        resolver failed.
        """
        if prefer_domain_ns or self.options.use_domain_ns:
            primary = await self.ns_locator.locate(addr)
        else:
            primary = self.resolver

        attempts = [primary]
        if not prefer_domain_ns:
            attempts.extend(self.failover_resolvers)

        last_error: dns.exception.DNSException | None = None
        for resolver in attempts:
            try:
                return await query(resolver), resolver
            except EMPTY_ANSWER_ERRORS as e:
                logger.debug(f"No {addr.hostname} records ({resolver.kind.name}): {e}")
                return empty, resolver
            except dns.exception.DNSException as e:
                logger.debug(f"{resolver.kind.name} resolver failed for {addr.hostname}: {e}")
                last_error = e

        assert last_error is not None
        raise last_error

    # MX

    async def get_mx_records(self, target: Target, prefer_domain_ns: bool = False) -> list[MxRecord]:
        """
        Get MX records sorted by priority, MTA-STS filtered when enabled.

        Raises:
            dns.exception.DNSException: When every resolver failed
        """
        addr = Address.load(target)
        if addr.is_ip:
            return []

        records, _ = await self._resolve(
            addr, lambda r: r.resolve_mx(addr.hostname), [], prefer_domain_ns
        )
        records = sorted(records, key=lambda record: record.priority)
        logger.info(f"Found {len(records)} MX records for {addr.hostname}")

        if self.options.use_mta_sts and records:
            records = await self._apply_mta_sts(addr, records, prefer_domain_ns)
        return records

    async def _apply_mta_sts(
        self, addr: Address, records: list[MxRecord], prefer_domain_ns: bool
    ) -> list[MxRecord]:
        try:
            sts = await self.get_mta_sts_record(addr, prefer_domain_ns=prefer_domain_ns)
            if sts is None or not sts.id:
                return records

            policy = await self.get_mta_sts_policy(addr)
            if policy is None:
                return records
            return filter_mx(records, policy)
        except dns.exception.DNSException as e:
            logger.warning(f"MTA-STS check failed for {addr.hostname}, using all MX records: {e}")
            return records

    async def has_mx_record(self, target: Target) -> bool:
        try:
            return len(await self.get_mx_records(target)) > 0
        except dns.exception.DNSException as e:
            logger.debug(f"MX lookup failed for {target}: {e}")
            return False

    # Nameservers

    async def get_name_servers(self, target: Target) -> list[str]:
        """NS host names of the target, from the primary resolver."""
        addr = Address.load(target)
        return await self.resolver.resolve_ns(addr.hostname)

    async def get_ns_resolver(self, target: Target) -> DNSResolver:
        """Resolver pinned to the target's authoritative nameservers."""
        return await self.ns_locator.locate(target)

    # TXT

    async def get_txt_record(
        self, target: Target, prefer_domain_ns: bool = False
    ) -> TXTQueryResult | None:
        """
        Get and classify all TXT records of a name.

        Returns:
            TXTQueryResult, or None for IP targets and missing names

        Raises:
            dns.exception.DNSException: When every resolver failed
        """
        addr = Address.load(target)
        if addr.is_ip:
            return None

        answers, resolver = await self._resolve(
            addr, lambda r: r.resolve_txt(addr.hostname), None, prefer_domain_ns
        )
        if answers is None:
            return None
        return classify(answers, domain=addr.hostname, ns=resolver.ns_hosts or resolver.nameservers)

    async def _get_txt_below(
        self, target: Target, *labels: str, prefer_domain_ns: bool = False
    ) -> TXTQueryResult | None:
        addr = Address.load(target)
        if addr.is_ip or not addr.hostname:
            return None
        return await self.get_txt_record(addr.child(*labels), prefer_domain_ns=prefer_domain_ns)

    async def get_spf_record(self, target: Target, prefer_domain_ns: bool = False) -> SPFRecord | None:
        result = await self.get_txt_record(target, prefer_domain_ns=prefer_domain_ns)
        return result.get_spf_record() if result else None

    async def get_dkim_record(
        self, target: Target, selector: str | None = None, prefer_domain_ns: bool = False
    ) -> DKIMRecord | None:
        """DKIM key published at ``<selector>._domainkey.<host>``."""
        selector = selector or self.options.dkim_selector
        result = await self._get_txt_below(
            target, selector, DKIM_LABEL, prefer_domain_ns=prefer_domain_ns
        )
        return result.get_dkim_record() if result else None

    async def get_dmarc_record(
        self, target: Target, prefer_domain_ns: bool = False
    ) -> DMARCRecord | None:
        result = await self._get_txt_below(target, DMARC_LABEL, prefer_domain_ns=prefer_domain_ns)
        return result.get_dmarc_record() if result else None

    async def get_mta_sts_record(
        self, target: Target, prefer_domain_ns: bool = False
    ) -> STSRecord | None:
        result = await self._get_txt_below(target, MTA_STS_LABEL, prefer_domain_ns=prefer_domain_ns)
        return result.get_sts_record() if result else None

    async def get_mta_sts_policy(self, target: Target) -> MtaStsPolicy | None:
        return await get_mta_sts_policy(target, fetch=self.fetch, timeout=self.options.http_timeout)

    async def get_bimi_record(
        self, target: Target, selector: str | None = None, prefer_domain_ns: bool = False
    ) -> BIMIRecord | None:
        """BIMI assertion published at ``<selector>._bimi.<host>``."""
        selector = selector or self.options.bimi_selector
        result = await self._get_txt_below(
            target, selector, BIMI_LABEL, prefer_domain_ns=prefer_domain_ns
        )
        return result.get_bimi_record() if result else None

    async def get_tlsrpt_record(
        self, target: Target, prefer_domain_ns: bool = False
    ) -> TLSRPTRecord | None:
        result = await self._get_txt_below(target, TLSRPT_LABEL, prefer_domain_ns=prefer_domain_ns)
        return result.get_tlsrpt_record() if result else None

    async def get_kv_record(
        self, target: Target, key: str, prefer_domain_ns: bool = False
    ) -> KVRecord | None:
        """Last ``key=value`` TXT record with the given key, e.g. site verification tokens."""
        result = await self.get_txt_record(target, prefer_domain_ns=prefer_domain_ns)
        return result.get_single_kv_record(key) if result else None

    # Checks

    async def check_spf(self, target: Target) -> SpfCheckResult:
        """Run the SPF checklist on the target's TXT records."""
        result = await self.get_txt_record(target)
        if result is None:
            return check_spf(None, domain=Address.load(target).hostname)

        check = check_spf(result.get_spf_record(), domain=result.domain)
        check.ns = result.ns
        return check

    async def check_bimi(self, target: Target, selector: str | None = None) -> BimiCheckResult:
        """
        Run the BIMI checklist: record, logo, VMC chain and trust.

        Raises:
            dns.exception.DNSException: When the record lookup itself failed
        """
        addr = Address.load(target)
        selector = selector or self.options.bimi_selector
        result = await self._get_txt_below(addr, selector, BIMI_LABEL)

        record = result.get_bimi_record() if result else None
        domain = result.domain if result else addr.hostname
        ns = result.ns if result else []
        return await self.bimi_validator.validate(record, domain=domain, ns=ns)

    # SMTP

    async def _connect(self, host: str) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        return await asyncio.wait_for(
            asyncio.open_connection(host, self.options.delivery_port),
            timeout=self.options.smtp_timeout,
        )

    async def get_smtp_connection(
        self, target: Target
    ) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        """
        Open a TCP connection to the first reachable MX host.

        Raises:
            ConnectionError: When there is no MX, the MX is a blocked local
                address, or no MX host accepted the connection
        """
        records = await self.get_mx_records(target)
        if not records:
            raise ConnectionError(f"No MX records found for {target}")

        if self.options.block_local_ips:
            mx_addr = Address.parse(records[0].exchange)
            if mx_addr.is_reserved:
                raise ConnectionError(f"Local IP addresses are blocked: {records[0].exchange}")

        last_error: Exception | None = None
        for record in records:
            try:
                connection = await self._connect(record.exchange)
                logger.info(f"Connected to {record.exchange}:{self.options.delivery_port}")
                return connection
            except (OSError, asyncio.TimeoutError) as e:
                logger.debug(f"SMTP connection to {record.exchange} failed: {e}")
                last_error = e

        raise ConnectionError(f"Failed to connect to any MX server of {target}: {last_error}")
