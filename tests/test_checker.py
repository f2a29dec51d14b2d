"""Tests for DomainChecker lookups, failover and checks."""

import asyncio

import dns.resolver
import pytest

from email_domain_check.checker import DomainChecker
from email_domain_check.checks import CheckStatus
from email_domain_check.config import CheckerOptions
from email_domain_check.ns_locator import NameServerLocator
from email_domain_check.resolver import MxRecord, ResolverKind

POLICY = b"version: STSv1\nmode: enforce\nmx: mail.example.com\nmax_age: 86400\n"


async def no_fetch(url, timeout):
    return None, "offline"


def make_checker(primary, failover=(), fetch=no_fetch, **options):
    """Checker whose resolvers are replaced by scripted ones."""
    checker = DomainChecker(CheckerOptions(**options), fetch=fetch)
    checker.resolver = primary
    checker.failover_resolvers = list(failover)
    checker.ns_locator = NameServerLocator(primary)
    return checker


class TestFailover:
    """Test the resolver failover order."""

    def test_nxdomain_does_not_fail_over(self, fake_resolver):
        """Test a definitive empty answer ends the lookup."""
        primary = fake_resolver()
        backup = fake_resolver(kind=ResolverKind.FAILOVER, answers={"txt": {"example.com": ["v=spf1 -all"]}})
        checker = make_checker(primary, [backup])
        assert asyncio.run(checker.get_txt_record("example.com")) is None
        assert backup.calls == []

    def test_server_failure_fails_over(self, fake_resolver):
        """Test a failing primary is replaced by the next resolver."""
        primary = fake_resolver(default=dns.resolver.NoNameservers())
        backup = fake_resolver(
            kind=ResolverKind.FAILOVER,
            nameservers=["1.1.1.1"],
            answers={"txt": {"example.com": ["v=spf1 -all"]}},
        )
        checker = make_checker(primary, [backup])
        result = asyncio.run(checker.get_txt_record("example.com"))
        assert result.get_spf_record().all == "fail"
        assert result.ns == ["1.1.1.1"]

    def test_mx_from_failover(self, fake_resolver):
        """Test MX records come from the failover resolver after a timeout."""
        primary = fake_resolver(default=dns.resolver.LifetimeTimeout())
        backup = fake_resolver(
            kind=ResolverKind.FAILOVER,
            answers={"mx": {"example.com": [MxRecord(exchange="mail.example.com", priority=10)]}},
        )
        checker = make_checker(primary, [backup], use_mta_sts=False)
        records = asyncio.run(checker.get_mx_records("example.com"))
        assert records == [MxRecord(exchange="mail.example.com", priority=10)]

    def test_all_resolvers_fail(self, fake_resolver):
        """Test the last error is raised when nothing answers."""
        primary = fake_resolver(default=dns.resolver.NoNameservers())
        backup = fake_resolver(kind=ResolverKind.FAILOVER, default=dns.resolver.LifetimeTimeout())
        checker = make_checker(primary, [backup])
        with pytest.raises(dns.resolver.LifetimeTimeout):
            asyncio.run(checker.get_txt_record("example.com"))

    def test_failover_groups(self):
        """Test groups overlapping the primary servers are skipped."""
        options = CheckerOptions(
            server=["8.8.8.8"],
            failover_servers=[["1.1.1.1"], ["8.8.8.8", "8.8.4.4"]],
        )
        checker = DomainChecker(options, fetch=no_fetch)
        kinds = [resolver.kind for resolver in checker.failover_resolvers]
        assert kinds == [ResolverKind.FAILOVER, ResolverKind.FAILOVER_SYSTEM]
        assert checker.failover_resolvers[0].nameservers == ["1.1.1.1"]

    def test_system_resolver_has_no_system_failover(self):
        """Test only configured groups follow a system primary."""
        checker = DomainChecker(CheckerOptions(failover_servers=[]), fetch=no_fetch)
        assert checker.failover_resolvers == []

    def test_domain_ns_skips_failover(self, fake_resolver):
        """Test preferring the domain's nameservers disables failover."""
        primary = fake_resolver(default=dns.resolver.NoNameservers())
        backup = fake_resolver(kind=ResolverKind.FAILOVER, answers={"txt": {"example.com": ["x"]}})
        checker = make_checker(primary, [backup])
        with pytest.raises(dns.resolver.NoNameservers):
            asyncio.run(checker.get_txt_record("example.com", prefer_domain_ns=True))
        assert backup.calls == []


class TestMx:
    """Test MX lookups."""

    def test_sorted_by_priority(self, fake_resolver):
        """Test records come back lowest priority first."""
        primary = fake_resolver(
            answers={
                "mx": {
                    "example.com": [
                        MxRecord(exchange="b.example.com", priority=20),
                        MxRecord(exchange="a.example.com", priority=5),
                    ]
                }
            }
        )
        checker = make_checker(primary, use_mta_sts=False)
        records = asyncio.run(checker.get_mx_records("user@example.com"))
        assert [r.exchange for r in records] == ["a.example.com", "b.example.com"]
        assert asyncio.run(checker.has_mx_record("example.com"))

    def test_ip_target(self, fake_resolver):
        """Test IP targets have no MX records."""
        primary = fake_resolver()
        checker = make_checker(primary)
        assert asyncio.run(checker.get_mx_records("192.0.2.1")) == []
        assert primary.calls == []

    def test_mta_sts_enforce_filters(self, fake_resolver):
        """Test an enforce policy drops hosts it does not list."""
        primary = fake_resolver(
            answers={
                "mx": {
                    "example.com": [
                        MxRecord(exchange="mail.example.com", priority=10),
                        MxRecord(exchange="other.example.net", priority=20),
                    ]
                },
                "txt": {"_mta-sts.example.com": ["v=STSv1; id=1"]},
            }
        )

        async def fetch(url, timeout):
            return POLICY, None

        checker = make_checker(primary, fetch=fetch, use_mta_sts=True)
        records = asyncio.run(checker.get_mx_records("example.com"))
        assert [r.exchange for r in records] == ["mail.example.com"]

    def test_mta_sts_disabled_keeps_all_hosts(self, fake_resolver):
        """Test no policy lookup happens unless MTA-STS is enabled."""
        primary = fake_resolver(
            answers={"mx": {"example.com": [MxRecord(exchange="other.example.net", priority=10)]}}
        )
        checker = make_checker(primary)
        assert len(asyncio.run(checker.get_mx_records("example.com"))) == 1
        assert ("txt", "_mta-sts.example.com") not in primary.calls

    def test_mta_sts_lookup_failure_is_fail_open(self, fake_resolver):
        """Test MX records survive a failing MTA-STS lookup."""
        primary = fake_resolver(
            answers={
                "mx": {"example.com": [MxRecord(exchange="other.example.net", priority=10)]},
                "txt": {"_mta-sts.example.com": dns.resolver.NoNameservers()},
            }
        )
        checker = make_checker(primary, use_mta_sts=True)
        records = asyncio.run(checker.get_mx_records("example.com"))
        assert [r.exchange for r in records] == ["other.example.net"]
        assert ("txt", "_mta-sts.example.com") in primary.calls

    def test_blocked_local_mx(self, fake_resolver):
        """Test reserved MX addresses are refused."""
        primary = fake_resolver(
            answers={"mx": {"example.com": [MxRecord(exchange="127.0.0.1", priority=10)]}}
        )
        checker = make_checker(primary, use_mta_sts=False, block_local_ips=True)
        with pytest.raises(ConnectionError):
            asyncio.run(checker.get_smtp_connection("example.com"))


class TestRecordLocations:
    """Test where each record kind is looked up."""

    def test_dkim_selector(self, fake_resolver):
        """Test the DKIM name is <selector>._domainkey.<host>."""
        primary = fake_resolver(
            answers={"txt": {"mail2024._domainkey.example.com": ["v=DKIM1; k=rsa; p=MIIB"]}}
        )
        checker = make_checker(primary)
        record = asyncio.run(checker.get_dkim_record("user@example.com", selector="mail2024"))
        assert record.k == "rsa"

    def test_default_selectors(self, fake_resolver):
        """Test the configured selectors are used by default."""
        primary = fake_resolver()
        checker = make_checker(primary, dkim_selector="s1", bimi_selector="brand")
        asyncio.run(checker.get_dkim_record("example.com"))
        asyncio.run(checker.get_bimi_record("example.com"))
        assert ("txt", "s1._domainkey.example.com") in primary.calls
        assert ("txt", "brand._bimi.example.com") in primary.calls

    def test_dmarc_and_tlsrpt(self, fake_resolver):
        """Test the fixed record locations."""
        primary = fake_resolver(
            answers={
                "txt": {
                    "_dmarc.example.com": ["v=DMARC1; p=reject"],
                    "_smtp._tls.example.com": ["v=TLSRPTv1; rua=mailto:tls@example.com"],
                }
            }
        )
        checker = make_checker(primary)
        assert asyncio.run(checker.get_dmarc_record("example.com")).p == "reject"
        assert asyncio.run(checker.get_tlsrpt_record("example.com")).reporting_addresses == [
            "mailto:tls@example.com"
        ]

    def test_ip_target_has_no_records(self, fake_resolver):
        """Test record lookups below an IP literal return None."""
        primary = fake_resolver()
        checker = make_checker(primary)
        assert asyncio.run(checker.get_dmarc_record("192.0.2.1")) is None
        assert asyncio.run(checker.get_txt_record("192.0.2.1")) is None
        assert primary.calls == []

    def test_kv_record(self, fake_resolver):
        """Test key/value records by key."""
        primary = fake_resolver(answers={"txt": {"example.com": ["google-site-verification=abc"]}})
        checker = make_checker(primary)
        assert asyncio.run(checker.get_kv_record("example.com", "google-site-verification")).value == "abc"


class TestChecks:
    """Test the checklist entry points."""

    def test_check_spf(self, fake_resolver):
        """Test the SPF checklist from DNS."""
        primary = fake_resolver(answers={"txt": {"example.com": ["v=spf1 mx -all"]}})
        result = asyncio.run(make_checker(primary).check_spf("example.com"))
        assert result.domain == "example.com"
        assert result.status(100) is CheckStatus.OK
        assert result.is_valid()

    def test_check_spf_missing(self, fake_resolver):
        """Test a name without TXT records fails the published check."""
        result = asyncio.run(make_checker(fake_resolver()).check_spf("example.com"))
        assert result.status(100) is CheckStatus.ERROR

    def test_check_bimi_missing(self, fake_resolver):
        """Test no BIMI record is reported by the validator."""
        result = asyncio.run(make_checker(fake_resolver()).check_bimi("example.com"))
        assert result.domain == "example.com"
        assert result.status(100) is CheckStatus.ERROR

    def test_check_bimi_logo_only(self, fake_resolver):
        """Test a logo-only record through the checker."""
        svg = b'<svg xmlns="http://www.w3.org/2000/svg" version="1.2" baseProfile="tiny-ps"><title>X</title></svg>'
        primary = fake_resolver(
            answers={"txt": {"default._bimi.example.com": ["v=BIMI1; l=https://example.com/logo.svg"]}}
        )

        async def fetch(url, timeout):
            return svg, None

        result = asyncio.run(make_checker(primary, fetch=fetch).check_bimi("example.com"))
        assert result.domain == "default._bimi.example.com"
        assert result.status(250) is CheckStatus.OK
        assert result.status(300) is CheckStatus.NONE
