"""Tests for MTA-STS policy parsing, fetching and MX filtering."""

import asyncio

from email_domain_check.mta_sts import (
    MtaStsPolicy,
    filter_mx,
    get_mta_sts_policy,
    is_mx_allowed,
    parse_mta_sts_policy,
)
from email_domain_check.resolver import MxRecord

POLICY_TEXT = """version: STSv1
mode: enforce
mx: mail.example.com
mx: *.backup.example.com
max_age: 604800
"""

MX_RECORDS = [
    MxRecord(exchange="mail.example.com", priority=10),
    MxRecord(exchange="evil.example.com", priority=20),
]


class TestParsePolicy:
    """Test policy file parsing."""

    def test_parse_complete_policy(self):
        """Test every field is read."""
        policy = parse_mta_sts_policy(POLICY_TEXT)
        assert policy == MtaStsPolicy(
            version="STSv1",
            mode="enforce",
            max_age=604800,
            mx=["mail.example.com", "*.backup.example.com"],
        )

    def test_crlf_comments_and_case(self):
        """Test CRLF line endings, comments and key case."""
        text = "# comment\r\nVersion: STSv1\r\nMODE: testing\r\nmx: mx.example.com\r\nmax_age: 86400\r\n"
        policy = parse_mta_sts_policy(text)
        assert policy is not None
        assert policy.mode == "testing"

    def test_missing_field(self):
        """Test a policy without max_age is rejected."""
        assert parse_mta_sts_policy("version: STSv1\nmode: enforce\nmx: mail.example.com\n") is None

    def test_invalid_mode(self):
        """Test an unknown mode is rejected."""
        text = POLICY_TEXT.replace("enforce", "strict")
        assert parse_mta_sts_policy(text) is None


class TestFilterMx:
    """Test MX filtering per policy mode."""

    def test_enforce_keeps_allowed_hosts(self):
        """Test enforce mode drops hosts outside the policy."""
        policy = MtaStsPolicy(version="STSv1", mode="enforce", max_age=86400, mx=["mail.example.com"])
        assert filter_mx(MX_RECORDS, policy) == [MxRecord(exchange="mail.example.com", priority=10)]

    def test_enforce_without_match_blocks_delivery(self):
        """Test enforce mode returns nothing when no host is allowed."""
        policy = MtaStsPolicy(version="STSv1", mode="enforce", max_age=86400, mx=["other.example.org"])
        assert filter_mx(MX_RECORDS, policy) == []

    def test_testing_returns_everything(self):
        """Test testing mode only reports blocked hosts."""
        policy = MtaStsPolicy(version="STSv1", mode="testing", max_age=86400, mx=["mail.example.com"])
        assert filter_mx(MX_RECORDS, policy) == MX_RECORDS

    def test_none_mode_and_no_policy(self):
        """Test none mode and a missing policy leave records untouched."""
        policy = MtaStsPolicy(version="STSv1", mode="none", max_age=86400, mx=["x.example.org"])
        assert filter_mx(MX_RECORDS, policy) == MX_RECORDS
        assert filter_mx(MX_RECORDS, None) == MX_RECORDS

    def test_wildcard_pattern(self):
        """Test wildcard patterns match by suffix."""
        policy = MtaStsPolicy(version="STSv1", mode="enforce", max_age=1, mx=["*.example.com"])
        assert is_mx_allowed("mx1.example.com", policy)
        assert not is_mx_allowed("example.com", policy)
        assert not is_mx_allowed("mx1.example.com.evil.org", policy)

    def test_patterns_match_case_insensitively(self):
        """Test mixed-case policy patterns still allow lowercase MX hosts."""
        policy = parse_mta_sts_policy(
            "version: STSv1\nmode: enforce\nmx: Mail.Example.COM\nmx: *.Backup.Example.com\nmax_age: 86400\n"
        )
        assert policy.mx == ["mail.example.com", "*.backup.example.com"]
        records = MX_RECORDS + [MxRecord(exchange="MX1.backup.example.com.", priority=30)]
        assert filter_mx(records, policy) == [records[0], records[2]]


class TestGetPolicy:
    """Test policy download with an injected fetcher."""

    def test_fetches_well_known_url(self):
        """Test the policy URL and parsing."""
        requested = []

        async def fetch(url, timeout):
            requested.append(url)
            return POLICY_TEXT.encode(), None

        policy = asyncio.run(get_mta_sts_policy("user@Example.com", fetch=fetch))
        assert requested == ["https://mta-sts.example.com/.well-known/mta-sts.txt"]
        assert policy.mode == "enforce"

    def test_fetch_failure_is_none(self):
        """Test download errors yield no policy."""

        async def fetch(url, timeout):
            return None, "HTTP 404"

        assert asyncio.run(get_mta_sts_policy("example.com", fetch=fetch)) is None

    def test_ip_target_is_none(self):
        """Test IP targets have no MTA-STS policy."""

        async def fetch(url, timeout):
            raise AssertionError("must not fetch")

        assert asyncio.run(get_mta_sts_policy("192.0.2.1", fetch=fetch)) is None
