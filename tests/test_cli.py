"""Tests for the command-line interface."""

import json

import dns.resolver
import pytest
import typer
from typer.testing import CliRunner

from email_domain_check import cli
from email_domain_check.checker import DomainChecker
from email_domain_check.cli import app, validate_nameservers, validate_verbosity
from email_domain_check.config import CheckerOptions
from email_domain_check.ns_locator import NameServerLocator
from email_domain_check.resolver import MxRecord

runner = CliRunner()


@pytest.fixture
def use_resolver(monkeypatch):
    """Make every command use a checker backed by the given resolver."""

    def install(resolver, **options):
        async def fetch(url, timeout):
            return None, "offline"

        def build(server, verbosity, config_file, **overrides):
            merged = {k: v for k, v in overrides.items() if v is not None}
            checker = DomainChecker(CheckerOptions(**{**options, **merged}), fetch=fetch)
            checker.resolver = resolver
            checker.failover_resolvers = []
            checker.ns_locator = NameServerLocator(resolver)
            return checker

        monkeypatch.setattr(cli, "_build_checker", build)

    return install


class TestValidation:
    """Test option callbacks."""

    def test_verbosity(self):
        assert validate_verbosity("DEBUG") == "debug"
        with pytest.raises(typer.BadParameter):
            validate_verbosity("loud")

    def test_nameservers(self):
        assert validate_nameservers(["1.1.1.1", "2001:4860:4860::8888"]) == [
            "1.1.1.1",
            "2001:4860:4860::8888",
        ]
        assert validate_nameservers(None) is None
        with pytest.raises(typer.BadParameter):
            validate_nameservers(["dns.example.com"])


class TestCLIEntryPoint:
    """Test help and argument handling."""

    def test_cli_help(self):
        """Test the command list is shown."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("mx", "spf", "dkim", "dmarc", "mta-sts", "bimi", "tlsrpt"):
            assert command in result.stdout

    def test_invalid_server(self):
        """Test a hostname is rejected as --server."""
        result = runner.invoke(app, ["spf", "example.com", "--server", "dns.example.com"])
        assert result.exit_code != 0

    def test_invalid_verbosity(self):
        """Test an unknown verbosity is rejected."""
        result = runner.invoke(app, ["spf", "example.com", "-v", "loud"])
        assert result.exit_code != 0


class TestCommands:
    """Test commands against scripted DNS answers."""

    def test_mx_json(self, use_resolver, fake_resolver):
        """Test MX records as JSON."""
        use_resolver(
            fake_resolver(
                answers={"mx": {"example.com": [MxRecord(exchange="mail.example.com", priority=10)]}}
            )
        )
        result = runner.invoke(app, ["mx", "example.com", "--json", "--no-mta-sts"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == [{"exchange": "mail.example.com", "priority": 10}]

    def test_mx_missing(self, use_resolver, fake_resolver):
        """Test no MX records exit with 1."""
        use_resolver(fake_resolver())
        result = runner.invoke(app, ["mx", "example.com"])
        assert result.exit_code == 1
        assert "No MX records" in result.stdout

    def test_spf_checklist(self, use_resolver, fake_resolver):
        """Test a passing SPF checklist."""
        use_resolver(fake_resolver(answers={"txt": {"example.com": ["v=spf1 mx -all"]}}))
        result = runner.invoke(app, ["spf", "example.com", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["valid"] is True
        assert data["checks"][0]["status"] == "OK"

    def test_spf_failure_exit_code(self, use_resolver, fake_resolver):
        """Test a failing checklist exits with 1."""
        use_resolver(fake_resolver())
        result = runner.invoke(app, ["spf", "example.com"])
        assert result.exit_code == 1

    def test_dmarc_record(self, use_resolver, fake_resolver):
        """Test the DMARC record view."""
        use_resolver(fake_resolver(answers={"txt": {"_dmarc.example.com": ["v=DMARC1; p=reject"]}}))
        result = runner.invoke(app, ["dmarc", "example.com"])
        assert result.exit_code == 0
        assert "v=DMARC1; p=reject" in result.stdout

    def test_dkim_missing(self, use_resolver, fake_resolver):
        """Test a missing DKIM key exits with 1."""
        use_resolver(fake_resolver())
        result = runner.invoke(app, ["dkim", "example.com", "--selector", "s1"])
        assert result.exit_code == 1
        assert "No DKIM record" in result.stdout

    def test_txt_json(self, use_resolver, fake_resolver):
        """Test classified TXT records as JSON."""
        use_resolver(
            fake_resolver(answers={"txt": {"example.com": ["v=spf1 -all", "google-site-verification=x"]}})
        )
        result = runner.invoke(app, ["txt", "example.com", "--json"])
        assert result.exit_code == 0
        kinds = [record["kind"] for record in json.loads(result.stdout)]
        assert len(kinds) == 2

    def test_dns_failure(self, use_resolver, fake_resolver):
        """Test resolution failures exit with 1."""
        use_resolver(fake_resolver(default=dns.resolver.NoNameservers()))
        result = runner.invoke(app, ["tlsrpt", "example.com"])
        assert result.exit_code == 1
        assert "DNS lookup failed" in result.stdout

    def test_version(self):
        """Test the version command."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "email-domain-check" in result.stdout
