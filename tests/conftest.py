"""Shared fixtures: scripted DNS resolvers and throwaway certificates."""

from datetime import datetime, timedelta, timezone

import dns.resolver
import pytest
from asn1crypto import parser
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509.oid import NameOID

from email_domain_check.resolver import ResolverKind

LOGOTYPE_OID = x509.ObjectIdentifier("1.3.6.1.5.5.7.1.12")


class FakeResolver:
    """
    Stand-in for DNSResolver answering from a table.

    ``answers`` maps record type ("mx", "txt", "ns", "a", "aaaa") to a
    mapping of hostname -> answer list or exception instance. Missing
    names raise NXDOMAIN; ``default`` overrides that for every name.
    """

    def __init__(self, kind=ResolverKind.SYSTEM, nameservers=None, answers=None, default=None):
        self.kind = kind
        self.nameservers = nameservers or ["192.0.2.53"]
        self.ns_hosts = []
        self.answers = answers or {}
        self.default = default
        self.calls = []

    async def _answer(self, rdtype, hostname):
        self.calls.append((rdtype, hostname))
        table = self.answers.get(rdtype, {})
        if hostname in table:
            value = table[hostname]
        elif self.default is not None:
            value = self.default
        else:
            value = dns.resolver.NXDOMAIN()
        if isinstance(value, BaseException):
            raise value
        return list(value)

    async def resolve_mx(self, hostname):
        return await self._answer("mx", hostname)

    async def resolve_txt(self, hostname):
        return await self._answer("txt", hostname)

    async def resolve_ns(self, hostname):
        return await self._answer("ns", hostname)

    async def resolve_a(self, hostname):
        return await self._answer("a", hostname)

    async def resolve_aaaa(self, hostname):
        return await self._answer("aaaa", hostname)


@pytest.fixture
def fake_resolver():
    """Factory for FakeResolver instances."""
    return FakeResolver


def _ia5(text: str) -> bytes:
    return parser.emit(0, 0, 22, text.encode("ascii"))


def _seq(*children: bytes) -> bytes:
    return parser.emit(0, 1, 16, b"".join(children))


def _context(tag: int, *children: bytes) -> bytes:
    return parser.emit(2, 1, tag, b"".join(children))


def build_logotype_extension(media_type: str = "image/svg+xml") -> bytes:
    """DER LogotypeExtn with one direct subject logo of the given media type."""
    # HashAlgAndValue: sha256 OID and a zeroed digest
    sha256 = parser.emit(0, 0, 6, bytes.fromhex("608648016503040201"))
    digest = _seq(_seq(sha256), parser.emit(0, 0, 4, b"\x00" * 32))
    details = _seq(
        _ia5(media_type),
        _seq(digest),
        _seq(_ia5("data:image/svg+xml;base64,PHN2Zz48L3N2Zz4=")),
    )
    image = _seq(details)
    images = _seq(image)
    return _seq(_context(2, _context(0, images)))


@pytest.fixture
def logotype_der():
    """Factory for logotype extension payloads."""
    return build_logotype_extension


@pytest.fixture
def make_cert():
    """
    Factory for self-signed EC certificates.

    Keyword arguments: common_name, not_before, not_after, logotype (DER
    payload for the logotype extension, omitted when None).
    """

    def factory(
        common_name="example.com",
        not_before=None,
        not_after=None,
        logotype=None,
    ):
        now = datetime.now(timezone.utc)
        key = ec.generate_private_key(ec.SECP256R1())
        name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
        builder = (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(name)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(not_before or now - timedelta(days=1))
            .not_valid_after(not_after or now + timedelta(days=30))
            .add_extension(x509.SubjectAlternativeName([x509.DNSName(common_name)]), critical=False)
        )
        if logotype is not None:
            builder = builder.add_extension(
                x509.UnrecognizedExtension(LOGOTYPE_OID, logotype), critical=False
            )
        return builder.sign(key, hashes.SHA256())

    return factory


@pytest.fixture
def to_pem():
    """Serialize certificates into one PEM bundle."""

    def serialize(*certs):
        return b"".join(cert.public_bytes(Encoding.PEM) for cert in certs)

    return serialize
