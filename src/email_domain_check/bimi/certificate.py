"""Verified Mark Certificate (VMC) chain decoding and logotype inspection."""

import logging
from dataclasses import dataclass
from datetime import datetime

from asn1crypto import parser
from cryptography import x509
from cryptography.x509 import ExtensionNotFound, ObjectIdentifier

from ..checks.bimi import CertInfo
from ..constants import BIMI_SVG_MEDIA_TYPE, LOGOTYPE_EXTENSION_OID

logger = logging.getLogger(__name__)

PEM_MARKER = "-----BEGIN CERTIFICATE-----"
OID_LOGOTYPE = ObjectIdentifier(LOGOTYPE_EXTENSION_OID)

# ASN.1 classes and universal tags
CLASS_UNIVERSAL = 0
CLASS_CONTEXT = 2
TAG_SEQUENCE = 16
TAG_IA5STRING = 22


def load_chain(pem: bytes | str) -> list[x509.Certificate]:
    """
    Decode every certificate of a PEM bundle, leaf first.

    Raises:
        ValueError: If the bundle holds no certificate or a block is malformed
    """
    if isinstance(pem, str):
        pem = pem.encode("ascii", errors="ignore")
    return x509.load_pem_x509_certificates(pem)


def chain_validity(chain: list[x509.Certificate]) -> tuple[datetime, datetime]:
    """Return the window in which every certificate of the chain is valid."""
    valid_from = max(cert.not_valid_before_utc for cert in chain)
    valid_to = min(cert.not_valid_after_utc for cert in chain)
    return valid_from, valid_to


def get_cert_info(chain: list[x509.Certificate]) -> CertInfo:
    leaf = chain[0]
    valid_from, valid_to = chain_validity(chain)
    algorithm = leaf.signature_algorithm_oid
    return CertInfo(
        subject=leaf.subject.rfc4514_string(),
        issuer=leaf.issuer.rfc4514_string(),
        serial=leaf.serial_number,
        algorithm=getattr(algorithm, "_name", None) or algorithm.dotted_string,
        valid_from=valid_from,
        valid_to=valid_to,
    )


def get_logotype_extension(cert: x509.Certificate) -> bytes | None:
    """Return the DER payload of the logotype extension, if present."""
    try:
        extension = cert.extensions.get_extension_for_oid(OID_LOGOTYPE)
    except ExtensionNotFound:
        return None
    return extension.value.value


@dataclass
class _Node:
    """A decoded ASN.1 TLV element."""

    class_: int
    constructed: bool
    tag: int
    contents: bytes

    def is_universal(self, tag: int) -> bool:
        return self.class_ == CLASS_UNIVERSAL and self.tag == tag

    def is_context(self, tag: int) -> bool:
        return self.class_ == CLASS_CONTEXT and self.tag == tag

    @property
    def is_sequence(self) -> bool:
        return self.constructed and self.is_universal(TAG_SEQUENCE)

    def children(self) -> list["_Node"]:
        if not self.constructed:
            return []
        return _decode_all(self.contents)


def _decode(data: bytes) -> tuple[_Node, int]:
    class_, method, tag, header, contents, trailer = parser.parse(data)
    consumed = len(header) + len(contents) + len(trailer)
    return _Node(class_, method == 1, tag, contents), consumed


def _decode_all(data: bytes) -> list[_Node]:
    nodes = []
    offset = 0
    while offset < len(data):
        node, consumed = _decode(data[offset:])
        nodes.append(node)
        offset += consumed
    return nodes


def _has_svg_media_type(images: list[_Node]) -> bool:
    for image in images:
        if not image.is_sequence:
            continue
        members = image.children()
        if not members:
            continue

        first = members[0]
        media_type = None
        if first.is_sequence:
            nested = first.children()
            if nested:
                media_type = nested[0]
        elif first.is_universal(TAG_IA5STRING):
            media_type = first

        if media_type is not None and media_type.is_universal(TAG_IA5STRING):
            if media_type.contents.decode("ascii", errors="replace") == BIMI_SVG_MEDIA_TYPE:
                return True
    return False


def validate_logotype_extension(der: bytes, logs: list[str]) -> bool:
    """
    Walk the logotype extension down to an ``image/svg+xml`` entry.

    Path: SEQUENCE -> [2] subjectLogo -> [0] direct -> LogotypeData SEQUENCE
    -> image SEQUENCE -> entry whose media type is ``image/svg+xml``.
    Each failed step appends its own diagnostic to ``logs``.
    """
    try:
        root, _ = _decode(der)
        if not root.is_sequence:
            logs.append("VMC extension is not a valid ASN.1 SEQUENCE.")
            return False

        subject_logo = next((node for node in root.children() if node.is_context(2)), None)
        if subject_logo is None:
            logs.append("VMC extension does not contain a subjectLogo (tag [2]).")
            return False

        logotype_info = subject_logo.children()
        if not logotype_info:
            logs.append("subjectLogo is empty or invalid.")
            return False

        direct = logotype_info[0]
        if not direct.is_context(0):
            logs.append("subjectLogo must be of type direct (tag [0]).")
            return False

        direct_members = direct.children()
        if not direct_members:
            logs.append("LogotypeData is empty or invalid.")
            return False

        logotype_data = direct_members[0]
        if not logotype_data.is_sequence:
            logs.append("LogotypeData must be a SEQUENCE.")
            return False

        image_seq = next((node for node in logotype_data.children() if node.is_sequence), None)
        if image_seq is None:
            logs.append("LogotypeData does not contain an image sequence.")
            return False

        if not _has_svg_media_type(image_seq.children()):
            logs.append(
                f'VMC subjectLogo does not contain an entry with mediaType "{BIMI_SVG_MEDIA_TYPE}".'
            )
            return False

    except ValueError as e:
        logs.append(f"Failed to parse VMC extension ASN.1: {e}")
        return False

    return True
