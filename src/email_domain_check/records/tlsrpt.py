"""SMTP TLS Reporting (RFC 8460) record parsing."""

from dataclasses import dataclass
from typing import ClassVar

from .base import TagListRecord, TXTRecordKind, split_list


@dataclass
class TLSRPTRecord(TagListRecord):
    """Represents the ``_smtp._tls`` reporting record."""

    kind: ClassVar[TXTRecordKind] = TXTRecordKind.TLSRPTV1
    KNOWN_TAGS: ClassVar[tuple[str, ...]] = ("v", "rua")
    VERSION: ClassVar[str] = "TLSRPTv1"

    rua: str = ""

    def apply_tag(self, key: str, value: str) -> None:
        self.rua = value

    def known_parts(self) -> list[str]:
        return [f"rua={self.rua}"] if self.rua else []

    @property
    def reporting_addresses(self) -> list[str]:
        return split_list(self.rua, ",")
