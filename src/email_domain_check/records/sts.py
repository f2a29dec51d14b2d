"""MTA-STS (RFC 8461) DNS record parsing."""

from dataclasses import dataclass
from typing import ClassVar

from .base import TagListRecord, TXTRecordKind


@dataclass
class STSRecord(TagListRecord):
    """Represents the ``_mta-sts`` TXT record announcing a policy id."""

    kind: ClassVar[TXTRecordKind] = TXTRecordKind.STSV1
    KNOWN_TAGS: ClassVar[tuple[str, ...]] = ("v", "id")
    VERSION: ClassVar[str] = "STSv1"

    id: str = ""

    def apply_tag(self, key: str, value: str) -> None:
        self.id = value

    def known_parts(self) -> list[str]:
        return [f"id={self.id}"] if self.id else []
