"""BIMI record parsing."""

from dataclasses import dataclass
from typing import ClassVar

from .base import TagListRecord, TXTRecordKind


@dataclass
class BIMIRecord(TagListRecord):
    """
    Represents a ``v=BIMI1`` assertion record.

    Attributes:
        l: Location of the SVG brand indicator
        a: Location of the authority evidence (VMC PEM bundle)
    """

    kind: ClassVar[TXTRecordKind] = TXTRecordKind.BIMI1
    KNOWN_TAGS: ClassVar[tuple[str, ...]] = ("v", "l", "a")
    VERSION: ClassVar[str] = "BIMI1"

    l: str | None = None  # noqa: E741
    a: str | None = None

    def apply_tag(self, key: str, value: str) -> None:
        if key == "l":
            self.l = value
        elif key == "a":
            self.a = value

    def known_parts(self) -> list[str]:
        parts = []
        if self.l:
            parts.append(f"l={self.l}")
        if self.a:
            parts.append(f"a={self.a}")
        return parts
