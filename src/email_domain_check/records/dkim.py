"""DKIM (RFC 6376) key record parsing."""

from dataclasses import dataclass, field
from typing import ClassVar

from .base import TagListRecord, TXTRecordKind, split_list


@dataclass
class DKIMRecord(TagListRecord):
    """Represents a DKIM public key record published at a selector."""

    kind: ClassVar[TXTRecordKind] = TXTRecordKind.DKIM1
    KNOWN_TAGS: ClassVar[tuple[str, ...]] = ("v", "k", "p", "h", "s", "t", "n")
    VERSION: ClassVar[str] = "DKIM1"
    VERSION_REQUIRED: ClassVar[bool] = False

    k: str | None = None  # key type (rsa, ed25519)
    p: str | None = None  # public key
    h: list[str] = field(default_factory=list)  # hash algorithms
    s: list[str] = field(default_factory=list)  # service types
    t: list[str] = field(default_factory=list)  # flags
    n: str | None = None  # notes

    def apply_tag(self, key: str, value: str) -> None:
        if key in ("k", "p", "n"):
            setattr(self, key, value)
        elif key in ("h", "s", "t"):
            setattr(self, key, split_list(value, ":"))

    def known_parts(self) -> list[str]:
        parts = []
        if self.k:
            parts.append(f"k={self.k}")
        if self.p:
            parts.append(f"p={self.p}")
        for key in ("h", "s", "t"):
            values = getattr(self, key)
            if values:
                parts.append(f"{key}={':'.join(values)}")
        if self.n:
            parts.append(f"n={self.n}")
        return parts
