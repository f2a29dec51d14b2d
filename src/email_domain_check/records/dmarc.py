"""DMARC (RFC 7489) record parsing."""

from dataclasses import dataclass, field
from typing import ClassVar

from .base import TagListRecord, TXTRecordKind, split_list


@dataclass
class DMARCRecord(TagListRecord):
    """Represents a ``v=DMARC1`` policy record."""

    kind: ClassVar[TXTRecordKind] = TXTRecordKind.DMARC1
    KNOWN_TAGS: ClassVar[tuple[str, ...]] = (
        "v",
        "p",
        "sp",
        "rua",
        "ruf",
        "adkim",
        "aspf",
        "ri",
        "fo",
        "pct",
        "rf",
    )
    VERSION: ClassVar[str] = "DMARC1"

    p: str | None = None  # none, quarantine, reject
    sp: str | None = None  # subdomain policy
    rua: list[str] = field(default_factory=list)
    ruf: list[str] = field(default_factory=list)
    adkim: str | None = None  # r or s
    aspf: str | None = None  # r or s
    ri: int | None = None
    fo: list[str] = field(default_factory=list)
    pct: int | None = None
    rf: str | None = None

    def apply_tag(self, key: str, value: str) -> None:
        if key in ("p", "sp", "adkim", "aspf", "rf"):
            setattr(self, key, value)
        elif key in ("rua", "ruf"):
            setattr(self, key, split_list(value, ","))
        elif key == "fo":
            self.fo = split_list(value, ":")
        elif key in ("pct", "ri"):
            try:
                setattr(self, key, int(value))
            except ValueError:
                self.errors.append(f"Invalid integer value for {key}: {value}")

    def known_parts(self) -> list[str]:
        parts = []
        if self.p:
            parts.append(f"p={self.p}")
        if self.sp:
            parts.append(f"sp={self.sp}")
        if self.rua:
            parts.append(f"rua={','.join(self.rua)}")
        if self.ruf:
            parts.append(f"ruf={','.join(self.ruf)}")
        if self.adkim:
            parts.append(f"adkim={self.adkim}")
        if self.aspf:
            parts.append(f"aspf={self.aspf}")
        if self.ri is not None:
            parts.append(f"ri={self.ri}")
        if self.fo:
            parts.append(f"fo={':'.join(self.fo)}")
        if self.pct is not None:
            parts.append(f"pct={self.pct}")
        if self.rf:
            parts.append(f"rf={self.rf}")
        return parts

    @property
    def policy_enabled(self) -> bool:
        """True when the policy is quarantine or reject."""
        return (self.p or "").lower() in ("quarantine", "reject")
