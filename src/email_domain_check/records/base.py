"""Base classes shared by all TXT record variants."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar


class TXTRecordKind(Enum):
    """Record variant decided once at classification time."""

    CUSTOM = "Custom"
    KV = "KeyValue"
    SPF1 = "SPF1"
    DKIM1 = "DKIM1"
    DMARC1 = "DMARC1"
    STSV1 = "STSv1"
    BIMI1 = "BIMI1"
    TLSRPTV1 = "TLSRPTv1"


TagValue = str | list[str]


@dataclass
class TXTRecord(ABC):
    """
    Base class for all parsed TXT records.

    Every record keeps its raw source string and collects parse and
    validation errors instead of raising. Tags without a dedicated field end
    up in ``tags``; names listed in ``KNOWN_TAGS`` never do.
    """

    kind: ClassVar[TXTRecordKind]
    KNOWN_TAGS: ClassVar[tuple[str, ...]] = ()

    raw: str
    domain: str | None = None
    errors: list[str] = field(default_factory=list)
    is_multiple: bool = False
    tags: dict[str, TagValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.parse(self.raw)

    @abstractmethod
    def parse(self, raw: str) -> None:
        """Populate fields from the raw record string."""

    @abstractmethod
    def to_string(self) -> str:
        """Rebuild the record string from parsed fields."""

    def is_valid(self) -> bool:
        return not self.errors

    def mark_multiple(self, label: str | None = None) -> None:
        """Flag this record as one of several records of the same kind."""
        self.is_multiple = True
        self.errors.append(
            f"Multiple {label or self.kind.value} records found. Only one is allowed."
        )

    def __str__(self) -> str:
        return self.to_string()


def split_tags(raw: str) -> list[tuple[str, str]]:
    """
    Split a ``tag=value; tag=value`` list.

    Tags are split on their first ``=`` so base64 padding survives. Tags with
    an empty name or value are dropped.
    """
    pairs = []
    for part in raw.split(";"):
        name, _, value = part.strip().partition("=")
        name, value = name.strip(), value.strip()
        if name and value:
            pairs.append((name, value))
    return pairs


def split_list(value: str, sep: str) -> list[str]:
    return [item.strip() for item in value.split(sep) if item.strip()]


@dataclass
class TagListRecord(TXTRecord):
    """
    Record made of semicolon-separated ``tag=value`` pairs.

    Tags named in ``KNOWN_TAGS`` go to ``apply_tag`` and are rendered by
    ``known_parts``; everything else round-trips through ``tags``.
    """

    VERSION: ClassVar[str] = ""
    VERSION_REQUIRED: ClassVar[bool] = True

    v: str | None = None

    def parse(self, raw: str) -> None:
        for name, value in split_tags(raw):
            key = name.lower()
            if key == "v":
                self.v = value
            elif key in self.KNOWN_TAGS:
                self.apply_tag(key, value)
            else:
                self.tags[name] = value

        if self.v is None:
            if self.VERSION_REQUIRED:
                self.errors.append(f"Missing version tag (v={self.VERSION}).")
        elif self.v.upper() != self.VERSION.upper():
            self.errors.append(f"Unsupported version: v={self.v}")

    def apply_tag(self, key: str, value: str) -> None:
        """Store a tag listed in ``KNOWN_TAGS``."""

    def known_parts(self) -> list[str]:
        return []

    def to_string(self) -> str:
        parts = [f"v={self.v}"] if self.v else []
        parts.extend(self.known_parts())
        for name, value in self.tags.items():
            if isinstance(value, list):
                parts.extend(f"{name}={item}" for item in value)
            else:
                parts.append(f"{name}={value}")
        return "; ".join(parts)

    @property
    def has_version(self) -> bool:
        return self.v is not None and self.v.upper() == self.VERSION.upper()
