"""Generic ``key=value`` TXT records (site verification tokens and the like)."""

import re
from dataclasses import dataclass
from typing import ClassVar

from .base import TXTRecord, TXTRecordKind

KV_REGEX = re.compile(r"^([^=]+)=(.+)$", re.DOTALL)


@dataclass
class KVRecord(TXTRecord):
    """A TXT record holding a single key/value pair split on the first ``=``."""

    kind: ClassVar[TXTRecordKind] = TXTRecordKind.KV

    key: str | None = None
    value: str | None = None

    def parse(self, raw: str) -> None:
        match = KV_REGEX.match(raw)
        if match:
            self.key = match.group(1).strip()
            self.value = match.group(2).strip()
        else:
            self.errors.append("Invalid key-value format.")

    def to_string(self) -> str:
        return f"{self.key}={self.value}" if self.key and self.value else ""
