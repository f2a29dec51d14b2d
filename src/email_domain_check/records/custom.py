"""Opaque TXT records that match no known grammar."""

from dataclasses import dataclass
from typing import ClassVar

from .base import TXTRecord, TXTRecordKind


@dataclass
class CustomRecord(TXTRecord):
    kind: ClassVar[TXTRecordKind] = TXTRecordKind.CUSTOM

    value: str = ""

    def parse(self, raw: str) -> None:
        self.value = raw

    def to_string(self) -> str:
        return self.value
