"""Classification of raw TXT answers into typed records."""

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TypeVar

from .base import TXTRecord, TXTRecordKind
from .bimi import BIMIRecord
from .custom import CustomRecord
from .dkim import DKIMRecord
from .dmarc import DMARCRecord
from .kv import KV_REGEX, KVRecord
from .spf import SPFRecord
from .sts import STSRecord
from .tlsrpt import TLSRPTRecord

logger = logging.getLogger(__name__)

TRecord = TypeVar("TRecord", bound=TXTRecord)

# Checked in order; the first matching prefix decides the record kind
_PREFIXES: list[tuple[str, type[TXTRecord]]] = [
    ("V=SPF1", SPFRecord),
    ("V=BIMI1", BIMIRecord),
    ("V=DMARC1", DMARCRecord),
    ("V=STSV1", STSRecord),
    ("V=TLSRPTV1", TLSRPTRecord),
]


def classify_record(raw: str, domain: str | None = None) -> TXTRecord:
    """Pick the record variant for one stripped, non-empty TXT string."""
    upper = raw.upper()

    for prefix, record_class in _PREFIXES:
        if upper.startswith(prefix):
            return record_class(raw, domain=domain)

    if "P=" in upper and (upper.startswith("V=DKIM1") or "K=" in upper):
        return DKIMRecord(raw, domain=domain)

    if KV_REGEX.match(raw):
        return KVRecord(raw, domain=domain)

    return CustomRecord(raw, domain=domain)


@dataclass
class TXTQueryResult:
    """
    Typed view over the full answer set of one TXT query.

    Accessors return the last parsed record of a kind. When a kind appears
    more than once every instance carries a multiplicity error.
    """

    domain: str | None = None
    ns: list[str] = field(default_factory=list)
    raw_records: list[str] = field(default_factory=list)
    records: list[TXTRecord] = field(default_factory=list)

    def parse(self, raw_records: Iterable[str]) -> None:
        for raw in raw_records:
            raw = raw.strip()
            if not raw:
                continue
            self.raw_records.append(raw)
            self.records.append(classify_record(raw, domain=self.domain))

    def check(self) -> None:
        """Mark records whose kind (or key, for key/value records) is repeated."""
        kind_counts = Counter(
            record.kind
            for record in self.records
            if record.kind not in (TXTRecordKind.KV, TXTRecordKind.CUSTOM)
        )
        for record in self.records:
            if kind_counts.get(record.kind, 0) > 1:
                record.mark_multiple()

        kv_records = self.get_all_kv_records()
        key_counts = Counter(record.key for record in kv_records if record.key)
        for record in kv_records:
            if record.key and key_counts[record.key] > 1:
                record.mark_multiple(record.key)

    def _last(self, record_class: type[TRecord]) -> TRecord | None:
        matches = [record for record in self.records if isinstance(record, record_class)]
        return matches[-1] if matches else None

    def get_spf_record(self) -> SPFRecord | None:
        return self._last(SPFRecord)

    def get_dkim_record(self) -> DKIMRecord | None:
        return self._last(DKIMRecord)

    def get_dmarc_record(self) -> DMARCRecord | None:
        return self._last(DMARCRecord)

    def get_sts_record(self) -> STSRecord | None:
        return self._last(STSRecord)

    def get_bimi_record(self) -> BIMIRecord | None:
        return self._last(BIMIRecord)

    def get_tlsrpt_record(self) -> TLSRPTRecord | None:
        return self._last(TLSRPTRecord)

    def get_single_kv_record(self, key: str) -> KVRecord | None:
        matches = [record for record in self.get_all_kv_records() if record.key == key]
        return matches[-1] if matches else None

    def get_all_kv_records(self) -> list[KVRecord]:
        return [record for record in self.records if isinstance(record, KVRecord)]

    def get_custom_records(self) -> list[CustomRecord]:
        return [record for record in self.records if isinstance(record, CustomRecord)]


def classify(
    raw_answers: Iterable[str],
    domain: str | None = None,
    ns: list[str] | None = None,
) -> TXTQueryResult:
    """
    Classify raw TXT answer strings into a TXTQueryResult.

    Args:
        raw_answers: One string per TXT record
        domain: Name the records were published at
        ns: Nameserver hostnames that answered, if known

    Returns:
        TXTQueryResult with multiplicity errors applied
    """
    result = TXTQueryResult(domain=domain, ns=list(ns or []))
    result.parse(raw_answers)
    result.check()
    logger.debug(f"Classified {len(result.records)} TXT record(s) for {domain}")
    return result
