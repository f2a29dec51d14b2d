"""TXT record variants and the classifier that produces them."""

from .base import TagListRecord, TXTRecord, TXTRecordKind
from .bimi import BIMIRecord
from .custom import CustomRecord
from .dkim import DKIMRecord
from .dmarc import DMARCRecord
from .kv import KVRecord
from .query_result import TXTQueryResult, classify, classify_record
from .spf import SPFRecord
from .sts import STSRecord
from .tlsrpt import TLSRPTRecord

__all__ = [
    "BIMIRecord",
    "CustomRecord",
    "DKIMRecord",
    "DMARCRecord",
    "KVRecord",
    "SPFRecord",
    "STSRecord",
    "TLSRPTRecord",
    "TXTQueryResult",
    "TXTRecord",
    "TXTRecordKind",
    "TagListRecord",
    "classify",
    "classify_record",
]
