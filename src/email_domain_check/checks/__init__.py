"""Checklist results for SPF and BIMI validation."""

from .base import CheckItem, CheckResult, CheckStatus
from .bimi import BimiCheckResult, CertInfo
from .spf import SpfCheckResult, check_spf

__all__ = [
    "BimiCheckResult",
    "CertInfo",
    "CheckItem",
    "CheckResult",
    "CheckStatus",
    "SpfCheckResult",
    "check_spf",
]
