"""SPF checklist."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from ..constants import SPF_MAX_LOOKUPS
from .base import CheckResult

if TYPE_CHECKING:
    from ..records.spf import SPFRecord


@dataclass
class SpfCheckResult(CheckResult):
    SCHEMA: ClassVar[tuple[tuple[int, str, str, str], ...]] = (
        (100, "SPF Record Published", "SPF Record found", "SPF Record not found"),
        (
            150,
            "SPF Record Deprecated",
            "No deprecated records found",
            "Deprecated SPF records found",
        ),
        (160, "SPF Multiple Records", "Less than two records found", "Multiple SPF records found"),
        (
            200,
            "SPF Contains characters after ALL",
            "No items after 'ALL'.",
            "There are items after 'ALL'.",
        ),
        (250, "SPF Syntax Check", "The record is valid", "The record is invalid"),
        (
            300,
            "SPF Included Lookups",
            "Number of included lookups is OK",
            "Too many included lookups",
        ),
        (
            350,
            "SPF Recursive Loop",
            "No Recursive Loops on Includes",
            "Recursive loop detected in includes",
        ),
        (400, "SPF Duplicate Include", "No Duplicate Includes Found", "Duplicate includes found"),
        (450, "SPF Type PTR Check", "No type PTR found", "Type PTR records found"),
        (500, "SPF Void Lookups", "Number of void lookups is OK", "Excessive void lookups found"),
        (
            550,
            "SPF MX Resource Records",
            "Number of MX Resource Records is OK",
            "MX Resource Records count is not OK",
        ),
        (
            600,
            "SPF Redirect Evaluation",
            "Redirect Domain has a valid SPF Record",
            "Redirect Domain has no valid SPF Record",
        ),
        (650, "SPF Record Null Value", "No Null DNS Lookups found", "Null DNS Lookups found"),
        (800, "DMARC Record Published", "DMARC Record found", "DMARC Record not found"),
        (
            850,
            "DMARC Policy Not Enabled",
            "DMARC Quarantine/Reject policy enabled",
            "DMARC policy not set to quarantine/reject",
        ),
    )


def _has_items_after_all(raw: str) -> bool:
    seen_all = False
    for token in raw.split():
        if seen_all:
            return True
        if token.lower().lstrip("+-~?") == "all":
            seen_all = True
    return False


def check_spf(record: "SPFRecord | None", domain: str | None = None) -> SpfCheckResult:
    """
    Evaluate the SPF checklist for a record.

    Recursive evaluation (350, 500, 550, 600) and the DMARC prerequisites
    (800, 850) are not evaluated and stay at ``CheckStatus.NONE``.
    """
    result = SpfCheckResult(domain=domain or (record.domain if record else None))

    if record is None or record.v is None or record.v.lower() != "spf1":
        result.error(100, "No SPF record with v=spf1 was found.")
        return result
    result.ok(100)
    result.ok(150)

    if record.is_multiple:
        result.error(160, "Multiple SPF records found. Only one is allowed.")
    else:
        result.ok(160)

    if record.all and _has_items_after_all(record.raw):
        result.error(200, "Mechanisms after 'all' are ignored by receivers.")
    else:
        result.ok(200)

    # Unknown modifiers (name=value) are allowed by RFC 7208, unknown mechanisms are not
    unknown_mechanisms = [term for term in record.unknown if "=" not in term]
    if unknown_mechanisms:
        result.error(250, f"Unrecognized SPF mechanisms: {' '.join(unknown_mechanisms)}")
    else:
        result.ok(250)

    lookups = record.lookup_count
    if lookups > SPF_MAX_LOOKUPS:
        result.error(300, f"SPF record requires {lookups} DNS lookups (limit {SPF_MAX_LOOKUPS}).")
    else:
        result.ok(300)

    if len(set(record.include)) != len(record.include):
        result.error(400, "The same include: domain is listed more than once.")
    else:
        result.ok(400)

    if record.ptr:
        result.error(450, "The ptr mechanism should not be used (RFC 7208 section 5.5).")
    else:
        result.ok(450)

    result.ok(650)

    return result
