"""Numbered pass/fail checklist shared by SPF and BIMI validators."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar


class CheckStatus(Enum):
    NONE = 0
    OK = 1
    ERROR = 2
    WARN = 3


@dataclass
class CheckItem:
    """One numbered entry of a checklist."""

    code: int
    test: str
    status_ok: str
    status_problem: str
    status: CheckStatus = CheckStatus.NONE

    @property
    def description(self) -> str:
        """Human readable outcome for the current status."""
        if self.status is CheckStatus.OK:
            return self.status_ok
        if self.status in (CheckStatus.ERROR, CheckStatus.WARN):
            return self.status_problem
        return "Not checked"


@dataclass
class CheckResult:
    """
    Base class for versioned checklists.

    Subclasses declare ``SCHEMA`` as ``(code, test, status_ok, status_problem)``
    tuples; each instance starts with every entry at ``CheckStatus.NONE``.
    """

    SCHEMA: ClassVar[tuple[tuple[int, str, str, str], ...]] = ()

    domain: str | None = None
    ns: list[str] = field(default_factory=list)
    check_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    logs: list[str] = field(default_factory=list)
    checks: dict[int, CheckItem] = field(init=False)

    def __post_init__(self) -> None:
        self.checks = {
            code: CheckItem(code, test, status_ok, status_problem)
            for code, test, status_ok, status_problem in sorted(self.SCHEMA)
        }

    def set_status(self, code: int, status: CheckStatus, log: str | None = None) -> None:
        self.checks[code].status = status
        if log:
            self.logs.append(log)

    def ok(self, code: int) -> None:
        self.set_status(code, CheckStatus.OK)

    def error(self, code: int, log: str | None = None) -> None:
        self.set_status(code, CheckStatus.ERROR, log)

    def status(self, code: int) -> CheckStatus:
        return self.checks[code].status

    def is_valid(self) -> bool:
        return all(item.status is not CheckStatus.ERROR for item in self.checks.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain,
            "ns": self.ns,
            "check_date": self.check_date.isoformat(),
            "valid": self.is_valid(),
            "checks": [
                {
                    "code": item.code,
                    "test": item.test,
                    "status": item.status.name,
                    "description": item.description,
                }
                for item in self.checks.values()
            ],
            "logs": self.logs,
        }
