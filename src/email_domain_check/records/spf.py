"""SPF (RFC 7208) record parsing."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from .base import TXTRecord, TXTRecordKind

if TYPE_CHECKING:
    from ..checks.spf import SpfCheckResult

QUALIFIERS = {"+": "pass", "-": "fail", "~": "softfail", "?": "neutral"}
_QUALIFIER_CHARS = {result: char for char, result in QUALIFIERS.items()}


@dataclass
class SPFRecord(TXTRecord):
    """Represents a parsed ``v=spf1`` record."""

    kind: ClassVar[TXTRecordKind] = TXTRecordKind.SPF1

    v: str | None = None
    a: bool = False
    mx: bool = False
    ptr: bool = False
    all: str | None = None  # pass, fail, softfail, neutral
    include: list[str] = field(default_factory=list)
    ip4: list[str] = field(default_factory=list)
    ip6: list[str] = field(default_factory=list)
    a_domains: list[str] = field(default_factory=list)
    mx_domains: list[str] = field(default_factory=list)
    ptr_domain: str | None = None
    exists: str | None = None
    redirect: str | None = None
    exp: str | None = None
    unknown: list[str] = field(default_factory=list)
    # Non-default qualifiers of mechanisms other than all, keyed by rendered term
    qualifiers: dict[str, str] = field(default_factory=dict)

    def parse(self, raw: str) -> None:
        for token in raw.split():
            if token.lower().startswith("v="):
                self.v = token[2:]
                continue

            qualifier = token[0] if token[0] in QUALIFIERS else "+"
            mechanism = token[1:] if token[0] in QUALIFIERS else token
            name = mechanism.lower()

            if name == "all":
                self.all = QUALIFIERS[qualifier]
            elif name.startswith("redirect="):
                self.redirect = mechanism[9:]
            elif name.startswith("exp="):
                self.exp = mechanism[4:]
            else:
                term = self._apply_mechanism(name, mechanism)
                if term is None:
                    self.unknown.append(token)
                elif qualifier != "+":
                    self.qualifiers[term] = qualifier

        if self.v is None or self.v.lower() != "spf1":
            self.errors.append(f"Unsupported version: v={self.v}")

    def _apply_mechanism(self, name: str, mechanism: str) -> str | None:
        """Store a mechanism; return its rendered term, or None if unknown."""
        if name == "a":
            self.a = True
            return "a"
        if name == "mx":
            self.mx = True
            return "mx"
        if name == "ptr" or name.startswith("ptr:"):
            self.ptr = True
            if ":" in mechanism:
                self.ptr_domain = mechanism.split(":", 1)[1]
                return f"ptr:{self.ptr_domain}"
            return "ptr"

        prefixed = (
            ("include:", self.include),
            ("ip4:", self.ip4),
            ("ip6:", self.ip6),
            ("a:", self.a_domains),
            ("mx:", self.mx_domains),
        )
        for prefix, values in prefixed:
            if name.startswith(prefix):
                value = mechanism[len(prefix):]
                values.append(value)
                return f"{prefix}{value}"

        if name.startswith("exists:"):
            self.exists = mechanism[7:]
            return f"exists:{self.exists}"
        return None

    @property
    def lookup_count(self) -> int:
        """Count mechanisms and modifiers that trigger DNS lookups."""
        count = len(self.include)
        if self.a or self.a_domains:
            count += 1
        if self.mx or self.mx_domains:
            count += 1
        if self.ptr:
            count += 1
        if self.exists:
            count += 1
        if self.redirect:
            count += 1
        return count

    def to_string(self) -> str:
        terms = []

        if self.a:
            terms.append("a")
        if self.mx:
            terms.append("mx")
        if self.ptr:
            terms.append(f"ptr:{self.ptr_domain}" if self.ptr_domain else "ptr")

        terms.extend(f"a:{domain}" for domain in self.a_domains)
        terms.extend(f"mx:{domain}" for domain in self.mx_domains)
        terms.extend(f"include:{inc}" for inc in self.include)
        terms.extend(f"ip4:{ip}" for ip in self.ip4)
        terms.extend(f"ip6:{ip}" for ip in self.ip6)

        if self.exists:
            terms.append(f"exists:{self.exists}")

        parts = [f"v={self.v}"]
        parts.extend(self.qualifiers.get(term, "") + term for term in terms)

        if self.redirect:
            parts.append(f"redirect={self.redirect}")
        if self.exp:
            parts.append(f"exp={self.exp}")

        parts.extend(self.unknown)

        if self.all:
            parts.append(f"{_QUALIFIER_CHARS[self.all]}all")

        return " ".join(parts)

    def check(self) -> "SpfCheckResult":
        """Run the SPF checklist against this record."""
        from ..checks.spf import check_spf

        return check_spf(self)
