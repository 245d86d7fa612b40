"""
catalog_sync.report - Diagnostics, per-row outcomes and the run report.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Union


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    row: int
    message: str
    severity: Severity = Severity.CRITICAL
    field: Optional[str] = None
    sku: Optional[str] = None

    @property
    def is_critical(self) -> bool:
        return self.severity is Severity.CRITICAL

    def to_dict(self) -> dict:
        return {
            "row": self.row,
            "sku": self.sku,
            "field": self.field,
            "message": self.message,
            "severity": self.severity.value,
        }


def critical(row: int, message: str, *, field: str | None = None,
             sku: str | None = None) -> Diagnostic:
    return Diagnostic(row=row, message=message, severity=Severity.CRITICAL,
                      field=field, sku=sku)


def warning(row: int, message: str, *, field: str | None = None,
            sku: str | None = None) -> Diagnostic:
    return Diagnostic(row=row, message=message, severity=Severity.WARNING,
                      field=field, sku=sku)


# ── Per-row outcomes ───────────────────────────────────────────────────
# ``identity`` is None for planned (dry-run) outcomes.

@dataclass(frozen=True)
class Created:
    row: int
    key: tuple[str, str]
    identity: Optional[int] = None
    planned: bool = False


@dataclass(frozen=True)
class Updated:
    row: int
    key: tuple[str, str]
    identity: Optional[int] = None
    planned: bool = False


@dataclass(frozen=True)
class Skipped:
    row: int
    key: tuple[str, str]
    identity: Optional[int] = None
    planned: bool = False


@dataclass(frozen=True)
class Failed:
    row: int
    diagnostics: tuple[Diagnostic, ...] = ()
    planned: bool = False


RowOutcome = Union[Created, Updated, Skipped, Failed]

_COUNTER_FOR = {Created: "created", Updated: "updated", Skipped: "skipped", Failed: "skipped"}


@dataclass
class ImportReport:
    total: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    diagnostics: list[Diagnostic] = field(default_factory=list)
    planned: Counter = field(default_factory=Counter)
    dry_run: bool = False
    validate_only: bool = False

    # ── Accumulation ───────────────────────────────────────────────────

    def add(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        self.diagnostics.extend(diagnostics)

    def record(self, outcome: RowOutcome) -> None:
        """Count one row outcome; planned outcomes only feed ``planned``."""
        counter = _COUNTER_FOR[type(outcome)]
        if outcome.planned:
            self.planned[counter] += 1
            return
        setattr(self, counter, getattr(self, counter) + 1)

    # ── Derived views ──────────────────────────────────────────────────

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.CRITICAL]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    @property
    def success(self) -> bool:
        return not any(d.is_critical for d in self.diagnostics)

    def to_dict(self) -> dict:
        d = {
            "success": self.success,
            "total": self.total,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }
        if self.dry_run:
            d["dry_run"] = True
        if self.validate_only:
            d["validate_only"] = True
        if self.dry_run or self.validate_only:
            d["planned"] = {k: self.planned.get(k, 0)
                            for k in ("created", "updated", "skipped")}
        return d
