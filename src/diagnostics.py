"""
Diagnostics - Per-operation warning/error accumulator.

A Diagnostics instance is created for a single operation call and passed
along with it. Any error-severity entry marks the operation failed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List


class Severity(Enum):
    """Diagnostic severity."""

    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Diagnostic:
    """A single warning or error reported by an operation."""

    severity: Severity
    summary: str
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "summary": self.summary,
            "detail": self.detail,
        }

    def __str__(self) -> str:
        if self.detail:
            return f"{self.severity.value}: {self.summary}: {self.detail}"
        return f"{self.severity.value}: {self.summary}"


class Diagnostics:
    """Append-only list of diagnostics for one operation."""

    def __init__(self):
        self._items: List[Diagnostic] = []

    def add(self, severity: Severity, summary: str, detail: str = "") -> None:
        self._items.append(Diagnostic(severity, summary, detail))

    def add_error(self, summary: str, detail: str = "") -> None:
        self.add(Severity.ERROR, summary, detail)

    def add_warning(self, summary: str, detail: str = "") -> None:
        self.add(Severity.WARNING, summary, detail)

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        """Append diagnostics from another collector."""
        self._items.extend(diagnostics)

    def has_error(self) -> bool:
        return any(d.severity is Severity.ERROR for d in self._items)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self._items if d.severity is Severity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self._items if d.severity is Severity.WARNING]

    def to_list(self) -> List[Dict[str, Any]]:
        return [d.to_dict() for d in self._items]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"Diagnostics({self._items!r})"
