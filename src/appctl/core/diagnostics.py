"""Diagnostics returned to the host by every lifecycle operation.

Errors abort the operation; warnings are informational (e.g. drift).
"""

from enum import StrEnum

from pydantic import BaseModel, Field


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


class Diagnostic(BaseModel):
    """Single diagnostic entry."""

    severity: Severity
    summary: str
    detail: str = ""

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"[{self.severity}] {self.summary}: {self.detail}"


class Diagnostics(BaseModel):
    """Ordered collection of diagnostics."""

    items: list[Diagnostic] = Field(default_factory=list)

    def add_error(self, summary: str, detail: str = "") -> None:
        self.items.append(Diagnostic(severity=Severity.ERROR, summary=summary, detail=detail))

    def add_warning(self, summary: str, detail: str = "") -> None:
        self.items.append(Diagnostic(severity=Severity.WARNING, summary=summary, detail=detail))

    def extend(self, other: "Diagnostics") -> None:
        self.items.extend(other.items)

    def has_error(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.items)

    def errors(self) -> list[Diagnostic]:
        return [d for d in self.items if d.severity == Severity.ERROR]

    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.items if d.severity == Severity.WARNING]

    def __len__(self) -> int:
        return len(self.items)
