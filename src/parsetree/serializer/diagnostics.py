"""Diagnostic types for the serializer.

A ``Diagnostic`` records a recoverable finding made while serializing a
tree, such as a node kind the serializer has no rule for.  Diagnostics
never abort serialization; they are handed to a ``DiagnosticSink``.
"""
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Final, Protocol

UNHANDLED_NODE: Final[str] = "PT001"


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostics."""

    ERROR = auto()
    WARNING = auto()
    INFORMATION = auto()
    HINT = auto()


@dataclass(frozen=True)
class Diagnostic:
    """A single serializer finding.

    Parameters
    ----------
    severity:
        How serious this finding is.
    code:
        A short machine-readable identifier, e.g. ``"PT001"``.
    message:
        Human-readable description of the finding.
    kind_name:
        Tag of the node kind the finding is about.
    raw_kind:
        Raw integer id of that kind.
    slots_present:
        Whether each of the node's three slots held a value.
    type_name:
        Type whose method was being serialized, if known.
    method_name:
        Method being serialized, if known.
    """

    severity: DiagnosticSeverity
    code: str
    message: str
    kind_name: str
    raw_kind: int
    slots_present: tuple[bool, bool, bool] = (False, False, False)
    type_name: str | None = field(default=None)
    method_name: str | None = field(default=None)

    def __str__(self) -> str:
        prefix = f"[{self.code}] {self.severity.name}"
        where = ""
        if self.type_name is not None or self.method_name is not None:
            where = f" in {self.type_name or '?'}#{self.method_name or '?'}"
        return f"{prefix}{where}: {self.message}"

    @property
    def slot_summary(self) -> str:
        """Slot presence as ``"u1 u2 u3"``, blank where a slot was empty."""
        return " ".join(
            f"u{i + 1}" if present else "  "
            for i, present in enumerate(self.slots_present)
        )


class DiagnosticSink(Protocol):
    """Receiver of diagnostics produced during serialization."""

    def report(self, diagnostic: Diagnostic) -> None: ...


@dataclass
class DiagnosticCollection:
    """Collects every diagnostic reported to it, in order.

    Parameters
    ----------
    diagnostics:
        Ordered list of findings reported so far.
    """

    diagnostics: list[Diagnostic] = field(default_factory=list)

    def report(self, diagnostic: Diagnostic) -> None:
        """Append a new diagnostic to the collection."""
        self.diagnostics.append(diagnostic)

    @property
    def has_diagnostics(self) -> bool:
        """Return True if any diagnostics were recorded."""
        return bool(self.diagnostics)

    def __len__(self) -> int:
        return len(self.diagnostics)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.diagnostics)

    def __str__(self) -> str:
        if not self.diagnostics:
            return "DiagnosticCollection (no diagnostics)"
        lines = [f"DiagnosticCollection ({len(self.diagnostics)} diagnostic(s)):"]
        for diagnostic in self.diagnostics:
            lines.append(f"  {diagnostic}")
        return "\n".join(lines)
