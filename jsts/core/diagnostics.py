"""
Common diagnostic structure for the parser, verifier and batch driver.

A message plus optional span/metadata; the command line renders these as
`file:line:col: severity: message` lines or as JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from .span import Span


@dataclass
class Diagnostic:
    """One problem found while processing a file."""

    message: str
    code: str | None = None
    # Stage that produced the diagnostic: parser, verifier, pipeline.
    phase: str | None = None
    severity: str = "error"
    span: Span = field(default_factory=Span)  # Span() denotes unknown.
    notes: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.span is None:  # type: ignore[unreachable]
            self.span = Span()

    def format(self) -> str:
        text = f"{self.span.describe()}: {self.severity}: {self.message}"
        for note in self.notes:
            text += f"\n  note: {note}"
        return text

    def to_json(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "phase": self.phase,
            "severity": self.severity,
            "file": self.span.file,
            "line": self.span.line,
            "column": self.span.column,
            "notes": list(self.notes),
        }


__all__ = ["Diagnostic"]
