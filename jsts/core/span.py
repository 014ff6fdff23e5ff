"""
Source positions attached to diagnostics.

Lines and columns are 1-based, as lark reports them. `raw` keeps the
original location object (a syntax-tree `Located` or a lark error).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
    """Best-effort position in a source or emitted file."""

    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    end_line: Optional[int] = None
    end_column: Optional[int] = None
    raw: Any = None

    @classmethod
    def from_loc(cls, loc: Any, file: Optional[str] = None) -> "Span":
        """
        Construct a Span from an existing parser/location object.

        If `loc` is already a Span, it is returned unchanged (apart from
        filling in a missing file name); otherwise the parser-specific object
        is stored in `raw`.
        """
        if loc is None:
            return cls(file=file)
        if isinstance(loc, cls):
            if file and not loc.file:
                return replace(loc, file=file)
            return loc
        return cls(
            file=file or getattr(loc, "file", None) or getattr(loc, "filename", None) or None,
            line=getattr(loc, "line", None),
            column=getattr(loc, "column", None),
            end_line=getattr(loc, "end_line", None),
            end_column=getattr(loc, "end_column", None),
            raw=loc,
        )

    def describe(self) -> str:
        """`file:line:col` prefix with unknown parts left out."""
        parts = [self.file or "<input>"]
        if self.line is not None:
            parts.append(str(self.line))
            if self.column is not None:
                parts.append(str(self.column))
        return ":".join(parts)


__all__ = ["Span"]
