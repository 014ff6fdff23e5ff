"""Shared diagnostic records for the jsts front end and pipeline."""

from .diagnostics import Diagnostic
from .span import Span

__all__ = ["Diagnostic", "Span"]
