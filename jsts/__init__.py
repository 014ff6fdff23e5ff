"""Type inference for JavaScript sources and TypeScript annotation emission."""

from .analyzer import AnalysisRecord, analyze
from .annotator import MalformedAnalysisError, annotate
from .emitter import emit
from .infer import InferenceCache, InferenceEngine
from .parser import ParseFailure, ParserOptions, parse_program
from .pipeline import PipelineOptions, VerificationFailure, process_file, process_files, transpile_source
from .verifier import verify

__all__ = [
    "AnalysisRecord",
    "InferenceCache",
    "InferenceEngine",
    "MalformedAnalysisError",
    "ParseFailure",
    "ParserOptions",
    "PipelineOptions",
    "VerificationFailure",
    "analyze",
    "annotate",
    "emit",
    "parse_program",
    "process_file",
    "process_files",
    "transpile_source",
    "verify",
]
