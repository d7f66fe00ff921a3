"""Diagnostic system for packratkit errors.

Provides structured error diagnostics with codes, spans and hints, plus the
exception hierarchy raised by strict parsing and contract violations.

Python 3.13+. Zero external dependencies.
"""

from .codes import Diagnostic, DiagnosticCode, SourceSpan
from .errors import (
    DepthLimitExceededError,
    PackratError,
    PackratSyntaxError,
    SeekOutOfRangeError,
    SourceTooLargeError,
)
from .templates import ErrorTemplate

__all__ = [
    "DepthLimitExceededError",
    "Diagnostic",
    "DiagnosticCode",
    "ErrorTemplate",
    "PackratError",
    "PackratSyntaxError",
    "SeekOutOfRangeError",
    "SourceSpan",
    "SourceTooLargeError",
]
