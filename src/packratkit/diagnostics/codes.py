"""Diagnostic codes and data structures.

Defines error codes, source spans, and diagnostic messages.
Python 3.13+. Zero external dependencies.
"""

from dataclasses import dataclass
from enum import Enum

__all__ = [
    "Diagnostic",
    "DiagnosticCode",
    "SourceSpan",
]


class DiagnosticCode(Enum):
    """Error codes with unique identifiers.

    Organized by category:
        1000-1999: Contract violations (caller misuse of the parse context)
        2000-2999: Resource limits (input size, recursion depth)
        3000-3999: Syntax errors (parse failures surfaced by strict parsing)
    """

    # Contract violations (1000-1999)
    SEEK_OUT_OF_RANGE = 1001
    INVALID_ARGUMENT = 1002

    # Resource limits (2000-2999)
    SOURCE_TOO_LARGE = 2001
    MAX_DEPTH_EXCEEDED = 2002

    # Syntax errors (3000-3999)
    UNEXPECTED_INPUT = 3001
    EXPECTED_TOKEN = 3002


@dataclass(frozen=True, slots=True)
class SourceSpan:
    """Source location for error reporting.

    Attributes:
        start: Starting character offset (0-indexed)
        end: Ending character offset (exclusive)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """

    start: int
    end: int
    line: int
    column: int

    def __post_init__(self) -> None:
        """Validate SourceSpan invariants.

        Raises:
            ValueError: If start is negative, end precedes start, or line /
                column is less than 1.
        """
        if self.start < 0:
            msg = f"SourceSpan.start must be >= 0, got {self.start}"
            raise ValueError(msg)
        if self.end < self.start:
            msg = f"SourceSpan.end ({self.end}) must be >= start ({self.start})"
            raise ValueError(msg)
        if self.line < 1:
            msg = f"SourceSpan.line must be >= 1 (1-indexed), got {self.line}"
            raise ValueError(msg)
        if self.column < 1:
            msg = f"SourceSpan.column must be >= 1 (1-indexed), got {self.column}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """Structured diagnostic message.

    Attributes:
        code: Unique error code
        message: Human-readable error description
        span: Source location (None for non-syntax errors)
        hint: Suggestion for fixing the error
        expected: Expected-token labels at the failure point (syntax errors)
    """

    code: DiagnosticCode
    message: str
    span: SourceSpan | None = None
    hint: str | None = None
    expected: tuple[str, ...] = ()

    def __str__(self) -> str:
        """Return human-readable error description."""
        return self.message

    def format_error(self) -> str:
        """Format diagnostic in compiler style.

        Example output:
            error[EXPECTED_TOKEN]: in grammar.txt:3 at 7, expect token [ ')' ]
              --> line 3, column 7
              = help: Check the input near the reported position

        Returns:
            Formatted error message
        """
        lines = [f"error[{self.code.name}]: {self.message}"]
        if self.span is not None:
            lines.append(f"  --> line {self.span.line}, column {self.span.column}")
        if self.hint:
            lines.append(f"  = help: {self.hint}")
        return "\n".join(lines)
