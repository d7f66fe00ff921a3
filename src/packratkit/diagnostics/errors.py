"""packratkit exception hierarchy with structured diagnostics.

All exceptions accept either a plain message or a Diagnostic object.
Ordinary parse mismatches never raise: they flow through combinators as the
INVALID marker. Exceptions are reserved for the strict entry point and for
contract violations.

Python 3.13+. Zero external dependencies.
"""

from typing import Self

from .codes import Diagnostic

__all__ = [
    "DepthLimitExceededError",
    "PackratError",
    "PackratSyntaxError",
    "SeekOutOfRangeError",
    "SourceTooLargeError",
]


class PackratError(Exception):
    """Base exception for all packratkit errors.

    Attributes:
        diagnostic: Structured diagnostic information (optional)
    """

    def __init__(self, message: str | Diagnostic) -> None:
        """Initialize PackratError.

        Args:
            message: Error message string OR Diagnostic object
        """
        if isinstance(message, Diagnostic):
            self.diagnostic: Diagnostic | None = message
            super().__init__(message.message)
        else:
            self.diagnostic = None
            super().__init__(message)


class SeekOutOfRangeError(PackratError, ValueError):
    """Scan offset moved outside [0, len(source)].

    This is a programming-contract violation in a combinator, not a parse
    failure. It is never converted into the INVALID marker.
    """


class SourceTooLargeError(PackratError):
    """Input exceeds the configured max_source_size."""


class DepthLimitExceededError(PackratError):
    """Raised when maximum rule nesting depth is exceeded.

    This error indicates either:
    - Adversarial input designed to cause stack overflow
    - A left-recursive grammar that re-enters a Lazy rule without consuming
    """


class PackratSyntaxError(PackratError):
    """Positioned syntax error produced by ParseContext.build_error().

    Immutable value object. Rendering is three lines: the message, the
    offending source line, and a caret under column ``col``.

    Example:
        >>> err = PackratSyntaxError("in source:1 at 3", "abcd", 1, 3)
        >>> print(err)
        in source:1 at 3
        abcd
          ^
    """

    def __init__(
        self,
        msg: str,
        line_text: str,
        line: int,
        col: int,
        *,
        diagnostic: Diagnostic | None = None,
    ) -> None:
        """Initialize PackratSyntaxError.

        Args:
            msg: Message embedding source label, line, column and expected tokens
            line_text: Offending source line (clipped)
            line: 1-based line number
            col: 1-based column number
            diagnostic: Structured form of the same error (optional)
        """
        super().__init__(diagnostic if diagnostic is not None else msg)
        # Read-only properties below; no setters.
        self._msg = msg
        self._line_text = line_text
        self._line = line
        self._col = col

    @property
    def msg(self) -> str:
        """Message text (label, line, column, expected tokens)."""
        return self._msg

    @property
    def line_text(self) -> str:
        """Offending source line, clipped around the error column."""
        return self._line_text

    @property
    def line(self) -> int:
        """1-based line number."""
        return self._line

    @property
    def col(self) -> int:
        """1-based column number."""
        return self._col

    def render(self) -> str:
        """Render the three-line display: message, source line, caret."""
        return f"{self._msg}\n{self._line_text}\n{' ' * (self._col - 1)}^"

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(msg={self._msg!r}, line_text={self._line_text!r}, "
            f"line={self._line}, col={self._col})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackratSyntaxError):
            return NotImplemented
        return (self._msg, self._line_text, self._line, self._col) == (
            other._msg,
            other._line_text,
            other._line,
            other._col,
        )

    def __hash__(self) -> int:
        return hash((self._msg, self._line_text, self._line, self._col))

    def __reduce__(self) -> tuple[type[Self], tuple[str, str, int, int], dict[str, object]]:
        # args only carries the message; rebuild from all four fields
        return (type(self), (self._msg, self._line_text, self._line, self._col), self.__dict__)
