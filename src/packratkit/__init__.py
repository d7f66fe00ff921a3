"""packratkit - runtime support for backtracking (packrat) parser combinators.

Tracks the scan offset over an input, memoizes sub-parse results per
(rule, offset), keeps the furthest parse failure, and renders syntax errors
with line/column context.

Public API:
    ParseContext - Scan offset, memo cache, furthest failure, position math
    Parser - Base class of rules; parse() and parse_strict() entry points
    lit, regex, seq, choice, lazy, eof - Rule constructors
    SKIP, INVALID - Result markers

Exceptions:
    PackratError - Base exception class
    PackratSyntaxError - Positioned error raised by parse_strict()
    SeekOutOfRangeError - Scan offset moved outside the input

Submodules:
    packratkit.syntax - Context, markers and combinator variants
    packratkit.diagnostics - Diagnostic codes, templates and exceptions
"""

from .diagnostics import (
    PackratError,
    PackratSyntaxError,
    SeekOutOfRangeError,
    SourceTooLargeError,
)
from .syntax import (
    INVALID,
    SKIP,
    Marker,
    ParseContext,
    Parser,
    choice,
    eof,
    is_invalid,
    is_skip,
    lazy,
    lit,
    regex,
    seq,
)

# Version information - Auto-populated from package metadata
# SINGLE SOURCE OF TRUTH: pyproject.toml [project] version
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _get_version

try:
    __version__ = _get_version("packratkit")
except PackageNotFoundError:
    # Development mode: package not installed yet
    __version__ = "0.0.0+dev"

__all__ = [
    "INVALID",
    "SKIP",
    "Marker",
    "PackratError",
    "PackratSyntaxError",
    "ParseContext",
    "Parser",
    "SeekOutOfRangeError",
    "SourceTooLargeError",
    "__version__",
    "choice",
    "eof",
    "is_invalid",
    "is_skip",
    "lazy",
    "lit",
    "regex",
    "seq",
]
