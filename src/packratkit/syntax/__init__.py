"""Packrat parsing runtime: context, result markers and combinators.

Module Organization:
- sentinels.py: SKIP / INVALID result markers
- context.py: ParseContext (scan offset, memo cache, furthest failure, positions)
- combinators.py: Parser base class and the rule variants driven against a context
"""

from .combinators import (
    Branch,
    Cached,
    Eof,
    Fail,
    Lazy,
    Literal,
    Map,
    Maybe,
    On,
    Parser,
    Pattern,
    Repeat,
    Seq,
    Skip,
    choice,
    eof,
    lazy,
    lit,
    regex,
    seq,
)
from .context import ParseContext
from .sentinels import INVALID, SKIP, Marker, Outcome, is_invalid, is_marker, is_skip

__all__ = [
    "INVALID",
    "SKIP",
    "Branch",
    "Cached",
    "Eof",
    "Fail",
    "Lazy",
    "Literal",
    "Map",
    "Marker",
    "Maybe",
    "On",
    "Outcome",
    "ParseContext",
    "Parser",
    "Pattern",
    "Repeat",
    "Seq",
    "Skip",
    "choice",
    "eof",
    "is_invalid",
    "is_marker",
    "is_skip",
    "lazy",
    "lit",
    "regex",
    "seq",
]
