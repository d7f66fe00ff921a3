"""Out-of-band result markers for combinator results.

Combinators return either an ordinary value or one of two markers:

    SKIP     the rule matched but produced nothing worth keeping
             (discarded whitespace, an absent optional part)
    INVALID  the rule did not match

Markers are members of a closed enumeration, so they compare by identity
only. An ordinary result may legitimately be None, False, "" or []; none of
those is ever equal to a marker, and checks against a marker never fall
through to structural comparison.

Python 3.13+. Zero external dependencies.
"""

from enum import Enum
from typing import TypeIs

from packratkit.constants import INVALID_TOKEN_TEXT, SKIP_TOKEN_TEXT

__all__ = ["INVALID", "SKIP", "Marker", "Outcome", "is_invalid", "is_marker", "is_skip"]


class Marker(Enum):
    """Closed set of result markers.

    Example:
        >>> SKIP is Marker.SKIP
        True
        >>> SKIP == None
        False
        >>> str(INVALID)
        'INVALID_TOKEN'
    """

    SKIP = SKIP_TOKEN_TEXT
    INVALID = INVALID_TOKEN_TEXT

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return self.value


SKIP = Marker.SKIP
INVALID = Marker.INVALID

# Result of running a rule: its value, or a marker.
type Outcome[T] = T | Marker


def is_invalid(value: object) -> TypeIs[Marker]:
    """Check whether a rule result signals a mismatch."""
    return value is INVALID


def is_skip(value: object) -> TypeIs[Marker]:
    """Check whether a rule result carries no value."""
    return value is SKIP


def is_marker(value: object) -> TypeIs[Marker]:
    """Check whether a rule result is either marker."""
    return value is SKIP or value is INVALID
