"""Parse context: scan offset, memo cache, and furthest-failure tracking.

One ParseContext serves one in-progress parse of one input. Combinators move
the scan offset forward on a match and rewind it on backtrack, read and write
the memo cache, and report every mismatch through record_failure(). When the
top-level rule fails, build_error() turns the accumulated failure state into
a positioned PackratSyntaxError.

Furthest-failure rule:
    - failure at a greater offset replaces the recorded offset and labels
    - failure at the same offset adds its labels (first-seen order, no dups)
    - failure at a lesser offset is ignored

Line Ending Support:
    \\n is the only line delimiter. CRLF input works because the \\n is still
    present; CR-only input reports everything on line 1.

Thread Safety:
    Not thread-safe. Offset, cache and failure state are unguarded.

Python 3.13+.
"""

import logging
from collections.abc import Iterable

from packratkit.constants import DEFAULT_SOURCE_LABEL, LINE_TEXT_RADIUS, MAX_DEPTH
from packratkit.core.depth_guard import DepthGuard
from packratkit.diagnostics import (
    ErrorTemplate,
    PackratSyntaxError,
    SeekOutOfRangeError,
    SourceSpan,
)

__all__ = ["ParseContext"]

logger = logging.getLogger(__name__)

# Memo cache entry: (result, end offset)
type MemoEntry = tuple[object, int]


class ParseContext:
    """Mutable parse state over an immutable input buffer.

    Example:
        >>> ctx = ParseContext("ab\\ncd")
        >>> ctx.seek(3)
        >>> ctx.line_of(ctx.pos), ctx.col_of(ctx.pos)
        (2, 1)
        >>> ctx.record_failure(3, ["'x'"])
        >>> ctx.record_failure(3, ["'y'", "'x'"])
        >>> ctx.expected_labels
        ("'x'", "'y'")

    Attributes:
        depth_guard: Bounds nested Lazy rule entries for this parse
    """

    __slots__ = (
        "_cache",
        "_expected",
        "_fail_pos",
        "_pos",
        "_source",
        "_source_label",
        "depth_guard",
    )

    def __init__(
        self,
        source: str,
        source_label: str = DEFAULT_SOURCE_LABEL,
        *,
        max_depth: int = MAX_DEPTH,
    ) -> None:
        """Create a context positioned at offset 0.

        Args:
            source: Input buffer (never modified)
            source_label: Name used in error messages (file name or similar)
            max_depth: Maximum nested Lazy rule entries
        """
        self._source = source
        self._source_label = source_label
        self._pos = 0
        self._cache: dict[tuple[int, int], MemoEntry] = {}
        self._fail_pos = 0
        # dict as insertion-ordered set
        self._expected: dict[str, None] = {}
        self.depth_guard = DepthGuard(max_depth=max_depth)

    def __repr__(self) -> str:
        return (
            f"ParseContext(source_label={self._source_label!r}, pos={self._pos}, "
            f"length={len(self._source)}, last_fail_pos={self._fail_pos})"
        )

    # =========================================================================
    # Input and scan offset
    # =========================================================================

    @property
    def source(self) -> str:
        """Input buffer."""
        return self._source

    @property
    def source_label(self) -> str:
        """Name used in error messages."""
        return self._source_label

    @property
    def pos(self) -> int:
        """Current scan offset."""
        return self._pos

    @pos.setter
    def pos(self, offset: int) -> None:
        self.seek(offset)

    @property
    def is_eof(self) -> bool:
        """Check if the scan offset is at the end of input."""
        return self._pos >= len(self._source)

    def current_offset(self) -> int:
        """Return the current scan offset."""
        return self._pos

    def seek(self, offset: int) -> None:
        """Move the scan offset to an absolute position.

        Seeking backward is how combinators backtrack; it has no side effect
        beyond repositioning.

        Raises:
            SeekOutOfRangeError: If offset is outside [0, len(source)]
        """
        self._check_offset(offset)
        self._pos = offset

    def advance(self, count: int) -> None:
        """Move the scan offset by count characters (may be negative).

        Raises:
            SeekOutOfRangeError: If the target is outside [0, len(source)]
        """
        self.seek(self._pos + count)

    def remaining(self) -> str:
        """Return the unconsumed part of the input."""
        return self._source[self._pos :]

    def _check_offset(self, offset: int) -> None:
        if not 0 <= offset <= len(self._source):
            raise SeekOutOfRangeError(
                ErrorTemplate.seek_out_of_range(offset, len(self._source))
            )

    # =========================================================================
    # Memoization
    # =========================================================================

    @property
    def memo_size(self) -> int:
        """Number of cached (rule, offset) results."""
        return len(self._cache)

    def memo_lookup(self, rule_id: int, offset: int) -> MemoEntry | None:
        """Return the cached (result, end offset) for a rule at an offset, if any."""
        return self._cache.get((rule_id, offset))

    def memo_store(self, rule_id: int, offset: int, result: object, end_offset: int) -> None:
        """Cache the result of running a rule at an offset."""
        self._cache[(rule_id, offset)] = (result, end_offset)

    def clear_memo(self) -> None:
        """Empty the memo cache.

        Call between logically independent parses over the same context
        (for example, retrying with a different top rule): entries are keyed
        only by (rule id, offset).
        """
        logger.debug(
            "Clearing %d memo entries for %s", len(self._cache), self._source_label
        )
        self._cache.clear()

    clear_cache = clear_memo

    # =========================================================================
    # Furthest failure
    # =========================================================================

    @property
    def last_fail_pos(self) -> int:
        """Offset of the furthest recorded failure."""
        return self._fail_pos

    @property
    def expected_labels(self) -> tuple[str, ...]:
        """Labels expected at the furthest failure, in first-seen order."""
        return tuple(self._expected)

    def record_failure(self, offset: int, expected_labels: Iterable[str]) -> None:
        """Merge a mismatch into the furthest-failure state.

        Args:
            offset: Where the failing rule was attempted
            expected_labels: Human-readable descriptions of what it expected
        """
        if offset > self._fail_pos:
            self._fail_pos = offset
            self._expected = dict.fromkeys(expected_labels)
        elif offset == self._fail_pos:
            for label in expected_labels:
                self._expected.setdefault(label)

    def reset_failures(self) -> None:
        """Forget all recorded failures."""
        logger.debug(
            "Resetting failure state at offset %d for %s", self._fail_pos, self._source_label
        )
        self._fail_pos = 0
        self._expected = {}

    def reset(self) -> None:
        """Return to the freshly constructed state (offset, cache, failures, depth)."""
        self._pos = 0
        self.clear_memo()
        self.reset_failures()
        self.depth_guard.reset()

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def build_error(self, source_label: str | None = None) -> PackratSyntaxError:
        """Build (but do not raise) a syntax error from the current state.

        If the parse stopped at or before the furthest failure, that failure
        is reported together with its expected labels. Otherwise the parse
        stopped past every recorded failure and the stop offset is reported
        without labels.

        Args:
            source_label: Overrides the context's source label

        Returns:
            PackratSyntaxError describing the failure location
        """
        label = source_label if source_label is not None else self._source_label
        if self._pos <= self._fail_pos:
            offset = self._fail_pos
            expected = self.expected_labels
        else:
            offset = self._pos
            expected = ()

        line = self.line_of(offset)
        col = self.col_of(offset)
        span = SourceSpan(start=offset, end=offset, line=line, column=col)
        diagnostic = ErrorTemplate.syntax_error(label, span, expected)
        return PackratSyntaxError(
            diagnostic.message,
            self.line_text_of(offset),
            line,
            col,
            diagnostic=diagnostic,
        )

    def line_of(self, offset: int) -> int:
        """Return the 1-based line number of an offset.

        Example:
            >>> ParseContext("a\\nb\\nc").line_of(4)
            3
        """
        self._check_offset(offset)
        # O(1) memory: count in range instead of creating substring
        return self._source.count("\n", 0, offset) + 1

    def col_of(self, offset: int) -> int:
        """Return the 1-based column number of an offset.

        Example:
            >>> ParseContext("ab\\ncd").col_of(4)
            2
        """
        self._check_offset(offset)
        if offset == 0:
            return 1
        last_newline = self._source.rfind("\n", 0, offset)
        return offset - last_newline if last_newline >= 0 else offset + 1

    def line_text_of(self, offset: int) -> str:
        """Return the line containing an offset, clipped around it.

        At most LINE_TEXT_RADIUS characters are kept on each side of the
        offset, so long lines render as a window centered on the error.

        Example:
            >>> ParseContext("one\\ntwo\\nthree").line_text_of(5)
            'two'
        """
        self._check_offset(offset)
        start = self._source.rfind("\n", 0, offset) + 1
        end = self._source.find("\n", offset)
        if end < 0:
            end = len(self._source)
        start = max(start, offset - LINE_TEXT_RADIUS)
        end = min(end, offset + LINE_TEXT_RADIUS + 1)
        return self._source[start:end]
