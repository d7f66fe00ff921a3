"""Parser combinators driven against a ParseContext.

Every rule is a Parser object with a stable integer ``rule_id`` and a
``parse_at(ctx)`` method. A rule either returns its value with the scan
offset moved past what it consumed, or returns INVALID with the offset back
where it started. Primitive rules report every mismatch through
``ctx.record_failure`` so that a strict parse can explain itself.

Building grammars:
    >>> digit = regex(r"[0-9]").named("digit")
    >>> pair = digit + "," + digit
    >>> pair.parse("1,2")
    ['1', ',', '2']
    >>> (lit("a") | "b").parse("b")
    'b'
    >>> lit("x").maybe().parse("")
    SKIP_TOKEN

Result conventions:
    - Seq collects the values of its parts into a list, leaving out SKIP
    - Maybe turns a mismatch into SKIP
    - Skip matches but yields SKIP
    - Map and On see only real values; markers pass through untouched

Python 3.13+.
"""

import itertools
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Self

from packratkit.constants import DEFAULT_SOURCE_LABEL, MAX_DEPTH, MAX_SOURCE_SIZE
from packratkit.diagnostics import ErrorTemplate, SourceTooLargeError
from packratkit.syntax.context import ParseContext
from packratkit.syntax.sentinels import INVALID, SKIP, is_marker

__all__ = [
    "Branch",
    "Cached",
    "Eof",
    "Fail",
    "Lazy",
    "Literal",
    "Map",
    "Maybe",
    "On",
    "Parser",
    "Pattern",
    "Repeat",
    "Seq",
    "Skip",
    "choice",
    "eof",
    "lazy",
    "lit",
    "regex",
    "seq",
]

logger = logging.getLogger(__name__)

# Process-wide source of rule identities (memo cache keys).
_rule_ids = itertools.count(1)


def _coerce(value: "Parser | str | re.Pattern[str]") -> "Parser":
    """Promote plain strings and compiled regexes to rules."""
    if isinstance(value, Parser):
        return value
    if isinstance(value, str):
        return Literal(value)
    if isinstance(value, re.Pattern):
        return Pattern(value)
    msg = ErrorTemplate.invalid_argument(
        "rule", f"expected Parser, str or re.Pattern, got {type(value).__name__}"
    ).message
    raise TypeError(msg)


class Parser(ABC):
    """Base class of all rules.

    Attributes:
        rule_id: Stable identity assigned at construction (memo cache key)
    """

    __slots__ = ("_name", "rule_id")

    def __init__(self) -> None:
        self.rule_id: int = next(_rule_ids)
        self._name: str | None = None

    @property
    def name(self) -> str:
        """Display name: the one given via named(), else the class name."""
        return self._name if self._name is not None else type(self).__name__

    def named(self, name: str) -> Self:
        """Give the rule a display name (also its expected label if primitive)."""
        self._name = name
        return self

    @abstractmethod
    def parse_at(self, ctx: ParseContext) -> Any:
        """Run the rule at ctx.pos.

        Returns:
            The rule's value (offset advanced past the match), SKIP, or
            INVALID (offset unchanged)
        """

    def describe(self) -> str:
        """Render the rule's structure (children included)."""
        return f"<{self.name}>"

    def __repr__(self) -> str:
        return self.describe()

    # =========================================================================
    # Driver entry points
    # =========================================================================

    def parse(
        self,
        source: str,
        source_label: str = DEFAULT_SOURCE_LABEL,
        *,
        max_source_size: int | None = None,
        max_depth: int = MAX_DEPTH,
    ) -> Any:
        """Parse a whole input with this rule as the top rule.

        Args:
            source: Input text
            source_label: Name used in error messages
            max_source_size: Maximum input length (default: MAX_SOURCE_SIZE,
                0 disables the check)
            max_depth: Maximum nested Lazy rule entries

        Returns:
            The rule's value, SKIP, or INVALID when the input does not match

        Raises:
            SourceTooLargeError: If the input exceeds max_source_size
        """
        ctx = self.new_context(
            source, source_label, max_source_size=max_source_size, max_depth=max_depth
        )
        return self.parse_at(ctx)

    def parse_strict(
        self,
        source: str,
        source_label: str = DEFAULT_SOURCE_LABEL,
        *,
        max_source_size: int | None = None,
        max_depth: int = MAX_DEPTH,
    ) -> Any:
        """Parse like parse(), raising instead of returning INVALID.

        Raises:
            PackratSyntaxError: Located at the furthest failure, with the
                tokens expected there
            SourceTooLargeError: If the input exceeds max_source_size
        """
        ctx = self.new_context(
            source, source_label, max_source_size=max_source_size, max_depth=max_depth
        )
        result = self.parse_at(ctx)
        if result is INVALID:
            error = ctx.build_error(source_label)
            logger.debug("Strict parse of %s failed: %s", source_label, error.msg)
            raise error
        return result

    @staticmethod
    def new_context(
        source: str,
        source_label: str = DEFAULT_SOURCE_LABEL,
        *,
        max_source_size: int | None = None,
        max_depth: int = MAX_DEPTH,
    ) -> ParseContext:
        """Create a ParseContext after checking the input size limit."""
        limit = max_source_size if max_source_size is not None else MAX_SOURCE_SIZE
        if limit and len(source) > limit:
            raise SourceTooLargeError(ErrorTemplate.source_too_large(len(source), limit))
        return ParseContext(source, source_label, max_depth=max_depth)

    # =========================================================================
    # Composition
    # =========================================================================

    def __add__(self, other: "Parser | str | re.Pattern[str]") -> "Seq":
        return Seq(self, _coerce(other))

    def __radd__(self, other: "str | re.Pattern[str]") -> "Seq":
        return Seq(_coerce(other), self)

    def __or__(self, other: "Parser | str | re.Pattern[str]") -> "Branch":
        return Branch(self, _coerce(other))

    def __ror__(self, other: "str | re.Pattern[str]") -> "Branch":
        return Branch(_coerce(other), self)

    def map(self, fn: Callable[[Any], Any]) -> "Map":
        """Transform the rule's value."""
        return Map(self, fn)

    def on(self, fn: Callable[[Any], object]) -> "On":
        """Call fn with the rule's value on success; the value is kept."""
        return On(self, fn)

    def fail(self, *labels: str) -> "Fail":
        """Report labels as the expected tokens when the rule does not match."""
        return Fail(self, labels)

    def maybe(self) -> "Maybe":
        """Make the rule optional (SKIP when absent)."""
        return Maybe(self)

    def skip(self) -> "Skip":
        """Match the rule but drop its value."""
        return Skip(self)

    def cached(self) -> "Cached":
        """Memoize the rule's result per offset in the parse context."""
        return Cached(self)

    def star(self) -> "Repeat":
        """Zero or more repetitions, collected into a list."""
        return Repeat(self, 0)

    def plus(self) -> "Repeat":
        """One or more repetitions, collected into a list."""
        return Repeat(self, 1)


# =============================================================================
# Primitives
# =============================================================================


class Literal(Parser):
    """Match an exact string."""

    __slots__ = ("text",)

    def __init__(self, text: str) -> None:
        super().__init__()
        self.text = text

    def expected(self) -> tuple[str, ...]:
        """Labels reported on mismatch."""
        return (self._name,) if self._name is not None else (repr(self.text),)

    def parse_at(self, ctx: ParseContext) -> Any:
        if ctx.source.startswith(self.text, ctx.pos):
            ctx.advance(len(self.text))
            return self.text
        ctx.record_failure(ctx.pos, self.expected())
        return INVALID

    def describe(self) -> str:
        return f"<{self.name} {self.text!r}>"


class Pattern(Parser):
    """Match a regular expression anchored at the scan offset."""

    __slots__ = ("regex",)

    def __init__(self, pattern: str | re.Pattern[str], flags: int = 0) -> None:
        super().__init__()
        self.regex = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern, flags)

    def expected(self) -> tuple[str, ...]:
        """Labels reported on mismatch."""
        return (self._name,) if self._name is not None else (f"/{self.regex.pattern}/",)

    def parse_at(self, ctx: ParseContext) -> Any:
        match = self.regex.match(ctx.source, ctx.pos)
        if match is None:
            ctx.record_failure(ctx.pos, self.expected())
            return INVALID
        ctx.seek(match.end())
        return match.group(0)

    def describe(self) -> str:
        return f"<{self.name} /{self.regex.pattern}/>"


class Eof(Parser):
    """Match only at the end of input; yields SKIP."""

    __slots__ = ()

    def parse_at(self, ctx: ParseContext) -> Any:
        if ctx.is_eof:
            return SKIP
        ctx.record_failure(ctx.pos, (self._name or "EOF",))
        return INVALID


# =============================================================================
# Composites
# =============================================================================


class Seq(Parser):
    """Match parts one after another; yields the list of their values."""

    __slots__ = ("parsers",)

    def __init__(self, *parsers: Parser) -> None:
        super().__init__()
        self.parsers: tuple[Parser, ...] = parsers

    def __add__(self, other: "Parser | str | re.Pattern[str]") -> "Seq":
        # a + b + c builds one flat Seq; an explicitly grouped (b + c) stays nested
        if self._name is not None:
            return Seq(self, _coerce(other))
        return Seq(*self.parsers, _coerce(other))

    def parse_at(self, ctx: ParseContext) -> Any:
        start = ctx.pos
        values: list[Any] = []
        for parser in self.parsers:
            result = parser.parse_at(ctx)
            if result is INVALID:
                ctx.seek(start)
                return INVALID
            if result is not SKIP:
                values.append(result)
        return values

    def describe(self) -> str:
        parts = " ".join(p.describe() for p in self.parsers)
        return f"<{self.name} {parts}>"


class Branch(Parser):
    """Ordered choice: the first alternative that matches wins."""

    __slots__ = ("alternatives",)

    def __init__(self, *alternatives: Parser) -> None:
        super().__init__()
        self.alternatives: tuple[Parser, ...] = alternatives

    def __or__(self, other: "Parser | str | re.Pattern[str]") -> "Branch":
        if self._name is not None:
            return Branch(self, _coerce(other))
        return Branch(*self.alternatives, _coerce(other))

    def parse_at(self, ctx: ParseContext) -> Any:
        start = ctx.pos
        for alternative in self.alternatives:
            result = alternative.parse_at(ctx)
            if result is not INVALID:
                return result
            ctx.seek(start)
        return INVALID

    def describe(self) -> str:
        parts = " ".join(p.describe() for p in self.alternatives)
        return f"<{self.name} {parts}>"


class Repeat(Parser):
    """Match a rule min_count or more times; yields the list of values."""

    __slots__ = ("inner", "min_count")

    def __init__(self, inner: Parser, min_count: int = 0) -> None:
        if min_count < 0:
            msg = ErrorTemplate.invalid_argument("min_count", "must be >= 0").message
            raise ValueError(msg)
        super().__init__()
        self.inner = inner
        self.min_count = min_count

    def parse_at(self, ctx: ParseContext) -> Any:
        start = ctx.pos
        values: list[Any] = []
        count = 0
        while True:
            before = ctx.pos
            result = self.inner.parse_at(ctx)
            if result is INVALID:
                break
            count += 1
            if result is not SKIP:
                values.append(result)
            if ctx.pos == before:
                # zero-width match would repeat forever
                break
        if count < self.min_count:
            ctx.seek(start)
            return INVALID
        return values

    def describe(self) -> str:
        return f"<{self.name} {self.inner.describe()}>"


# =============================================================================
# Wrappers
# =============================================================================


class _Unary(Parser):
    """Rule wrapping exactly one inner rule."""

    __slots__ = ("inner",)

    def __init__(self, inner: Parser) -> None:
        super().__init__()
        self.inner = inner

    def describe(self) -> str:
        return f"<{self.name} {self.inner.describe()}>"


class Map(_Unary):
    """Apply a function to the inner rule's value."""

    __slots__ = ("fn",)

    def __init__(self, inner: Parser, fn: Callable[[Any], Any]) -> None:
        super().__init__(inner)
        self.fn = fn

    def parse_at(self, ctx: ParseContext) -> Any:
        result = self.inner.parse_at(ctx)
        if is_marker(result):
            return result
        return self.fn(result)


class On(_Unary):
    """Call a function with the inner rule's value, keeping the value."""

    __slots__ = ("fn",)

    def __init__(self, inner: Parser, fn: Callable[[Any], object]) -> None:
        super().__init__(inner)
        self.fn = fn

    def parse_at(self, ctx: ParseContext) -> Any:
        result = self.inner.parse_at(ctx)
        if not is_marker(result):
            self.fn(result)
        return result


class Fail(_Unary):
    """Record custom expected-token labels when the inner rule fails.

    The labels are merged at the furthest offset the inner rule reached in
    this attempt, alongside whatever the inner rule itself reported there.
    When the attempt pushed the furthest failure no further, they are merged
    at the offset where the inner rule was attempted.
    """

    __slots__ = ("labels",)

    def __init__(self, inner: Parser, labels: tuple[str, ...]) -> None:
        if not labels:
            msg = ErrorTemplate.invalid_argument("labels", "at least one label required").message
            raise ValueError(msg)
        super().__init__(inner)
        self.labels = labels

    def parse_at(self, ctx: ParseContext) -> Any:
        start = ctx.pos
        fail_pos_before = ctx.last_fail_pos
        result = self.inner.parse_at(ctx)
        if result is INVALID:
            reached = ctx.last_fail_pos if ctx.last_fail_pos > fail_pos_before else start
            ctx.record_failure(max(start, reached), self.labels)
        return result


class Maybe(_Unary):
    """Optional rule: SKIP when the inner rule does not match."""

    __slots__ = ()

    def parse_at(self, ctx: ParseContext) -> Any:
        result = self.inner.parse_at(ctx)
        return SKIP if result is INVALID else result


class Skip(_Unary):
    """Match the inner rule and discard its value."""

    __slots__ = ()

    def parse_at(self, ctx: ParseContext) -> Any:
        result = self.inner.parse_at(ctx)
        return INVALID if result is INVALID else SKIP


class Cached(_Unary):
    """Memoize the inner rule per offset (packrat caching).

    The cache lives in the ParseContext, keyed by (this rule's id, offset),
    so a hit replays the stored result and end offset without re-running the
    inner rule. Failures recorded by the first run stay in the context.
    """

    __slots__ = ()

    def parse_at(self, ctx: ParseContext) -> Any:
        start = ctx.pos
        hit = ctx.memo_lookup(self.rule_id, start)
        if hit is not None:
            result, end = hit
            ctx.seek(end)
            return result
        result = self.inner.parse_at(ctx)
        ctx.memo_store(self.rule_id, start, result, ctx.pos)
        return result


class Lazy(Parser):
    """Deferred reference to a rule, for recursive grammars.

    Either pass a factory, resolved on first use:
        >>> expr = lazy(lambda: "(" + expr.maybe() + ")" | lit("x"))

    or declare first and define later:
        >>> expr = lazy()
        >>> expr.define("(" + expr.maybe() + ")" | lit("x"))
    """

    __slots__ = ("_factory", "_target")

    def __init__(self, factory: Callable[[], Parser] | None = None) -> None:
        super().__init__()
        self._factory = factory
        self._target: Parser | None = None

    def define(self, target: "Parser | str | re.Pattern[str]") -> None:
        """Bind the rule this reference stands for."""
        self._target = _coerce(target)

    @property
    def target(self) -> Parser:
        """The referenced rule (resolving the factory on first access)."""
        if self._target is None:
            if self._factory is None:
                msg = ErrorTemplate.invalid_argument(
                    "target", "Lazy rule used before define()"
                ).message
                raise RuntimeError(msg)
            self._target = _coerce(self._factory())
        return self._target

    def parse_at(self, ctx: ParseContext) -> Any:
        with ctx.depth_guard:
            return self.target.parse_at(ctx)


# =============================================================================
# Constructors
# =============================================================================


def lit(text: str) -> Literal:
    """Rule matching an exact string."""
    return Literal(text)


def regex(pattern: str | re.Pattern[str], flags: int = 0) -> Pattern:
    """Rule matching a regular expression at the scan offset."""
    return Pattern(pattern, flags)


def seq(*parts: "Parser | str | re.Pattern[str]") -> Seq:
    """Rule matching parts in order."""
    return Seq(*(_coerce(p) for p in parts))


def choice(*alternatives: "Parser | str | re.Pattern[str]") -> Branch:
    """Rule matching the first alternative that matches."""
    return Branch(*(_coerce(a) for a in alternatives))


def lazy(factory: Callable[[], Parser] | None = None) -> Lazy:
    """Deferred rule reference (see Lazy)."""
    return Lazy(factory)


def eof() -> Eof:
    """Rule matching the end of input."""
    return Eof()
