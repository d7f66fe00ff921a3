"""Tests for ParseContext: scan offset, memo cache, furthest failure, errors."""

from __future__ import annotations

import logging

import pytest
from hypothesis import event, given, settings
from hypothesis import strategies as st

from packratkit.diagnostics import (
    DiagnosticCode,
    PackratError,
    PackratSyntaxError,
    SeekOutOfRangeError,
)
from packratkit.syntax.context import ParseContext

# ============================================================================
# CONSTRUCTION
# ============================================================================


class TestConstruction:
    """A fresh context starts at offset 0 with no state."""

    def test_initial_state(self) -> None:
        ctx = ParseContext("hello", "greeting.txt")

        assert ctx.source == "hello"
        assert ctx.source_label == "greeting.txt"
        assert ctx.pos == 0
        assert ctx.current_offset() == 0
        assert ctx.memo_size == 0
        assert ctx.last_fail_pos == 0
        assert ctx.expected_labels == ()

    def test_default_source_label(self) -> None:
        assert ParseContext("x").source_label == "source"

    def test_repr(self) -> None:
        ctx = ParseContext("abc", "f")
        assert repr(ctx) == "ParseContext(source_label='f', pos=0, length=3, last_fail_pos=0)"


# ============================================================================
# SCAN OFFSET
# ============================================================================


class TestSeek:
    """seek() repositions within [0, len(source)] only."""

    def test_seek_forward_and_back(self) -> None:
        ctx = ParseContext("hello")
        ctx.seek(4)
        assert ctx.pos == 4
        ctx.seek(1)
        assert ctx.pos == 1

    def test_seek_to_end_is_legal(self) -> None:
        ctx = ParseContext("hello")
        ctx.seek(5)
        assert ctx.is_eof

    def test_pos_setter_seeks(self) -> None:
        ctx = ParseContext("hello")
        ctx.pos = 3
        assert ctx.current_offset() == 3

    def test_advance_is_relative(self) -> None:
        ctx = ParseContext("hello")
        ctx.advance(2)
        ctx.advance(2)
        ctx.advance(-1)
        assert ctx.pos == 3

    def test_remaining(self) -> None:
        ctx = ParseContext("hello")
        ctx.seek(2)
        assert ctx.remaining() == "llo"

    def test_empty_source_is_eof(self) -> None:
        assert ParseContext("").is_eof

    @pytest.mark.parametrize("offset", [-1, 6, 100])
    def test_seek_out_of_range_raises(self, offset: int) -> None:
        ctx = ParseContext("hello")
        with pytest.raises(SeekOutOfRangeError, match="out of range"):
            ctx.seek(offset)
        assert ctx.pos == 0

    def test_seek_error_is_value_error_and_packrat_error(self) -> None:
        ctx = ParseContext("")
        with pytest.raises(ValueError) as exc_info:
            ctx.seek(1)
        assert isinstance(exc_info.value, PackratError)
        assert exc_info.value.diagnostic is not None
        assert exc_info.value.diagnostic.code == DiagnosticCode.SEEK_OUT_OF_RANGE

    def test_advance_past_end_raises(self) -> None:
        ctx = ParseContext("ab")
        ctx.seek(2)
        with pytest.raises(SeekOutOfRangeError):
            ctx.advance(1)


# ============================================================================
# MEMOIZATION
# ============================================================================


class TestMemo:
    """Memo cache keyed by (rule id, offset)."""

    def test_lookup_miss(self) -> None:
        assert ParseContext("abc").memo_lookup(1, 0) is None

    def test_store_then_lookup(self) -> None:
        ctx = ParseContext("abc")
        value = ["a", "b"]
        ctx.memo_store(7, 0, value, 2)

        hit = ctx.memo_lookup(7, 0)
        assert hit is not None
        assert hit[0] is value
        assert hit[1] == 2

    def test_keys_distinguish_rule_and_offset(self) -> None:
        ctx = ParseContext("abc")
        ctx.memo_store(1, 0, "x", 1)
        assert ctx.memo_lookup(2, 0) is None
        assert ctx.memo_lookup(1, 1) is None

    def test_cached_none_result_is_a_hit(self) -> None:
        ctx = ParseContext("abc")
        ctx.memo_store(1, 0, None, 0)
        assert ctx.memo_lookup(1, 0) == (None, 0)

    def test_clear_memo(self) -> None:
        ctx = ParseContext("abc")
        ctx.memo_store(1, 0, "a", 1)
        ctx.memo_store(1, 1, "b", 2)
        assert ctx.memo_size == 2

        ctx.clear_memo()

        assert ctx.memo_size == 0
        assert ctx.memo_lookup(1, 0) is None

    def test_clear_cache_alias(self) -> None:
        ctx = ParseContext("abc")
        ctx.memo_store(1, 0, "a", 1)
        ctx.clear_cache()
        assert ctx.memo_size == 0

    def test_clear_memo_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        ctx = ParseContext("abc", "input.txt")
        ctx.memo_store(1, 0, "a", 1)
        with caplog.at_level(logging.DEBUG, logger="packratkit.syntax.context"):
            ctx.clear_memo()
        assert "Clearing 1 memo entries for input.txt" in caplog.text

    def test_memo_is_per_context(self) -> None:
        first = ParseContext("abc")
        second = ParseContext("abc")
        first.memo_store(1, 0, "a", 1)
        assert second.memo_lookup(1, 0) is None


# ============================================================================
# FURTHEST FAILURE
# ============================================================================


class TestRecordFailure:
    """Furthest-failure merge rule."""

    def test_same_offset_unions_in_first_seen_order(self) -> None:
        ctx = ParseContext("abcdef")
        ctx.record_failure(3, ["'x'", "'y'"])
        ctx.record_failure(3, ["'y'", "'z'", "'x'"])

        assert ctx.last_fail_pos == 3
        assert ctx.expected_labels == ("'x'", "'y'", "'z'")

    def test_greater_offset_replaces(self) -> None:
        ctx = ParseContext("abcdef")
        ctx.record_failure(2, ["'a'"])
        ctx.record_failure(4, ["'b'"])

        assert ctx.last_fail_pos == 4
        assert ctx.expected_labels == ("'b'",)

    def test_lesser_offset_discarded(self) -> None:
        ctx = ParseContext("abcdef")
        ctx.record_failure(4, ["'b'"])
        ctx.record_failure(2, ["'a'"])

        assert ctx.last_fail_pos == 4
        assert ctx.expected_labels == ("'b'",)

    def test_failure_at_zero_merges_into_initial_state(self) -> None:
        ctx = ParseContext("abc")
        ctx.record_failure(0, ["'x'"])
        assert ctx.last_fail_pos == 0
        assert ctx.expected_labels == ("'x'",)

    def test_duplicates_within_one_call_collapse(self) -> None:
        ctx = ParseContext("abc")
        ctx.record_failure(1, ["'x'", "'x'"])
        assert ctx.expected_labels == ("'x'",)

    def test_accepts_any_iterable(self) -> None:
        ctx = ParseContext("abc")
        ctx.record_failure(1, (label for label in ["'p'", "'q'"]))
        assert ctx.expected_labels == ("'p'", "'q'")

    def test_reset_failures(self) -> None:
        ctx = ParseContext("abc")
        ctx.record_failure(2, ["'x'"])
        ctx.reset_failures()
        assert ctx.last_fail_pos == 0
        assert ctx.expected_labels == ()


class TestReset:
    """reset() returns to the freshly constructed state."""

    def test_reset_clears_everything(self) -> None:
        ctx = ParseContext("abcdef")
        ctx.seek(3)
        ctx.memo_store(1, 0, "a", 1)
        ctx.record_failure(5, ["'z'"])
        ctx.depth_guard.current_depth = 4

        ctx.reset()

        assert ctx.pos == 0
        assert ctx.memo_size == 0
        assert ctx.last_fail_pos == 0
        assert ctx.expected_labels == ()
        assert ctx.depth_guard.depth == 0


# ============================================================================
# BUILD ERROR
# ============================================================================


class TestBuildError:
    """build_error() decides between furthest failure and stop offset."""

    def test_reports_furthest_failure_with_labels(self) -> None:
        ctx = ParseContext("abcd", "grammar.txt")
        ctx.record_failure(2, ["'x'", "'y'"])

        error = ctx.build_error()

        assert isinstance(error, PackratSyntaxError)
        assert error.msg == "in grammar.txt:1 at 3, expect token [ 'x' | 'y' ]"
        assert error.line == 1
        assert error.col == 3
        assert error.line_text == "abcd"

    def test_stop_offset_equal_to_fail_offset_uses_failure(self) -> None:
        ctx = ParseContext("abcd")
        ctx.record_failure(2, ["'x'"])
        ctx.seek(2)
        assert ctx.build_error().msg == "in source:1 at 3, expect token [ 'x' ]"

    def test_stop_offset_past_failure_has_no_labels(self) -> None:
        ctx = ParseContext("abcd")
        ctx.record_failure(1, ["'x'"])
        ctx.seek(3)

        error = ctx.build_error()

        assert error.msg == "in source:1 at 4"
        assert error.col == 4
        assert error.diagnostic is not None
        assert error.diagnostic.code == DiagnosticCode.UNEXPECTED_INPUT

    def test_no_recorded_labels_omits_clause(self) -> None:
        error = ParseContext("abcd").build_error()
        assert error.msg == "in source:1 at 1"

    def test_label_override(self) -> None:
        ctx = ParseContext("abcd", "default.txt")
        ctx.record_failure(0, ["'q'"])
        assert ctx.build_error("other.txt").msg.startswith("in other.txt:1 at 1")

    def test_build_error_does_not_raise_or_mutate(self) -> None:
        ctx = ParseContext("ab\ncd")
        ctx.record_failure(4, ["'e'"])
        first = ctx.build_error()
        second = ctx.build_error()
        assert first == second
        assert ctx.last_fail_pos == 4

    def test_multiline_location(self) -> None:
        ctx = ParseContext("first line\nsecond line\nthird")
        ctx.record_failure(18, ["';'"])

        error = ctx.build_error()

        assert error.line == 2
        assert error.col == 8
        assert error.line_text == "second line"
        assert str(error) == (
            "in source:2 at 8, expect token [ ';' ]\n"
            "second line\n"
            "       ^"
        )

    def test_diagnostic_span_and_expected(self) -> None:
        ctx = ParseContext("ab\ncd")
        ctx.record_failure(4, ["'e'", "'f'"])

        diagnostic = ctx.build_error().diagnostic

        assert diagnostic is not None
        assert diagnostic.code == DiagnosticCode.EXPECTED_TOKEN
        assert diagnostic.expected == ("'e'", "'f'")
        assert diagnostic.span is not None
        assert (diagnostic.span.line, diagnostic.span.column) == (2, 2)


# ============================================================================
# FUZZ: FAILURE MERGE
# ============================================================================

failure_records = st.lists(
    st.tuples(
        st.integers(min_value=0, max_value=20),
        st.lists(st.sampled_from(["'a'", "'b'", "'c'", "EOF", "name"]), max_size=3),
    ),
    max_size=30,
)


@pytest.mark.fuzz
class TestFailureMergeFuzz:
    """record_failure agrees with a plain list model of the merge."""

    @given(failure_records)
    @settings(max_examples=1000)
    def test_matches_model(self, records: list[tuple[int, list[str]]]) -> None:
        """PROPERTY: furthest offset wins, equal offsets union labels in order."""
        ctx = ParseContext("x" * 20)
        fail_pos, labels = 0, []
        for offset, expected in records:
            ctx.record_failure(offset, expected)
            if offset > fail_pos:
                fail_pos, labels = offset, list(dict.fromkeys(expected))
            elif offset == fail_pos:
                labels += [label for label in expected if label not in labels]

        event(f"labels={len(labels)}")
        assert ctx.last_fail_pos == fail_pos
        assert ctx.expected_labels == tuple(labels)
