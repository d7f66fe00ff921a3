"""Tests for DepthGuard and depth_clamp."""

from __future__ import annotations

import logging
import sys

import pytest

from packratkit.core.depth_guard import DepthGuard, depth_clamp
from packratkit.diagnostics import DepthLimitExceededError, DiagnosticCode


class TestDepthGuard:
    """Context manager depth tracking."""

    def test_enter_exit_tracks_depth(self) -> None:
        guard = DepthGuard(max_depth=5)
        with guard:
            assert guard.depth == 1
            with guard:
                assert guard.depth == 2
        assert guard.depth == 0

    def test_limit_raises(self) -> None:
        guard = DepthGuard(max_depth=2)
        with guard, guard:
            with pytest.raises(DepthLimitExceededError) as exc_info:
                guard.__enter__()
        assert exc_info.value.diagnostic is not None
        assert exc_info.value.diagnostic.code == DiagnosticCode.MAX_DEPTH_EXCEEDED

    def test_failed_enter_leaves_depth_unchanged(self) -> None:
        guard = DepthGuard(max_depth=1)
        with guard:
            with pytest.raises(DepthLimitExceededError):
                guard.__enter__()
            assert guard.depth == 1
        assert guard.depth == 0

    def test_exit_on_exception(self) -> None:
        guard = DepthGuard(max_depth=3)
        with pytest.raises(KeyError), guard:
            raise KeyError("boom")
        assert guard.depth == 0

    def test_is_exceeded_and_reset(self) -> None:
        guard = DepthGuard(max_depth=1)
        guard.current_depth = 1
        assert guard.is_exceeded()
        guard.reset()
        assert not guard.is_exceeded()


class TestDepthClamp:
    """Clamping against the interpreter recursion limit."""

    def test_small_depth_unchanged(self) -> None:
        assert depth_clamp(10) == 10

    def test_huge_depth_clamped_with_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="packratkit.core.depth_guard"):
            clamped = depth_clamp(10**9)
        assert clamped < sys.getrecursionlimit()
        assert "Clamping" in caplog.text

    def test_guard_clamps_on_construction(self) -> None:
        guard = DepthGuard(max_depth=10**9)
        assert guard.max_depth < sys.getrecursionlimit()
