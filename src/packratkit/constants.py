"""Shared constants for packratkit.

This module provides centralized configuration constants used across the
diagnostics, core and syntax packages. Placing constants here avoids circular imports
and provides a single source of truth.

Constants are grouped by domain:
- Depth limits: Recursion protection for lazy (recursive) rules
- Input limits: DoS prevention via size constraints
- Diagnostics: Shape of rendered syntax errors

Python 3.13+. Zero external dependencies.
"""

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Depth limits
    "MAX_DEPTH",
    # Input limits
    "MAX_SOURCE_SIZE",
    # Diagnostics
    "DEFAULT_SOURCE_LABEL",
    "LINE_TEXT_RADIUS",
    "SKIP_TOKEN_TEXT",
    "INVALID_TOKEN_TEXT",
]

# ============================================================================
# DEPTH LIMITS
# ============================================================================

# Maximum number of nested Lazy rule entries during a single parse.
# Recursive grammars re-enter themselves through Lazy; without a bound an
# adversarial input like "((((((...))))))" exhausts the Python stack.
# Clamped at runtime against sys.getrecursionlimit() (see core.depth_guard).
MAX_DEPTH: int = 150

# ============================================================================
# INPUT LIMITS
# ============================================================================

# Default maximum source size in characters (10 MB worth of ASCII).
# The memo cache grows with distinct (rule, offset) pairs, so input size
# bounds memory.
MAX_SOURCE_SIZE: int = 10 * 1024 * 1024

# ============================================================================
# DIAGNOSTICS
# ============================================================================

# Label used in error messages when the caller names no source.
DEFAULT_SOURCE_LABEL: str = "source"

# Characters kept on each side of the error offset when rendering the
# offending line. A clipped line is at most 2 * radius + 1 characters.
LINE_TEXT_RADIUS: int = 40

# Display text of the two result markers.
SKIP_TOKEN_TEXT: str = "SKIP_TOKEN"
INVALID_TOKEN_TEXT: str = "INVALID_TOKEN"
