"""Core utilities shared by the syntax layer.

Exports:
    DepthGuard: Context manager for recursion depth limiting
    depth_clamp: Clamp a requested depth to the interpreter recursion limit

Python 3.13+.
"""

from .depth_guard import DepthGuard, depth_clamp

__all__ = [
    "DepthGuard",
    "depth_clamp",
]
