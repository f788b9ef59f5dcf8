# Core package exports

from .clock import Clock, WallClock

__all__ = [
    "Clock",
    "WallClock",
]
