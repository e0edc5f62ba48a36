"""Terminal rendering helpers."""

from .display import render_conflicts
from .display import render_differences
from .display import render_messages
from .display import render_stats
from .display import render_validation

__all__ = [
    "render_conflicts",
    "render_differences",
    "render_messages",
    "render_stats",
    "render_validation",
]
