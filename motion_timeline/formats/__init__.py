from .context import TimelineContext

__all__ = [
    "TimelineContext",
]
