from .trim import FrameRemapper

__all__ = [
    "FrameRemapper",
]
