from .clip import ClipWindow
from .channel import ChannelKind, RemapPolicy, SparseChannel
from .track import Track

__all__ = [
    "ClipWindow",
    "ChannelKind",
    "RemapPolicy",
    "SparseChannel",
    "Track",
]
