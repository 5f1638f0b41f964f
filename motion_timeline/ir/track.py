from typing import Dict, Optional

from pydantic import BaseModel

from motion_timeline.ir.channel import ChannelKind, SparseChannel


class Track(BaseModel):
    """
    A tracked object: all channels recorded for it, keyed by their kind.

    Channels of one track are always interpreted against the same clip window.
    """

    track_id: int
    """Unique identifier of the tracked object."""
    name: Optional[str] = None
    channels: Dict[ChannelKind, SparseChannel] = {}
    start_frame: Optional[int] = None
    """First frame of the track's validity range (optional)."""
    end_frame: Optional[int] = None
    """Last frame of the track's validity range (optional)."""

    def channel(self, kind: ChannelKind) -> SparseChannel:
        """Returns the channel of the given kind, creating an empty one if the track has none."""
        if kind not in self.channels:
            self.channels[kind] = SparseChannel(kind=kind)
        return self.channels[kind]

    def has_channel(self, kind: ChannelKind) -> bool:
        return kind in self.channels

    def remove_channel(self, kind: ChannelKind) -> Optional[SparseChannel]:
        return self.channels.pop(kind, None)

    @property
    def position(self) -> SparseChannel:
        """Position channel of the track. An empty, unattached channel if the track has none."""
        position = self.channels.get(ChannelKind.POSITION)
        if position is None:
            return SparseChannel(kind=ChannelKind.POSITION)
        return position

    def is_empty(self) -> bool:
        return all(len(channel) == 0 for channel in self.channels.values())
