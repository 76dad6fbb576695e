"""
Editor state for tracksmith.
Encapsulates everything the engine owns: tracks, focus, selection, clipboard
and the shared transport.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

from .buffer import SampleBuffer
from .track import Track
from .transport import Transport


@dataclass(frozen=True)
class Selection:
    """A time range on the current track, ``0 <= start < end``."""
    start: float
    end: float

    @property
    def length(self) -> float:
        return self.end - self.start

    def is_valid_for(self, duration: float) -> bool:
        return 0.0 <= self.start < self.end <= duration


@dataclass(frozen=True)
class RepeatRegion:
    """A loop range on the shared timeline."""
    start: float
    end: float

    def is_valid_for(self, duration: float) -> bool:
        return 0.0 <= self.start < self.end <= duration


@dataclass
class EditorState:
    """
    Represents an editing session.
    Contains all tracks, the focused track, selection, clipboard and transport.
    """
    project_name: str = "Untitled Project"
    tracks: List[Track] = field(default_factory=list)
    current_track_id: Optional[str] = None
    selection: Optional[Selection] = None
    clipboard: Optional[SampleBuffer] = field(default=None, repr=False)
    repeat_region: Optional[RepeatRegion] = None
    transport: Transport = field(default_factory=Transport)

    @property
    def current_track(self) -> Optional[Track]:
        """The focused track, if any."""
        if self.current_track_id is None:
            return None
        return self.get_track(self.current_track_id)

    @property
    def duration(self) -> float:
        """Shared timeline length (longest track) in seconds."""
        if not self.tracks:
            return 0.0
        return max(t.duration for t in self.tracks)

    @property
    def has_solo(self) -> bool:
        """Check if any track is soloed."""
        return any(t.soloed for t in self.tracks)

    def get_track(self, track_id: str) -> Optional[Track]:
        """Get track by id safely."""
        for track in self.tracks:
            if track.id == track_id:
                return track
        return None

    def index_of(self, track_id: str) -> int:
        """Position of a track in the list, or -1."""
        for i, track in enumerate(self.tracks):
            if track.id == track_id:
                return i
        return -1

    def add_track(self, track: Track, index: Optional[int] = None) -> int:
        """Add a track (appended by default) and return its index."""
        if index is None or index >= len(self.tracks):
            self.tracks.append(track)
            return len(self.tracks) - 1
        index = max(0, index)
        self.tracks.insert(index, track)
        return index

    def remove_track(self, track_id: str) -> Optional[Track]:
        """Remove a track and return it."""
        index = self.index_of(track_id)
        if index < 0:
            return None
        return self.tracks.pop(index)

    def sync_timeline(self) -> None:
        """Push the current timeline length into the transport."""
        self.transport.duration = self.duration
