"""
Track model for tracksmith.
"""
from __future__ import annotations
import uuid
from typing import TYPE_CHECKING, Optional

from .buffer import SampleBuffer
from .config import WaveformRenderer

if TYPE_CHECKING:
    from .handles import HandleFactory, PlayableHandle


class Track:
    """
    Represents a single audio track with its buffer, playable handle and mix state.
    """
    def __init__(
        self,
        name: str = "Track",
        buffer: Optional[SampleBuffer] = None,
        volume: float = 1.0,
        pan: float = 0.0,
        muted: bool = False,
        soloed: bool = False,
        background_color: Optional[str] = None,
        waveform_renderer: WaveformRenderer = WaveformRenderer.BARS
    ) -> None:
        self.id = uuid.uuid4().hex
        self.name = name
        self.buffer = buffer
        self.handle: Optional["PlayableHandle"] = None
        self._volume = 1.0
        self._pan = 0.0
        self.volume = volume
        self.pan = pan
        self.muted = muted
        self.soloed = soloed
        self.background_color = background_color
        self.waveform_renderer = waveform_renderer

    @property
    def volume(self) -> float:
        """Linear gain in [0, 1]."""
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        self._volume = max(0.0, min(1.0, float(value)))

    @property
    def pan(self) -> float:
        """Stereo position in [-1, 1] (left to right)."""
        return self._pan

    @pan.setter
    def pan(self, value: float) -> None:
        self._pan = max(-1.0, min(1.0, float(value)))

    @property
    def duration(self) -> float:
        """Duration in seconds; 0 without a buffer."""
        return self.buffer.duration if self.buffer is not None else 0.0

    @property
    def sample_rate(self) -> Optional[int]:
        return self.buffer.sample_rate if self.buffer is not None else None

    @property
    def channels(self) -> int:
        return self.buffer.channels if self.buffer is not None else 0

    def replace_buffer(self, buffer: SampleBuffer, handle_factory: "HandleFactory") -> None:
        """
        Swap in a new buffer with a freshly created handle.
        The previous handle is released.
        """
        new_handle = handle_factory.create(buffer)
        old_handle = self.handle
        self.buffer = buffer
        self.handle = new_handle
        handle_factory.release(old_handle)

    def release(self, handle_factory: "HandleFactory") -> None:
        """Release the playable handle (track deletion or reset)."""
        handle_factory.release(self.handle)
        self.handle = None

    def copy(self, name: Optional[str] = None) -> "Track":
        """
        Deep copy under a new id.
        The copy has no handle until its owner creates one.
        """
        return Track(
            name=name if name is not None else f"{self.name} (copy)",
            buffer=self.buffer.clone() if self.buffer is not None else None,
            volume=self.volume,
            pan=self.pan,
            muted=self.muted,
            soloed=self.soloed,
            background_color=self.background_color,
            waveform_renderer=self.waveform_renderer,
        )

    def __repr__(self) -> str:
        return f"Track(name={self.name!r}, duration={self.duration:.2f}s, channels={self.channels})"
