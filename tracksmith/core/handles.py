"""
Playable handles: what a track hands to an output device.

The editor treats a handle as opaque. Every time a track's buffer changes it
gets a fresh handle and the old one is released.
"""
from __future__ import annotations
import uuid
from typing import Optional, Protocol

from .buffer import SampleBuffer
from .codec import encode_wav


class PlayableHandle:
    """
    An encoded rendition of a buffer.
    """
    __slots__ = ('id', 'data', 'duration', '_released')

    def __init__(self, data: bytes, duration: float) -> None:
        self.id = uuid.uuid4().hex
        self.data: Optional[bytes] = data
        self.duration = duration
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Drop the encoded data; safe to call twice."""
        self.data = None
        self._released = True

    def __repr__(self) -> str:
        state = "released" if self._released else f"{len(self.data or b'')} bytes"
        return f"PlayableHandle({self.id[:8]}, {state})"


class HandleFactory(Protocol):
    """Creates and releases playable handles."""

    def create(self, buffer: SampleBuffer) -> PlayableHandle: ...

    def release(self, handle: Optional[PlayableHandle]) -> None: ...


class WavHandleFactory:
    """Renders each buffer into an in-memory 16-bit PCM WAV."""

    def __init__(self) -> None:
        self.live_handles = 0

    def create(self, buffer: SampleBuffer) -> PlayableHandle:
        handle = PlayableHandle(encode_wav(buffer), buffer.duration)
        self.live_handles += 1
        return handle

    def release(self, handle: Optional[PlayableHandle]) -> None:
        if handle is None or handle.released:
            return
        handle.release()
        self.live_handles -= 1
