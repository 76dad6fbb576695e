"""
SampleBuffer: the multi-channel float PCM container every component works on.

A buffer owns a read-only ``float32`` array shaped ``(samples, channels)``.
Operations never mutate a buffer; they build a new one. Passing an array to
the constructor hands it over: the buffer freezes it in place.
"""
from __future__ import annotations
import math
from typing import Iterable, Sequence
import numpy as np

from .types import AudioArray, MonoArray


class SampleBuffer:
    """
    Immutable multi-channel sample container.
    """
    __slots__ = ('_data', '_sample_rate')

    def __init__(self, data: AudioArray | MonoArray, sample_rate: int) -> None:
        """
        Wrap sample data.

        Args:
            data: Samples shaped (samples, channels), or (samples,) for mono
            sample_rate: Positive sample rate in Hz
        """
        if sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {sample_rate}")

        array = np.asarray(data, dtype=np.float32)
        if array.ndim == 1:
            array = array[:, np.newaxis]
        if array.ndim != 2 or array.shape[1] < 1:
            raise ValueError(f"Expected (samples, channels) data, got shape {array.shape}")

        array = np.ascontiguousarray(array)
        array.flags.writeable = False
        self._data = array
        self._sample_rate = int(sample_rate)

    # --- Construction ---

    @classmethod
    def silent(cls, channels: int, length: int, sample_rate: int) -> "SampleBuffer":
        """A zero-filled buffer."""
        return cls(np.zeros((max(0, length), max(1, channels)), dtype=np.float32), sample_rate)

    @classmethod
    def from_channels(cls, channels: Sequence[Iterable[float]], sample_rate: int) -> "SampleBuffer":
        """Build a buffer from per-channel sample sequences of equal length."""
        arrays = [np.asarray(ch, dtype=np.float32) for ch in channels]
        if not arrays:
            raise ValueError("At least one channel is required")
        lengths = {len(a) for a in arrays}
        if len(lengths) != 1:
            raise ValueError(f"Channels differ in length: {sorted(lengths)}")
        return cls(np.column_stack(arrays), sample_rate)

    @classmethod
    def from_decoded(cls, data: AudioArray | MonoArray, sample_rate: int) -> "SampleBuffer":
        """Wrap freshly decoded samples, clamping them into [-1, 1]."""
        return cls(np.clip(np.asarray(data, dtype=np.float32), -1.0, 1.0), sample_rate)

    # --- Properties ---

    @property
    def data(self) -> AudioArray:
        """Read-only sample array shaped (samples, channels)."""
        return self._data

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def length(self) -> int:
        """Number of samples per channel."""
        return self._data.shape[0]

    @property
    def channels(self) -> int:
        return self._data.shape[1]

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.length / self._sample_rate

    @property
    def peak(self) -> float:
        """Largest absolute sample value across all channels."""
        if self.length == 0:
            return 0.0
        return float(np.max(np.abs(self._data)))

    def channel(self, index: int) -> MonoArray:
        """Read-only view of one channel."""
        return self._data[:, index]

    def time_to_index(self, seconds: float) -> int:
        """Floor a time in seconds to a sample index."""
        return int(math.floor(seconds * self._sample_rate))

    # --- Derived buffers ---

    def clone(self) -> "SampleBuffer":
        """Deep copy."""
        return SampleBuffer(self._data.copy(), self._sample_rate)

    def clamped(self) -> "SampleBuffer":
        """Copy with every sample clamped into [-1, 1]."""
        return SampleBuffer(np.clip(self._data, -1.0, 1.0), self._sample_rate)

    def with_channels(self, channels: int) -> "SampleBuffer":
        """Widen to ``channels`` by zero-filling; never drops channels."""
        if channels <= self.channels:
            return self
        widened = np.zeros((self.length, channels), dtype=np.float32)
        widened[:, :self.channels] = self._data
        return SampleBuffer(widened, self._sample_rate)

    # --- Dunder ---

    def __len__(self) -> int:
        return self.length

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SampleBuffer):
            return NotImplemented
        return (
            self._sample_rate == other._sample_rate
            and np.array_equal(self._data, other._data)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"SampleBuffer(channels={self.channels}, length={self.length}, "
            f"sample_rate={self._sample_rate}, duration={self.duration:.2f}s)"
        )
