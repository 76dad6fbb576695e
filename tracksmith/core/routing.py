"""
Per-track output routing for live playback.

Each track player pushes its blocks through a small fixed graph:
splitter -> left/right gain -> merger. The gains carry volume, pan, mute and
solo, so the same graph serves every track.
"""
from __future__ import annotations
from typing import Tuple
import numpy as np

from .mixdown import pan_gains
from .types import AudioArray, MonoArray, StereoArray


class ChannelSplitter:
    """Splits a (frames, channels) block into left and right feeds."""

    def process(self, block: AudioArray) -> Tuple[MonoArray, MonoArray]:
        if block.ndim == 1:
            return block, block
        # Mono sources feed both sides
        left = block[:, 0]
        right = block[:, 1] if block.shape[1] > 1 else block[:, 0]
        return left, right


class GainNode:
    """Scales a mono feed."""
    __slots__ = ('gain',)

    def __init__(self, gain: float = 1.0) -> None:
        self.gain = gain

    def process(self, feed: MonoArray) -> MonoArray:
        return (feed * self.gain).astype(np.float32)


class ChannelMerger:
    """Joins left and right feeds into a stereo block."""

    def process(self, left: MonoArray, right: MonoArray) -> StereoArray:
        return np.column_stack((left, right)).astype(np.float32)


class TrackRouter:
    """
    Splitter -> gain(L), gain(R) -> merger for one track.
    """
    def __init__(self) -> None:
        self.splitter = ChannelSplitter()
        self.left_gain = GainNode()
        self.right_gain = GainNode()
        self.merger = ChannelMerger()

    def update(self, volume: float, pan: float, muted: bool, silenced_by_solo: bool) -> None:
        """
        Recompute gains from the track's mix state.

        Args:
            volume: Track volume in [0, 1]
            pan: Track pan in [-1, 1]
            muted: Track mute flag
            silenced_by_solo: Another track is soloed and this one is not
        """
        if muted or silenced_by_solo:
            self.left_gain.gain = 0.0
            self.right_gain.gain = 0.0
            return
        left, right = pan_gains(pan)
        self.left_gain.gain = volume * left
        self.right_gain.gain = volume * right

    @property
    def gains(self) -> Tuple[float, float]:
        return self.left_gain.gain, self.right_gain.gain

    def process(self, block: AudioArray) -> StereoArray:
        """Route one block; output is always (frames, 2)."""
        left, right = self.splitter.process(block)
        return self.merger.process(self.left_gain.process(left), self.right_gain.process(right))
