"""
Mixdown of multiple tracks into one buffer for export.
"""
from __future__ import annotations
import logging
import math
from typing import Iterable, List, Optional, Sequence
import numpy as np

from .buffer import SampleBuffer
from .config import AUDIO_CONFIG
from .operations import copy
from .track import Track

logger = logging.getLogger("tracksmith")


def pan_gains(pan: float) -> tuple[float, float]:
    """Equal-power (left, right) gains for a pan position in [-1, 1]."""
    pan = max(-1.0, min(1.0, pan))
    angle = (pan + 1) * (math.pi / 4)
    return math.cos(angle), math.sin(angle)


def audible_tracks(tracks: Iterable[Track]) -> List[Track]:
    """
    Tracks that should be heard, respecting solo and mute.
    Only tracks with a buffer count; solo wins over everything else.
    """
    with_audio = [t for t in tracks if t.buffer is not None]
    if any(t.soloed for t in with_audio):
        return [t for t in with_audio if t.soloed and not t.muted]
    return [t for t in with_audio if not t.muted]


def mixdown(tracks: Sequence[Track], sample_rate: Optional[int] = None) -> Optional[SampleBuffer]:
    """
    Mix tracks into a single buffer honoring volume, pan, mute and solo.

    Args:
        tracks: Tracks to mix (order decides the default sample rate)
        sample_rate: Output rate; defaults to the first track with audio

    Returns:
        Clamped mix, or None if nothing is audible
    """
    included = audible_tracks(tracks)
    if not included:
        return None

    if sample_rate is None:
        sample_rate = next(t.buffer.sample_rate for t in tracks if t.buffer is not None)

    max_duration = max(t.duration for t in included)
    max_length = int(math.floor(max_duration * sample_rate))
    max_channels = max(t.channels for t in included)

    # Pre-allocate output buffer
    output = np.zeros((max_length, max_channels), dtype=np.float32)

    for track in included:
        buffer = track.buffer
        data = buffer.data
        track_length = int(math.floor(min(track.duration, max_duration) * sample_rate))
        left, right = pan_gains(track.pan)

        if buffer.sample_rate == sample_rate:
            n = min(buffer.length, track_length)
            source = data[:n]
        else:
            # Nearest-index mapping for mismatched rates
            ratio = buffer.sample_rate / sample_rate
            index = np.floor(np.arange(track_length) * ratio).astype(np.int64)
            index = index[index < buffer.length]
            source = data[index]
            n = len(index)

        for channel in range(max_channels):
            source_channel = min(channel, buffer.channels - 1)
            gain = track.volume
            if max_channels >= 2:
                if channel == 0:
                    gain *= left
                elif channel == 1:
                    gain *= right
            output[:n, channel] += source[:, source_channel] * gain

    np.clip(output, -1.0, 1.0, out=output)
    return SampleBuffer(output, sample_rate)


def silence(sample_rate: int = AUDIO_CONFIG.default_samplerate,
            seconds: float = AUDIO_CONFIG.fallback_silence_seconds) -> SampleBuffer:
    """Short stereo silence used when there is nothing to mix."""
    return SampleBuffer.silent(2, int(math.floor(sample_rate * seconds)), sample_rate)


def mixdown_or_silence(tracks: Sequence[Track], sample_rate: Optional[int] = None) -> SampleBuffer:
    """Like ``mixdown`` but never empty-handed."""
    mixed = mixdown(tracks, sample_rate)
    if mixed is not None:
        return mixed
    if sample_rate is None:
        sample_rate = next(
            (t.buffer.sample_rate for t in tracks if t.buffer is not None),
            AUDIO_CONFIG.default_samplerate,
        )
    logger.debug("Nothing audible to mix, substituting silence")
    return silence(sample_rate)


def mixdown_selection(
    tracks: Sequence[Track],
    start: float,
    end: float,
    sample_rate: Optional[int] = None
) -> Optional[SampleBuffer]:
    """
    Mix only ``[start, end)`` of every track.
    Each track's slice is copied first, so shorter tracks contribute silence.
    """
    sliced = []
    for track in tracks:
        if track.buffer is None:
            continue
        sliced.append(Track(
            name=track.name,
            buffer=copy(track.buffer, start, end),
            volume=track.volume,
            pan=track.pan,
            muted=track.muted,
            soloed=track.soloed,
        ))
    return mixdown(sliced, sample_rate)
