"""
Buffer edit operations for tracksmith.
All functions are pure: they read SampleBuffers and return new ones.
Time arguments are seconds; indices are floored to whole samples.
"""
from __future__ import annotations
from typing import NamedTuple, Optional
import numpy as np

from .buffer import SampleBuffer
from .types import AudioArray


class CutResult(NamedTuple):
    """The material on either side of a cut range."""
    before: SampleBuffer
    after: SampleBuffer


class SplitResult(NamedTuple):
    """Two independent halves of a buffer split at one point."""
    left: SampleBuffer
    right: SampleBuffer


def _take(data: AudioArray, start: int, length: int) -> AudioArray:
    """
    Copy ``length`` frames starting at ``start``.
    Frames outside the source are zero.
    """
    out = np.zeros((length, data.shape[1]), dtype=np.float32)
    src_start = max(0, start)
    src_end = min(data.shape[0], start + length)
    if src_end > src_start:
        out[src_start - start:src_end - start] = data[src_start:src_end]
    return out


def _fit_channels(data: AudioArray, channels: int) -> AudioArray:
    """Zero-fill or truncate the channel axis to ``channels``."""
    if data.shape[1] == channels:
        return data
    if data.shape[1] > channels:
        return data[:, :channels]
    out = np.zeros((data.shape[0], channels), dtype=np.float32)
    out[:, :data.shape[1]] = data
    return out


def copy(buffer: SampleBuffer, start: float, end: float) -> SampleBuffer:
    """
    Extract ``[start, end)`` into a new buffer.

    Args:
        buffer: Source buffer
        start: Range start in seconds
        end: Range end in seconds

    Returns:
        A buffer at least one sample long
    """
    start_idx = buffer.time_to_index(start)
    end_idx = buffer.time_to_index(end)
    length = max(1, end_idx - start_idx)
    return SampleBuffer(_take(buffer.data, start_idx, length), buffer.sample_rate)


def cut(buffer: SampleBuffer, start: float, end: float) -> CutResult:
    """
    Split a buffer around ``[start, end)``.

    Returns:
        ``before`` = [0, start) and ``after`` = [end, length),
        each at least one sample long
    """
    start_idx = buffer.time_to_index(start)
    end_idx = buffer.time_to_index(end)

    before_len = max(1, start_idx)
    after_len = max(1, buffer.length - end_idx)

    before = _take(buffer.data[:max(0, start_idx)], 0, before_len)
    after = _take(buffer.data, end_idx, after_len)

    return CutResult(
        SampleBuffer(before, buffer.sample_rate),
        SampleBuffer(after, buffer.sample_rate),
    )


def paste(original: SampleBuffer, clip: SampleBuffer, insert_time: float) -> SampleBuffer:
    """
    Insert ``clip`` into ``original`` at ``insert_time``.

    The result has ``len(original) + len(clip)`` samples and as many channels
    as the wider input; missing channels are silent.
    """
    channels = max(original.channels, clip.channels)
    insert_idx = min(max(0, original.time_to_index(insert_time)), original.length)

    orig = _fit_channels(original.data, channels)
    clip_data = _fit_channels(clip.data, channels)

    out = np.concatenate((orig[:insert_idx], clip_data, orig[insert_idx:]), axis=0)
    return SampleBuffer(out, original.sample_rate)


def split(buffer: SampleBuffer, split_time: float) -> SplitResult:
    """
    Split a buffer in two at ``split_time``.
    Each half is at least one sample long.
    """
    split_idx = buffer.time_to_index(split_time)
    left_len = max(1, split_idx)
    right_len = max(1, buffer.length - split_idx)

    left = _take(buffer.data[:max(0, split_idx)], 0, left_len)
    right = _take(buffer.data, max(0, split_idx), right_len)

    return SplitResult(
        SampleBuffer(left, buffer.sample_rate),
        SampleBuffer(right, buffer.sample_rate),
    )


def merge(
    before: SampleBuffer,
    after: SampleBuffer,
    channels: Optional[int] = None,
    sample_rate: Optional[int] = None
) -> SampleBuffer:
    """
    Concatenate two buffers channel-wise.

    Args:
        before: Leading material
        after: Trailing material
        channels: Output channel count (defaults to ``before``'s)
        sample_rate: Output rate (defaults to ``before``'s)

    Returns:
        A buffer of ``max(1, len(before) + len(after))`` samples
    """
    channels = channels or before.channels
    sample_rate = sample_rate or before.sample_rate

    total = before.length + after.length
    if total == 0:
        return SampleBuffer.silent(channels, 1, sample_rate)

    out = np.concatenate(
        (_fit_channels(before.data, channels), _fit_channels(after.data, channels)),
        axis=0,
    )
    return SampleBuffer(out, sample_rate)


def delete(buffer: SampleBuffer, start: float, end: float) -> SampleBuffer:
    """Remove ``[start, end)`` and close the gap."""
    before, after = cut(buffer, start, end)
    return merge(before, after, buffer.channels, buffer.sample_rate)
