"""
Delay-line effects for tracksmith: reverb and echo.
Both append a tail, so the output is longer than the input.
"""
from __future__ import annotations
import math
import numpy as np

from .buffer import SampleBuffer
from .config import EFFECTS_CONFIG
from .effects_basic import clamp


def _feedback_comb(x: np.ndarray, delay: int, gain: float) -> np.ndarray:
    """
    Run ``w[n] = x[n] + gain * w[n - delay]`` along axis 0.

    Each block of ``delay`` samples only depends on the previous block,
    so the recursion is evaluated one block at a time.
    """
    w = x.copy()
    for start in range(delay, len(w), delay):
        stop = min(start + delay, len(w))
        w[start:stop] += gain * w[start - delay:stop - delay]
    return w


def _delayed(w: np.ndarray, delay: int) -> np.ndarray:
    """Shift ``w`` later by ``delay`` samples, zero-filling the start."""
    out = np.zeros_like(w)
    if delay < len(w):
        out[delay:] = w[:len(w) - delay]
    return out


def reverb_full(buffer: SampleBuffer, room_size: float, wet_level: float) -> SampleBuffer:
    """
    Apply reverb using four parallel feedback comb filters.

    Args:
        buffer: Source audio
        room_size: Tail length factor in seconds (0.1 to 3.0, tail capped at 2 s)
        wet_level: Wet/dry mix (0.0 = dry, 1.0 = wet)

    Returns:
        Reverberated audio with the tail appended
    """
    if buffer.length == 0:
        return buffer

    room = max(EFFECTS_CONFIG.reverb_room_range[0], min(EFFECTS_CONFIG.reverb_room_range[1], room_size))
    wet = max(0.0, min(1.0, wet_level))
    dry = 1.0 - wet

    reverb_time = min(room, EFFECTS_CONFIG.reverb_max_tail_s)
    tail = min(int(math.floor(reverb_time * buffer.sample_rate)), buffer.length * 2)
    if tail <= 0:
        return buffer

    total = buffer.length + tail
    x = np.zeros((total, buffer.channels), dtype=np.float64)
    x[:buffer.length] = buffer.data

    reverb_sum = np.zeros_like(x)
    for delay_s, feedback in zip(EFFECTS_CONFIG.reverb_delays_s, EFFECTS_CONFIG.reverb_feedbacks):
        delay = min(max(1, int(math.floor(delay_s * buffer.sample_rate))), buffer.length)
        comb = _feedback_comb(x, delay, feedback * 0.5)
        reverb_sum += feedback * _delayed(comb, delay)

    return SampleBuffer(clamp(x * dry + reverb_sum * wet), buffer.sample_rate)


def delay_full(
    buffer: SampleBuffer,
    delay_time: float,
    feedback: float,
    wet_level: float
) -> SampleBuffer:
    """
    Apply a feedback delay (echo) with a decaying tail.

    Args:
        buffer: Source audio
        delay_time: Delay in seconds (0.01 to 2.0)
        feedback: Amount fed back into the line (0.0 to 0.95)
        wet_level: Wet/dry mix (0.0 = dry, 1.0 = wet)

    Returns:
        Delayed audio with up to ~2 s of tail appended
    """
    if buffer.length == 0:
        return buffer

    low, high = EFFECTS_CONFIG.delay_time_range
    seconds = max(low, min(high, delay_time))
    fb = max(EFFECTS_CONFIG.delay_feedback_range[0], min(EFFECTS_CONFIG.delay_feedback_range[1], feedback))
    wet = max(0.0, min(1.0, wet_level))
    dry = 1.0 - wet

    sr = buffer.sample_rate
    length = buffer.length
    delay = min(max(1, int(math.floor(seconds * sr))), length)
    max_tail = min(int(math.floor(sr * EFFECTS_CONFIG.delay_max_tail_s)), length)
    total = min(length + max_tail, length * 3)

    x = np.zeros((total, buffer.channels), dtype=np.float64)
    x[:length] = buffer.data

    line = _feedback_comb(x, delay, fb)
    out = x * dry + _delayed(line, delay) * wet

    tail = total - length
    if tail > 0:
        decay_rate = EFFECTS_CONFIG.delay_tail_floor ** (1.0 / max_tail)
        out[length:] *= (decay_rate ** np.arange(tail, dtype=np.float64))[:, np.newaxis]

    return SampleBuffer(clamp(out), sr)
