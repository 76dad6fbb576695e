"""
Region-scoped effect entry points for tracksmith.

Each effect takes a buffer, its parameters and an optional ``start``/``end``
range in seconds. Samples outside the range come back untouched; a range
that does not fit the buffer leaves the buffer unchanged.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from .buffer import SampleBuffer
from .config import EFFECTS_CONFIG
from .errors import UnknownEffectError
from .operations import merge
from .types import FullEffectFunc, RegionEffectFunc
from .effects_basic import (
    normalize_full,
    amplify_full,
    reverse_full,
    silence_full,
    fade_in_full,
    fade_out_full,
    change_speed_full,
    change_pitch_full,
)
from .effects_time import reverb_full, delay_full
from .effects_dynamics import compressor_full, limiter_full, noise_reduction_full
from .effects_filters import eq_full, high_pass_filter_full, low_pass_filter_full

logger = logging.getLogger("tracksmith")


def apply_to_region(
    buffer: SampleBuffer,
    full_fn: FullEffectFunc,
    *args: Any,
    start: Optional[float] = None,
    end: Optional[float] = None
) -> SampleBuffer:
    """
    Run a full-buffer algorithm over ``[start, end)`` only.

    Args:
        buffer: Source audio
        full_fn: Algorithm applied to the extracted region
        *args: Extra arguments for ``full_fn``
        start: Region start in seconds (default 0)
        end: Region end in seconds (default buffer duration)

    Returns:
        New buffer with the processed region spliced between the untouched
        head and tail, or ``buffer`` itself if the range is invalid
    """
    duration = buffer.duration
    start = 0.0 if start is None else start
    end = duration if end is None else end

    if start >= end or start < 0 or end > duration:
        logger.debug("Ignoring effect on invalid range %.3f-%.3f (duration %.3f)", start, end, duration)
        return buffer

    if start == 0 and end >= duration:
        return full_fn(buffer, *args)

    start_idx = buffer.time_to_index(start)
    end_idx = buffer.time_to_index(end)
    sr = buffer.sample_rate

    head = SampleBuffer(buffer.data[:start_idx], sr)
    region = SampleBuffer(buffer.data[start_idx:end_idx], sr)
    tail = SampleBuffer(buffer.data[end_idx:], sr)

    processed = full_fn(region, *args)
    # Effects with a tail grow the region; the tail shifts later
    return merge(head, merge(processed, tail, buffer.channels, sr), buffer.channels, sr)


def _default_fade(start: Optional[float], end: Optional[float], buffer: SampleBuffer) -> float:
    s = 0.0 if start is None else start
    e = buffer.duration if end is None else end
    return min(EFFECTS_CONFIG.max_default_fade_seconds, (e - s) / 2)


# --- Basic ---

def normalize(buffer: SampleBuffer, start: Optional[float] = None, end: Optional[float] = None) -> SampleBuffer:
    """Scale the region so its peak reaches full scale."""
    return apply_to_region(buffer, normalize_full, start=start, end=end)


def amplify(
    buffer: SampleBuffer,
    gain: float = EFFECTS_CONFIG.amplify_gain,
    start: Optional[float] = None,
    end: Optional[float] = None
) -> SampleBuffer:
    """Multiply the region by ``gain``; a non-positive gain does nothing."""
    if gain <= 0:
        logger.debug("Ignoring non-positive gain %s", gain)
        return buffer
    return apply_to_region(buffer, amplify_full, gain, start=start, end=end)


def silence(buffer: SampleBuffer, start: Optional[float] = None, end: Optional[float] = None) -> SampleBuffer:
    """Zero the region, keeping the buffer length."""
    duration = buffer.duration
    start = 0.0 if start is None else max(0.0, min(duration, start))
    end = duration if end is None else max(0.0, min(duration, end))
    return apply_to_region(buffer, silence_full, start=start, end=end)


def reverse(buffer: SampleBuffer, start: Optional[float] = None, end: Optional[float] = None) -> SampleBuffer:
    """Play the region backwards."""
    return apply_to_region(buffer, reverse_full, start=start, end=end)


def fade_in(
    buffer: SampleBuffer,
    fade_duration: Optional[float] = None,
    start: Optional[float] = None,
    end: Optional[float] = None
) -> SampleBuffer:
    """
    Fade the region in from silence.

    Without ``fade_duration`` the fade spans half the region, at most 0.5 s.
    """
    if fade_duration is None:
        fade_duration = _default_fade(start, end, buffer)
    if fade_duration <= 0:
        return buffer
    return apply_to_region(buffer, fade_in_full, fade_duration, start=start, end=end)


def fade_out(
    buffer: SampleBuffer,
    fade_duration: Optional[float] = None,
    start: Optional[float] = None,
    end: Optional[float] = None
) -> SampleBuffer:
    """Fade the region out to silence (same defaults as ``fade_in``)."""
    if fade_duration is None:
        fade_duration = _default_fade(start, end, buffer)
    if fade_duration <= 0:
        return buffer
    return apply_to_region(buffer, fade_out_full, fade_duration, start=start, end=end)


def change_speed(
    buffer: SampleBuffer,
    speed_factor: float,
    start: Optional[float] = None,
    end: Optional[float] = None
) -> SampleBuffer:
    return apply_to_region(buffer, change_speed_full, speed_factor, start=start, end=end)


def change_pitch(
    buffer: SampleBuffer,
    pitch_factor: float,
    start: Optional[float] = None,
    end: Optional[float] = None
) -> SampleBuffer:
    return apply_to_region(buffer, change_pitch_full, pitch_factor, start=start, end=end)


# --- Time based ---

def reverb(
    buffer: SampleBuffer,
    room_size: float = EFFECTS_CONFIG.reverb_room_size,
    wet_level: float = EFFECTS_CONFIG.reverb_wet,
    start: Optional[float] = None,
    end: Optional[float] = None
) -> SampleBuffer:
    return apply_to_region(buffer, reverb_full, room_size, wet_level, start=start, end=end)


def delay(
    buffer: SampleBuffer,
    delay_time: float = EFFECTS_CONFIG.delay_seconds,
    feedback: float = EFFECTS_CONFIG.delay_feedback,
    wet_level: float = EFFECTS_CONFIG.delay_wet,
    start: Optional[float] = None,
    end: Optional[float] = None
) -> SampleBuffer:
    return apply_to_region(buffer, delay_full, delay_time, feedback, wet_level, start=start, end=end)


# --- Dynamics ---

def noise_reduction(
    buffer: SampleBuffer,
    reduction_amount: float = EFFECTS_CONFIG.noise_reduction_amount,
    start: Optional[float] = None,
    end: Optional[float] = None
) -> SampleBuffer:
    return apply_to_region(buffer, noise_reduction_full, reduction_amount, start=start, end=end)


def compressor(
    buffer: SampleBuffer,
    threshold: float = EFFECTS_CONFIG.compressor_threshold_db,
    ratio: float = EFFECTS_CONFIG.compressor_ratio,
    attack: float = EFFECTS_CONFIG.compressor_attack_s,
    release: float = EFFECTS_CONFIG.compressor_release_s,
    knee: float = EFFECTS_CONFIG.compressor_knee_db,
    start: Optional[float] = None,
    end: Optional[float] = None
) -> SampleBuffer:
    return apply_to_region(
        buffer, compressor_full, threshold, ratio, attack, release, knee, start=start, end=end
    )


def limiter(
    buffer: SampleBuffer,
    threshold: float = EFFECTS_CONFIG.limiter_threshold_db,
    release: float = EFFECTS_CONFIG.limiter_release_s,
    start: Optional[float] = None,
    end: Optional[float] = None
) -> SampleBuffer:
    return apply_to_region(buffer, limiter_full, threshold, release, start=start, end=end)


# --- Filters ---

def eq(
    buffer: SampleBuffer,
    frequency: float = EFFECTS_CONFIG.eq_frequency,
    gain: float = EFFECTS_CONFIG.eq_gain_db,
    q: float = EFFECTS_CONFIG.eq_q,
    start: Optional[float] = None,
    end: Optional[float] = None
) -> SampleBuffer:
    return apply_to_region(buffer, eq_full, frequency, gain, q, start=start, end=end)


def high_pass_filter(
    buffer: SampleBuffer,
    cutoff: float = EFFECTS_CONFIG.highpass_cutoff,
    start: Optional[float] = None,
    end: Optional[float] = None
) -> SampleBuffer:
    return apply_to_region(buffer, high_pass_filter_full, cutoff, start=start, end=end)


def low_pass_filter(
    buffer: SampleBuffer,
    cutoff: float = EFFECTS_CONFIG.lowpass_cutoff,
    start: Optional[float] = None,
    end: Optional[float] = None
) -> SampleBuffer:
    return apply_to_region(buffer, low_pass_filter_full, cutoff, start=start, end=end)


# Name -> region-scoped effect
EFFECTS: Dict[str, RegionEffectFunc] = {
    "normalize": normalize,
    "amplify": amplify,
    "silence": silence,
    "reverse": reverse,
    "fade_in": fade_in,
    "fade_out": fade_out,
    "change_speed": change_speed,
    "change_pitch": change_pitch,
    "reverb": reverb,
    "delay": delay,
    "noise_reduction": noise_reduction,
    "compressor": compressor,
    "limiter": limiter,
    "eq": eq,
    "high_pass_filter": high_pass_filter,
    "low_pass_filter": low_pass_filter,
}


def apply_effect(
    name: str,
    buffer: SampleBuffer,
    start: Optional[float] = None,
    end: Optional[float] = None,
    **params: Any
) -> SampleBuffer:
    """
    Look up an effect by name and apply it.

    Raises:
        UnknownEffectError: If ``name`` is not registered
    """
    try:
        effect = EFFECTS[name]
    except KeyError:
        raise UnknownEffectError(name) from None
    return effect(buffer, start=start, end=end, **params)
