"""
Dynamics processing for tracksmith: compressor, limiter and noise reduction.
Envelope followers run per channel.
"""
from __future__ import annotations
import logging
import math
import numpy as np

from .buffer import SampleBuffer
from .config import EFFECTS_CONFIG
from .effects_basic import clamp

logger = logging.getLogger("tracksmith")


def _clip_param(value: float, bounds: tuple[float, float]) -> float:
    return max(bounds[0], min(bounds[1], value))


def _smooth_gain(
    target: np.ndarray,
    attack_coeff: float,
    release_coeff: float,
    initial: float
) -> np.ndarray:
    """
    Follow a target gain curve with separate attack and release smoothing.
    Attack applies while the gain is falling, release while it recovers.
    """
    envelope = np.empty(len(target), dtype=np.float64)
    env = initial
    for i, tg in enumerate(target.tolist()):
        if tg < env:
            env = tg + (env - tg) * attack_coeff
        else:
            env = tg + (env - tg) * release_coeff
        envelope[i] = env
    return envelope


def compressor_full(
    buffer: SampleBuffer,
    threshold: float,
    ratio: float,
    attack: float,
    release: float,
    knee: float
) -> SampleBuffer:
    """
    Apply soft-knee dynamic range compression.

    Args:
        buffer: Source audio
        threshold: Threshold level in dB (-60 to 0)
        ratio: Compression ratio (1 to 20, e.g. 4.0 = 4:1)
        attack: Attack time in seconds (0.0001 to 1)
        release: Release time in seconds (0.01 to 5)
        knee: Knee width in dB (0 to 12)

    Returns:
        Compressed audio data
    """
    if buffer.length == 0:
        return buffer

    threshold_db = _clip_param(threshold, EFFECTS_CONFIG.compressor_threshold_range)
    ratio = _clip_param(ratio, EFFECTS_CONFIG.compressor_ratio_range)
    attack = _clip_param(attack, EFFECTS_CONFIG.compressor_attack_range)
    release = _clip_param(release, EFFECTS_CONFIG.compressor_release_range)
    knee = _clip_param(knee, EFFECTS_CONFIG.compressor_knee_range)

    threshold_linear = 10 ** (threshold_db / 20)
    knee_start = threshold_linear * 10 ** (-knee / 20)
    knee_end = threshold_linear * 10 ** (knee / 20)

    sr = buffer.sample_rate
    attack_coeff = math.exp(-1.0 / (attack * sr))
    release_coeff = math.exp(-1.0 / (release * sr))

    data = buffer.data.astype(np.float64)
    out = np.empty_like(data)

    for ch in range(buffer.channels):
        x = data[:, ch]
        level = np.abs(x)

        # Static curve: soft knee between knee_start and knee_end
        safe_level = np.where(level > 0, level, 1.0)
        in_knee = (knee_start + (level - knee_start) / ratio) / safe_level
        above = (threshold_linear + (level - threshold_linear) / ratio) / safe_level
        target = np.where(level > knee_start, np.where(level < knee_end, in_knee, above), 1.0)

        envelope = _smooth_gain(target, attack_coeff, release_coeff, initial=0.0)
        out[:, ch] = x * envelope

    return SampleBuffer(clamp(out), sr)


def limiter_full(buffer: SampleBuffer, threshold: float, release: float) -> SampleBuffer:
    """
    Limit peaks to a threshold with a fast attack and exponential release.

    Args:
        buffer: Source audio
        threshold: Ceiling in dB (-60 to 0)
        release: Release time in seconds (0.001 to 1)

    Returns:
        Limited audio data
    """
    if buffer.length == 0:
        return buffer

    threshold_db = _clip_param(threshold, EFFECTS_CONFIG.compressor_threshold_range)
    release = _clip_param(release, EFFECTS_CONFIG.limiter_release_range)

    sr = buffer.sample_rate
    threshold_linear = 10 ** (threshold_db / 20)
    release_coeff = math.exp(-1.0 / (release * sr))
    attack_coeff = math.exp(-1.0 / (EFFECTS_CONFIG.limiter_attack_s * sr))

    data = buffer.data.astype(np.float64)
    out = np.empty_like(data)

    for ch in range(buffer.channels):
        x = data[:, ch]
        level = np.abs(x)
        safe_level = np.where(level > 0, level, 1.0)
        target = np.where(level > threshold_linear, threshold_linear / safe_level, 1.0)

        envelope = _smooth_gain(target, attack_coeff, release_coeff, initial=1.0)
        out[:, ch] = x * envelope

    return SampleBuffer(clamp(out), sr)


def _moving_average(x: np.ndarray, half_width: int) -> np.ndarray:
    """Mean over ``[i - half_width, i + half_width)`` clipped to the signal."""
    n = len(x)
    if half_width <= 0 or n == 0:
        return x.copy()
    cumulative = np.concatenate(([0.0], np.cumsum(x, dtype=np.float64)))
    idx = np.arange(n)
    lo = np.maximum(0, idx - half_width)
    hi = np.minimum(n, idx + half_width)
    return (cumulative[hi] - cumulative[lo]) / (hi - lo)


def noise_reduction_full(buffer: SampleBuffer, reduction_amount: float) -> SampleBuffer:
    """
    Reduce background noise with a simple gate.

    The noise floor is estimated from the quiet samples of the opening
    window; samples under twice that floor are attenuated, louder samples
    barely touched. The result is blended 70/30 with a moving average.

    Args:
        buffer: Source audio
        reduction_amount: Strength (0.0 to 1.0)

    Returns:
        Denoised audio data
    """
    if buffer.length == 0:
        return buffer

    amount = max(0.0, min(1.0, reduction_amount))
    sr = buffer.sample_rate
    window_size = int(math.floor(sr * EFFECTS_CONFIG.noise_window_s))
    analysis_len = min(window_size * EFFECTS_CONFIG.noise_window_count, buffer.length)
    smoothing = int(math.floor(sr * EFFECTS_CONFIG.noise_smoothing_s))
    mix = EFFECTS_CONFIG.noise_smoothed_mix

    data = buffer.data.astype(np.float64)
    out = np.empty_like(data)

    for ch in range(buffer.channels):
        x = data[:, ch]
        head = x[:analysis_len]
        quiet = head[np.abs(head) < EFFECTS_CONFIG.noise_gate_level]
        avg_noise_power = float(np.mean(quiet ** 2)) if quiet.size else 0.0001
        noise_threshold = math.sqrt(avg_noise_power) * 2

        level = np.abs(x)
        if noise_threshold > 0:
            below = level < noise_threshold
            gate_gain = 1 - amount * (1 - level / noise_threshold)
            signal_ratio = np.minimum(1.0, (level - noise_threshold) / (noise_threshold * 2))
        else:
            # Digital silence in the analysis window: nothing counts as noise
            below = np.zeros(len(x), dtype=bool)
            gate_gain = np.ones(len(x))
            signal_ratio = np.ones(len(x))
        pass_gain = 1 - amount * 0.1 * (1 - signal_ratio)

        reduced = x * np.where(below, gate_gain, pass_gain)
        smoothed = _moving_average(reduced, smoothing)
        out[:, ch] = smoothed * mix + reduced * (1 - mix)

    logger.debug("Noise reduction applied (amount=%.2f)", amount)
    return SampleBuffer(clamp(out), sr)
