"""
Biquad filters for tracksmith (RBJ Audio EQ Cookbook).
Each channel is filtered independently from a zero initial state.
"""
from __future__ import annotations
import math
import numpy as np
from scipy.signal import lfilter

from .buffer import SampleBuffer
from .config import EFFECTS_CONFIG
from .effects_basic import clamp


def _clamp_frequency(frequency: float, sample_rate: int) -> float:
    """Keep a corner frequency inside [20 Hz, Nyquist - 1]."""
    return max(EFFECTS_CONFIG.min_filter_freq, min(sample_rate / 2 - 1, frequency))


def _run_biquad(buffer: SampleBuffer, b: np.ndarray, a: np.ndarray) -> SampleBuffer:
    """Apply normalized coefficients along the sample axis."""
    filtered = lfilter(b, a, buffer.data.astype(np.float64), axis=0)
    return SampleBuffer(clamp(filtered), buffer.sample_rate)


def eq_full(buffer: SampleBuffer, frequency: float, gain: float, q: float) -> SampleBuffer:
    """
    Apply a peaking EQ band.

    Args:
        buffer: Source audio
        frequency: Centre frequency in Hz
        gain: Boost/cut in dB (-20 to 20)
        q: Bandwidth (0.1 to 30)

    Returns:
        Filtered audio data
    """
    if buffer.length == 0:
        return buffer

    sr = buffer.sample_rate
    freq = _clamp_frequency(frequency, sr)
    gain_db = max(EFFECTS_CONFIG.eq_gain_range[0], min(EFFECTS_CONFIG.eq_gain_range[1], gain))
    q = max(EFFECTS_CONFIG.eq_q_range[0], min(EFFECTS_CONFIG.eq_q_range[1], q))

    A = 10 ** (gain_db / 40)
    w0 = 2 * math.pi * freq / sr
    sn, cs = math.sin(w0), math.cos(w0)
    alpha = sn / (2 * q)

    b0 = 1 + alpha * A
    b1 = -2 * cs
    b2 = 1 - alpha * A
    a0 = 1 + alpha / A
    a1 = -2 * cs
    a2 = 1 - alpha / A

    b = np.array([b0, b1, b2]) / a0
    a = np.array([a0, a1, a2]) / a0
    return _run_biquad(buffer, b, a)


def high_pass_filter_full(buffer: SampleBuffer, cutoff: float) -> SampleBuffer:
    """
    Remove content below ``cutoff`` Hz with a second-order high-pass.
    """
    if buffer.length == 0:
        return buffer

    sr = buffer.sample_rate
    w0 = 2 * math.pi * _clamp_frequency(cutoff, sr) / sr
    sn, cs = math.sin(w0), math.cos(w0)
    alpha = sn / 2

    b0 = (1 + cs) / 2
    b1 = -(1 + cs)
    b2 = (1 + cs) / 2
    a0 = 1 + alpha
    a1 = -2 * cs
    a2 = 1 - alpha

    b = np.array([b0, b1, b2]) / a0
    a = np.array([a0, a1, a2]) / a0
    return _run_biquad(buffer, b, a)


def low_pass_filter_full(buffer: SampleBuffer, cutoff: float) -> SampleBuffer:
    """
    Remove content above ``cutoff`` Hz with a second-order low-pass.
    """
    if buffer.length == 0:
        return buffer

    sr = buffer.sample_rate
    w0 = 2 * math.pi * _clamp_frequency(cutoff, sr) / sr
    sn, cs = math.sin(w0), math.cos(w0)
    alpha = sn / 2

    b0 = (1 - cs) / 2
    b1 = 1 - cs
    b2 = (1 - cs) / 2
    a0 = 1 + alpha
    a1 = -2 * cs
    a2 = 1 - alpha

    b = np.array([b0, b1, b2]) / a0
    a = np.array([a0, a1, a2]) / a0
    return _run_biquad(buffer, b, a)
