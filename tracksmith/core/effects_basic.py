"""
Basic full-buffer effects for tracksmith.
All functions are pure (no side effects) and operate on whole SampleBuffers.
Optimized with numpy vectorization for performance.
"""
from __future__ import annotations
import math
import numpy as np

from .buffer import SampleBuffer
from .config import EFFECTS_CONFIG
from .types import AudioArray


def clamp(data: AudioArray) -> AudioArray:
    """Clamp samples into [-1, 1] as float32."""
    return np.clip(data, -1.0, 1.0).astype(np.float32)


def normalize_full(buffer: SampleBuffer) -> SampleBuffer:
    """
    Scale audio so its peak reaches full scale.

    Args:
        buffer: Source audio

    Returns:
        Normalized copy; an unchanged copy if the peak is 0 or already >= 1
    """
    peak = buffer.peak
    if peak == 0.0 or peak >= 1.0:
        return buffer.clone()
    # Dividing keeps the peak sample at exactly 1.0, so a second pass is a no-op
    return SampleBuffer(clamp(buffer.data / peak), buffer.sample_rate)


def amplify_full(buffer: SampleBuffer, gain: float) -> SampleBuffer:
    """
    Multiply audio by a gain factor.

    Args:
        buffer: Source audio
        gain: Linear gain multiplier

    Returns:
        Amplified audio, clamped to [-1, 1]
    """
    return SampleBuffer(clamp(buffer.data * gain), buffer.sample_rate)


def reverse_full(buffer: SampleBuffer) -> SampleBuffer:
    """Reverse the sample order of every channel."""
    return SampleBuffer(clamp(buffer.data[::-1]), buffer.sample_rate)


def silence_full(buffer: SampleBuffer) -> SampleBuffer:
    """Silent buffer of the same shape; used for region silencing."""
    return SampleBuffer.silent(buffer.channels, buffer.length, buffer.sample_rate)


def fade_in_full(buffer: SampleBuffer, fade_duration: float) -> SampleBuffer:
    """
    Apply a linear fade-in at the start of the buffer.

    Args:
        buffer: Source audio
        fade_duration: Fade length in seconds (capped at the buffer length)

    Returns:
        Faded audio
    """
    fade_len = min(int(math.floor(fade_duration * buffer.sample_rate)), buffer.length)
    if fade_len <= 0:
        return buffer.clone()

    curve = np.ones(buffer.length, dtype=np.float32)
    curve[:fade_len] = np.arange(fade_len, dtype=np.float32) / fade_len
    return SampleBuffer(clamp(buffer.data * curve[:, np.newaxis]), buffer.sample_rate)


def fade_out_full(buffer: SampleBuffer, fade_duration: float) -> SampleBuffer:
    """
    Apply a linear fade-out at the end of the buffer.

    Args:
        buffer: Source audio
        fade_duration: Fade length in seconds (capped at the buffer length)

    Returns:
        Faded audio
    """
    length = buffer.length
    fade_len = min(int(math.floor(fade_duration * buffer.sample_rate)), length)
    if fade_len <= 0:
        return buffer.clone()

    fade_start = length - fade_len
    curve = np.ones(length, dtype=np.float32)
    curve[fade_start:] = (length - np.arange(fade_start, length, dtype=np.float32)) / fade_len
    return SampleBuffer(clamp(buffer.data * curve[:, np.newaxis]), buffer.sample_rate)


def change_speed_full(buffer: SampleBuffer, speed_factor: float) -> SampleBuffer:
    """
    Resample with linear interpolation, changing duration (and pitch).

    Args:
        buffer: Source audio
        speed_factor: >1 = faster/shorter, <1 = slower/longer

    Returns:
        Buffer of ``floor(length / factor)`` samples
    """
    low, high = EFFECTS_CONFIG.speed_range
    if buffer.length == 0 or speed_factor <= 0 or speed_factor > high:
        return buffer

    factor = max(low, min(high, speed_factor))
    new_length = int(math.floor(buffer.length / factor))

    source_index = np.arange(new_length, dtype=np.float64) * factor
    index1 = np.floor(source_index).astype(np.int64)
    index2 = np.minimum(index1 + 1, buffer.length - 1)
    fraction = (source_index - index1)[:, np.newaxis]

    data = buffer.data.astype(np.float64)
    sample1 = data[index1]
    sample2 = data[index2]
    return SampleBuffer(clamp(sample1 + (sample2 - sample1) * fraction), buffer.sample_rate)


def change_pitch_full(buffer: SampleBuffer, pitch_factor: float) -> SampleBuffer:
    """
    Shift pitch while keeping duration.

    Resamples by ``pitch_factor``, then stretches back to the original length
    with a Hann-windowed overlap-add at 50% overlap.

    Args:
        buffer: Source audio
        pitch_factor: Pitch ratio (2.0 = one octave up)

    Returns:
        Pitch-shifted audio of the original length
    """
    low, high = EFFECTS_CONFIG.speed_range
    if buffer.length == 0 or pitch_factor <= 0 or pitch_factor > high:
        return buffer

    factor = max(low, min(high, pitch_factor))
    if factor == 1.0:
        return buffer

    sped = change_speed_full(buffer, factor)
    original_length = buffer.length
    sped_length = sped.length
    if sped_length <= 0:
        return buffer

    window_size = max(2, int(math.floor(buffer.sample_rate * EFFECTS_CONFIG.pitch_window_s)))
    hop_size = max(1, window_size // 2)
    stretch = original_length / sped_length

    window = 0.5 * (1 - np.cos(2 * np.pi * np.arange(window_size) / (window_size - 1)))
    window = window[:, np.newaxis]

    source = sped.data.astype(np.float64)
    out = np.zeros((original_length, buffer.channels), dtype=np.float64)

    output_pos = 0
    input_pos = 0
    while output_pos < original_length and input_pos < sped_length:
        frame = np.zeros((window_size, buffer.channels), dtype=np.float64)
        available = min(window_size, sped_length - input_pos)
        frame[:available] = source[input_pos:input_pos + available]
        frame *= window

        count = min(window_size, original_length - output_pos)
        out[output_pos:output_pos + count] += frame[:count]

        input_pos += hop_size
        output_pos += int(math.floor(hop_size * stretch))

    max_overlap = math.ceil(window_size / hop_size)
    if max_overlap > 1:
        out /= max_overlap

    return SampleBuffer(clamp(out), buffer.sample_rate)
