"""
Decode and encode boundaries for tracksmith.
librosa reads compressed and PCM sources; soundfile writes linear PCM WAV.
"""
from __future__ import annotations
import io
import logging
import os
from typing import Union
import numpy as np
import soundfile as sf

from .buffer import SampleBuffer
from .config import AUDIO_CONFIG
from .errors import DecodeError

logger = logging.getLogger("tracksmith")

AudioSource = Union[bytes, bytearray, str, os.PathLike]


def decode_audio(source: AudioSource) -> SampleBuffer:
    """
    Decode raw file bytes (or a file path) at the file's native rate.

    Args:
        source: Encoded audio bytes or a path

    Returns:
        Clamped SampleBuffer shaped (samples, channels)

    Raises:
        DecodeError: If the data cannot be decoded
    """
    if isinstance(source, (bytes, bytearray)):
        if not source:
            raise DecodeError("No audio data")
        target = io.BytesIO(bytes(source))
    else:
        target = source

    try:
        import librosa
        data, samplerate = librosa.load(target, sr=None, mono=False)
    except Exception as e:
        logger.error("Failed to decode audio: %s", e, exc_info=True)
        raise DecodeError(f"Could not decode audio: {e}") from e

    # librosa returns (channels, samples) for multi-channel input
    if data.ndim > 1:
        data = data.T
    if data.shape[0] == 0:
        raise DecodeError("Decoded audio is empty")

    return SampleBuffer.from_decoded(data.astype(np.float32), int(samplerate))


def encode_wav(buffer: SampleBuffer, subtype: str = AUDIO_CONFIG.wav_subtype) -> bytes:
    """
    Encode a buffer as a linear PCM WAV file.

    Args:
        buffer: Audio to encode
        subtype: soundfile subtype (16-bit PCM by default)

    Returns:
        Complete WAV file contents
    """
    out = io.BytesIO()
    sf.write(out, buffer.clamped().data, buffer.sample_rate, format="WAV", subtype=subtype)
    return out.getvalue()


def write_wav(buffer: SampleBuffer, path: Union[str, os.PathLike], subtype: str = AUDIO_CONFIG.wav_subtype) -> None:
    """Write a buffer to disk as a linear PCM WAV file."""
    sf.write(path, buffer.clamped().data, buffer.sample_rate, format="WAV", subtype=subtype)
    logger.info("Wrote %s (%.2fs, %d ch)", os.fspath(path), buffer.duration, buffer.channels)
