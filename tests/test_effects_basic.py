"""
Tests for basic audio effects.
"""
import pytest
import numpy as np

from tracksmith.core import effects_basic as fx
from tracksmith.core.buffer import SampleBuffer
from tracksmith.core.config import AUDIO_CONFIG


class TestAmplify:
    """Tests for amplify_full effect."""

    def test_gain_doubles_amplitude(self, mono_buffer):
        result = fx.amplify_full(mono_buffer, 1.5)
        assert np.allclose(result.data, mono_buffer.data * 1.5, atol=1e-6)

    def test_gain_clamps(self):
        buffer = SampleBuffer(np.array([0.6, -0.6, 0.1], dtype=np.float32), 8000)
        result = fx.amplify_full(buffer, 2.0)
        assert np.allclose(result.channel(0), [1.0, -1.0, 0.2])

    def test_gain_preserves_shape(self, stereo_buffer):
        result = fx.amplify_full(stereo_buffer, 1.5)
        assert result.data.shape == stereo_buffer.data.shape

    def test_gain_preserves_dtype(self, mono_buffer):
        result = fx.amplify_full(mono_buffer, 2.0)
        assert result.data.dtype == np.float32


class TestFades:
    """Tests for fade in/out effects."""

    def test_fade_in_starts_at_zero(self, mono_buffer):
        result = fx.fade_in_full(mono_buffer, 0.5)
        assert result.data[0, 0] == 0.0

    def test_fade_in_leaves_rest_untouched(self, mono_buffer):
        result = fx.fade_in_full(mono_buffer, 0.5)
        assert np.array_equal(result.data[22050:], mono_buffer.data[22050:])

    def test_fade_out_starts_at_original(self, mono_buffer):
        result = fx.fade_out_full(mono_buffer, 0.5)
        assert np.array_equal(result.data[:22051], mono_buffer.data[:22051])

    def test_fade_out_ends_near_zero(self, stereo_buffer):
        result = fx.fade_out_full(stereo_buffer, 0.5)
        assert np.all(np.abs(result.data[-1]) <= np.abs(stereo_buffer.data[-1]) / 22050 + 1e-7)

    def test_fade_longer_than_buffer(self):
        buffer = SampleBuffer(np.ones(100, dtype=np.float32), 1000)
        result = fx.fade_in_full(buffer, 10.0)
        assert result.data[0, 0] == 0.0
        assert result.data[99, 0] == pytest.approx(0.99)

    def test_fade_preserves_stereo_shape(self, stereo_buffer):
        result_in = fx.fade_in_full(stereo_buffer, 0.25)
        result_out = fx.fade_out_full(stereo_buffer, 0.25)
        assert result_in.data.shape == stereo_buffer.data.shape
        assert result_out.data.shape == stereo_buffer.data.shape


class TestNormalize:
    """Tests for normalize effect."""

    def test_normalize_reaches_full_scale(self, mono_buffer):
        result = fx.normalize_full(mono_buffer)
        assert result.peak == pytest.approx(1.0, abs=1e-6)

    def test_normalize_is_idempotent(self, mono_buffer):
        once = fx.normalize_full(mono_buffer)
        twice = fx.normalize_full(once)
        assert np.allclose(once.data, twice.data)

    def test_normalize_handles_silence(self):
        silence = SampleBuffer.silent(1, 1000, 8000)
        result = fx.normalize_full(silence)
        assert np.all(result.data == 0.0)


class TestReverseAndSilence:
    """Tests for reverse and silence."""

    def test_reverse(self, make_ramp):
        buffer = make_ramp(0.5)
        result = fx.reverse_full(buffer)
        assert np.array_equal(result.data, buffer.data[::-1])

    def test_reverse_twice_is_identity(self, stereo_buffer):
        assert fx.reverse_full(fx.reverse_full(stereo_buffer)) == stereo_buffer

    def test_silence_keeps_shape(self, stereo_buffer):
        result = fx.silence_full(stereo_buffer)
        assert result.data.shape == stereo_buffer.data.shape
        assert np.all(result.data == 0.0)


class TestSpeedAndPitch:
    """Tests for speed and pitch changes."""

    def test_double_speed_halves_length(self, stereo_buffer):
        result = fx.change_speed_full(stereo_buffer, 2.0)
        assert result.length == 22050
        assert result.sample_rate == AUDIO_CONFIG.default_samplerate

    def test_half_speed_doubles_length(self, mono_buffer):
        result = fx.change_speed_full(mono_buffer, 0.5)
        assert result.length == 88200

    def test_invalid_speed_is_ignored(self, mono_buffer):
        assert fx.change_speed_full(mono_buffer, 0.0) is mono_buffer
        assert fx.change_speed_full(mono_buffer, 5.0) is mono_buffer

    def test_speed_interpolates(self):
        buffer = SampleBuffer(np.array([0.0, 0.2, 0.4, 0.6], dtype=np.float32), 8000)
        result = fx.change_speed_full(buffer, 0.5)
        assert np.allclose(result.channel(0), [0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.6])

    def test_pitch_keeps_length(self, stereo_buffer):
        result = fx.change_pitch_full(stereo_buffer, 2.0)
        assert result.length == stereo_buffer.length
        assert result.channels == 2

    def test_unit_pitch_is_noop(self, stereo_buffer):
        assert fx.change_pitch_full(stereo_buffer, 1.0) is stereo_buffer
