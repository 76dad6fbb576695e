"""
Tests for mixdown.
"""
import math
import pytest
import numpy as np

from tracksmith.core.buffer import SampleBuffer
from tracksmith.core.mixdown import (
    audible_tracks,
    mixdown,
    mixdown_or_silence,
    mixdown_selection,
    pan_gains,
)
from tracksmith.core.track import Track


def flat_track(value: float, seconds: float = 1.0, channels: int = 2, sample_rate: int = 44100, **kwargs) -> Track:
    data = np.full((int(seconds * sample_rate), channels), value, dtype=np.float32)
    return Track(buffer=SampleBuffer(data, sample_rate), **kwargs)


class TestPanLaw:
    """Tests for equal-power panning."""

    def test_centre(self):
        left, right = pan_gains(0.0)
        assert left == pytest.approx(math.sqrt(0.5))
        assert right == pytest.approx(math.sqrt(0.5))

    def test_hard_left_and_right(self):
        assert pan_gains(-1.0) == pytest.approx((1.0, 0.0))
        assert pan_gains(1.0) == pytest.approx((0.0, 1.0))

    def test_constant_power(self):
        for pan in (-0.7, -0.2, 0.3, 0.9):
            left, right = pan_gains(pan)
            assert left ** 2 + right ** 2 == pytest.approx(1.0)


class TestAudibleTracks:
    """Tests for mute/solo resolution."""

    def test_mute_excludes(self):
        a, b = flat_track(0.1), flat_track(0.1, muted=True)
        assert audible_tracks([a, b]) == [a]

    def test_solo_wins(self):
        a, b = flat_track(0.1, soloed=True), flat_track(0.1)
        assert audible_tracks([a, b]) == [a]

    def test_soloed_and_muted_is_silent(self):
        a, b = flat_track(0.1, soloed=True, muted=True), flat_track(0.1)
        assert audible_tracks([a, b]) == []

    def test_tracks_without_audio_are_skipped(self):
        a = flat_track(0.1)
        assert audible_tracks([Track(), a]) == [a]


class TestMixdown:
    """Tests for mixdown."""

    def test_single_centred_track(self):
        result = mixdown([flat_track(0.4)])
        assert result.channels == 2
        assert np.allclose(result.data, 0.4 * math.sqrt(0.5), atol=1e-6)

    def test_volume_and_pan(self):
        result = mixdown([flat_track(0.4, volume=0.5, pan=-1.0)])
        assert np.allclose(result.channel(0), 0.2, atol=1e-6)
        assert np.allclose(result.channel(1), 0.0, atol=1e-6)

    def test_length_is_longest_track(self):
        result = mixdown([flat_track(0.1, 1.0), flat_track(0.1, 2.0)])
        assert result.length == 88200
        # Only the long track is heard in the second half
        assert result.channel(0)[-1] == pytest.approx(0.1 * math.sqrt(0.5), abs=1e-6)

    def test_sum_is_clamped(self):
        result = mixdown([flat_track(0.9, pan=-1.0), flat_track(0.9, pan=-1.0)])
        assert np.all(result.channel(0) == 1.0)

    def test_mono_track_feeds_both_sides(self):
        mono = flat_track(0.5, channels=1, pan=1.0)
        result = mixdown([mono, flat_track(0.0)])
        assert np.allclose(result.channel(0), 0.0, atol=1e-6)
        assert np.allclose(result.channel(1), 0.5, atol=1e-6)

    def test_all_mono_mix_stays_mono(self):
        result = mixdown([flat_track(0.5, channels=1, pan=1.0)])
        assert result.channels == 1
        assert np.allclose(result.data, 0.5)

    def test_rate_of_first_track(self):
        slow = flat_track(0.2, 1.0, sample_rate=22050, pan=-1.0)
        fast = flat_track(0.0, 1.0, sample_rate=44100)
        result = mixdown([slow, fast])
        assert result.sample_rate == 22050
        assert result.length == 22050

    def test_mismatched_rate_is_resampled(self):
        slow = flat_track(0.2, 1.0, sample_rate=22050, pan=-1.0)
        result = mixdown([slow], sample_rate=44100)
        assert result.length == 44100
        assert np.allclose(result.channel(0), 0.2, atol=1e-6)

    def test_nothing_audible(self):
        assert mixdown([flat_track(0.1, muted=True)]) is None
        assert mixdown([]) is None

    def test_silence_fallback(self):
        result = mixdown_or_silence([flat_track(0.1, muted=True)])
        assert result.channels == 2
        assert result.length == 4410
        assert np.all(result.data == 0.0)


class TestMixdownSelection:
    """Tests for mixdown_selection."""

    def test_selection_length(self):
        result = mixdown_selection([flat_track(0.1, 2.0)], 0.5, 1.0)
        assert result.length == 22050

    def test_short_tracks_contribute_silence(self):
        short = flat_track(0.4, 0.5, pan=-1.0)
        long = flat_track(0.0, 2.0)
        result = mixdown_selection([short, long], 0.25, 1.0)
        assert result.length == 33075
        assert np.allclose(result.channel(0)[:11025], 0.4, atol=1e-6)
        assert np.all(result.channel(0)[11025:] == 0.0)

    def test_respects_mute(self):
        assert mixdown_selection([flat_track(0.1, muted=True)], 0.0, 0.5) is None
