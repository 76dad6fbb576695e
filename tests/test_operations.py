"""
Tests for buffer edit operations.
"""
import pytest
import numpy as np

from tracksmith.core import operations as ops
from tracksmith.core.buffer import SampleBuffer


class TestCopy:
    """Tests for copy."""

    def test_copy_extracts_range(self, make_ramp):
        buffer = make_ramp(2.0)
        clip = ops.copy(buffer, 0.5, 1.0)
        assert clip.length == 22050
        assert np.array_equal(clip.data, buffer.data[22050:44100])

    def test_copy_past_end_is_zero_filled(self, make_ramp):
        buffer = make_ramp(1.0)
        clip = ops.copy(buffer, 0.75, 1.25)
        assert clip.length == 22050
        assert np.all(clip.data[-11025:] == 0.0)

    def test_copy_empty_range_is_one_sample(self, make_ramp):
        clip = ops.copy(make_ramp(1.0), 0.5, 0.5)
        assert clip.length == 1


class TestCut:
    """Tests for cut and merge."""

    def test_cut_then_merge(self, make_ramp):
        buffer = make_ramp(2.0)
        before, after = ops.cut(buffer, 0.5, 1.0)
        assert before.length == 22050
        assert after.length == 44100

        merged = ops.merge(before, after)
        assert merged.length == 66150
        assert merged.duration == pytest.approx(1.5)
        assert merged.channels == 2

    def test_cut_keeps_samples_outside_range(self, make_ramp):
        buffer = make_ramp(2.0)
        before, after = ops.cut(buffer, 0.5, 1.0)
        assert np.array_equal(before.data, buffer.data[:22050])
        assert np.array_equal(after.data, buffer.data[44100:])

    def test_cut_from_start_gives_one_sample_before(self, make_ramp):
        before, _ = ops.cut(make_ramp(1.0), 0.0, 0.5)
        assert before.length == 1

    def test_delete(self, make_ramp):
        result = ops.delete(make_ramp(2.0), 0.5, 1.0)
        assert result.length == 66150

    def test_merge_widens_channels(self):
        mono = SampleBuffer(np.ones(4, dtype=np.float32), 8000)
        stereo = SampleBuffer(np.ones((4, 2), dtype=np.float32), 8000)
        merged = ops.merge(mono, stereo, channels=2)
        assert merged.channels == 2
        assert np.all(merged.data[:4, 1] == 0.0)
        assert np.all(merged.data[4:, 1] == 1.0)

    def test_merge_of_two_empty_buffers(self):
        empty = SampleBuffer.silent(2, 0, 8000)
        assert ops.merge(empty, empty).length == 1


class TestPaste:
    """Tests for paste."""

    def test_paste_inserts_clip(self, make_ramp):
        buffer = make_ramp(1.0)
        clip = SampleBuffer(np.full((100, 2), -0.5, dtype=np.float32), 44100)
        result = ops.paste(buffer, clip, 0.5)

        assert result.length == buffer.length + 100
        assert np.array_equal(result.data[:22050], buffer.data[:22050])
        assert np.all(result.data[22050:22150] == -0.5)
        assert np.array_equal(result.data[22150:], buffer.data[22050:])

    def test_paste_past_end_appends(self, make_ramp):
        buffer = make_ramp(1.0)
        clip = SampleBuffer(np.full((10, 2), -0.5, dtype=np.float32), 44100)
        result = ops.paste(buffer, clip, 5.0)
        assert np.all(result.data[-10:] == -0.5)

    def test_paste_mono_clip_into_stereo(self, make_ramp):
        buffer = make_ramp(1.0)
        clip = SampleBuffer(np.full(10, 0.25, dtype=np.float32), 44100)
        result = ops.paste(buffer, clip, 0.0)
        assert result.channels == 2
        assert np.all(result.data[:10, 0] == 0.25)
        assert np.all(result.data[:10, 1] == 0.0)


class TestSplit:
    """Tests for split."""

    def test_split_halves(self, make_ramp):
        buffer = make_ramp(2.0)
        left, right = ops.split(buffer, 0.5)
        assert left.length == 22050
        assert right.length == 88200 - 22050
        assert np.array_equal(np.concatenate((left.data, right.data)), buffer.data)

    def test_split_at_zero(self, make_ramp):
        left, right = ops.split(make_ramp(1.0), 0.0)
        assert left.length == 1
        assert right.length == 44100


class TestInverses:
    """Cut and paste undo each other; split and merge round-trip."""

    @pytest.mark.parametrize("start,end", [(0.5, 1.0), (0.1, 1.9), (1.25, 1.5)])
    def test_paste_restores_cut(self, make_ramp, start, end):
        buffer = make_ramp(2.0)
        clip = ops.copy(buffer, start, end)
        remaining = ops.merge(*ops.cut(buffer, start, end))
        assert ops.paste(remaining, clip, start) == buffer

    def test_paste_restores_cut_from_start_with_padding(self, make_ramp):
        buffer = make_ramp(1.0)
        clip = ops.copy(buffer, 0.0, 0.5)
        remaining = ops.merge(*ops.cut(buffer, 0.0, 0.5))
        restored = ops.paste(remaining, clip, 0.0)

        # The empty head is padded to one silent sample
        assert restored.length == buffer.length + 1
        assert np.array_equal(restored.data[:22050], buffer.data[:22050])
        assert np.all(restored.data[22050] == 0.0)
        assert np.array_equal(restored.data[22051:], buffer.data[22050:])

    @pytest.mark.parametrize("seconds", [0.001, 0.5, 1.0, 1.999])
    def test_merge_undoes_split(self, make_ramp, seconds):
        buffer = make_ramp(2.0)
        assert ops.merge(*ops.split(buffer, seconds)) == buffer

    def test_merge_undoes_split_in_mono(self, sample_mono_audio):
        buffer = SampleBuffer(sample_mono_audio, 44100)
        assert ops.merge(*ops.split(buffer, 0.3)) == buffer
