"""
Pytest configuration and fixtures for tracksmith tests.
"""
import pytest
import numpy as np
from typing import Generator

from tracksmith.core.audio_engine import AudioEngine
from tracksmith.core.buffer import SampleBuffer
from tracksmith.core.config import AUDIO_CONFIG
from tracksmith.core.handles import WavHandleFactory
from tracksmith.core.merge_executor import InlineMergeExecutor
from tracksmith.core.state import EditorState
from tracksmith.core.track import Track
from tracksmith.core.undo_manager import UndoManager


@pytest.fixture
def sample_mono_audio() -> np.ndarray:
    """Generate 1 second of mono sine wave audio."""
    sr = AUDIO_CONFIG.default_samplerate
    t = np.linspace(0, 1, sr, dtype=np.float32)
    return np.sin(2 * np.pi * 440 * t).astype(np.float32)


@pytest.fixture
def sample_stereo_audio() -> np.ndarray:
    """Generate 1 second of stereo sine wave audio."""
    sr = AUDIO_CONFIG.default_samplerate
    t = np.linspace(0, 1, sr, dtype=np.float32)
    left = np.sin(2 * np.pi * 440 * t).astype(np.float32)
    right = np.sin(2 * np.pi * 880 * t).astype(np.float32)
    return np.column_stack((left, right))


@pytest.fixture
def mono_buffer(sample_mono_audio) -> SampleBuffer:
    return SampleBuffer(sample_mono_audio * 0.5, AUDIO_CONFIG.default_samplerate)


@pytest.fixture
def stereo_buffer(sample_stereo_audio) -> SampleBuffer:
    return SampleBuffer(sample_stereo_audio * 0.5, AUDIO_CONFIG.default_samplerate)


def _ramp(seconds: float = 2.0, channels: int = 2, sample_rate: int = 44100) -> SampleBuffer:
    """Every sample holds its own index (scaled), so positions are easy to check."""
    length = int(seconds * sample_rate)
    ramp = np.arange(length, dtype=np.float32) / length
    return SampleBuffer(np.column_stack([ramp] * channels), sample_rate)


@pytest.fixture
def make_ramp():
    """Factory for ramp buffers: make_ramp(seconds, channels, sample_rate)."""
    return _ramp


@pytest.fixture
def handle_factory() -> WavHandleFactory:
    return WavHandleFactory()


@pytest.fixture
def sample_track(stereo_buffer, handle_factory) -> Track:
    """Create a sample audio track."""
    track = Track(name="Test Track")
    track.replace_buffer(stereo_buffer, handle_factory)
    return track


@pytest.fixture
def empty_state() -> EditorState:
    """Create an empty editor state."""
    return EditorState(project_name="Test Project")


@pytest.fixture
def state_with_track(sample_track) -> EditorState:
    """Create an editor state with one current track."""
    state = EditorState(project_name="Test Project")
    state.add_track(sample_track)
    state.current_track_id = sample_track.id
    state.sync_timeline()
    return state


@pytest.fixture
def undo_manager(handle_factory) -> UndoManager:
    """Create an undo manager."""
    return UndoManager(handle_factory, max_depth=10)


@pytest.fixture
def engine() -> Generator[AudioEngine, None, None]:
    """Engine with an inline merge executor."""
    engine = AudioEngine(merge_executor=InlineMergeExecutor())
    engine.state.project_name = "Test Project"
    yield engine
    engine.close()
