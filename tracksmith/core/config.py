"""
Centralized configuration for tracksmith.
All magic numbers and default settings in one place.
"""
from dataclasses import dataclass
from enum import Enum, auto


class PlaybackState(Enum):
    """Playback state enumeration."""
    STOPPED = auto()
    PLAYING = auto()
    PAUSED = auto()


class WaveformRenderer(Enum):
    """Rendering strategy a track's waveform view uses."""
    BARS = "bars"
    LINE = "line"
    SPECTROGRAM = "spectrogram"


@dataclass(frozen=True, slots=True)
class AudioConfig:
    """Audio engine configuration."""
    default_samplerate: int = 44100
    playback_blocksize: int = 4096
    playback_channels: int = 2
    fallback_silence_seconds: float = 0.1
    wav_subtype: str = "PCM_16"


@dataclass(frozen=True, slots=True)
class UndoConfig:
    """Undo/Redo configuration."""
    max_depth: int = 50


@dataclass(frozen=True, slots=True)
class SyncConfig:
    """Multi-track playback synchronization."""
    tolerance_seconds: float = 0.1
    end_epsilon_seconds: float = 0.01


@dataclass(frozen=True, slots=True)
class WorkerConfig:
    """Background merge offload."""
    timeout_seconds: float = 30.0
    backend: str = "thread"  # "thread" or "process"
    max_workers: int = 1


@dataclass(frozen=True, slots=True)
class TransportConfig:
    """Transport defaults and zoom limits (percent)."""
    default_zoom: float = 100.0
    min_zoom: float = 10.0
    max_zoom: float = 1000.0
    zoom_step: float = 1.5


@dataclass(frozen=True, slots=True)
class EffectsConfig:
    """Default effect parameters and clamp ranges."""
    # Fades
    max_default_fade_seconds: float = 0.5

    # Defaults used when a caller omits a parameter
    amplify_gain: float = 2.0
    reverb_room_size: float = 1.0
    reverb_wet: float = 0.3
    delay_seconds: float = 0.3
    delay_feedback: float = 0.4
    delay_wet: float = 0.3
    noise_reduction_amount: float = 0.5
    compressor_threshold_db: float = -20.0
    compressor_ratio: float = 4.0
    compressor_attack_s: float = 0.005
    compressor_release_s: float = 0.1
    compressor_knee_db: float = 6.0
    limiter_threshold_db: float = -1.0
    limiter_release_s: float = 0.05
    eq_frequency: float = 1000.0
    eq_gain_db: float = 0.0
    eq_q: float = 1.0
    highpass_cutoff: float = 100.0
    lowpass_cutoff: float = 1000.0

    # Reverb
    reverb_delays_s: tuple[float, ...] = (0.030, 0.037, 0.041, 0.043)
    reverb_feedbacks: tuple[float, ...] = (0.30, 0.25, 0.20, 0.15)
    reverb_room_range: tuple[float, float] = (0.1, 3.0)
    reverb_max_tail_s: float = 2.0

    # Delay/Echo
    delay_time_range: tuple[float, float] = (0.01, 2.0)
    delay_feedback_range: tuple[float, float] = (0.0, 0.95)
    delay_max_tail_s: float = 2.0
    delay_tail_floor: float = 0.001

    # Noise reduction
    noise_window_s: float = 0.05
    noise_window_count: int = 10
    noise_gate_level: float = 0.01
    noise_smoothing_s: float = 0.01
    noise_smoothed_mix: float = 0.7

    # Speed / pitch
    speed_range: tuple[float, float] = (0.25, 4.0)
    pitch_window_s: float = 0.04

    # Dynamics
    compressor_threshold_range: tuple[float, float] = (-60.0, 0.0)
    compressor_ratio_range: tuple[float, float] = (1.0, 20.0)
    compressor_attack_range: tuple[float, float] = (0.0001, 1.0)
    compressor_release_range: tuple[float, float] = (0.01, 5.0)
    compressor_knee_range: tuple[float, float] = (0.0, 12.0)
    limiter_release_range: tuple[float, float] = (0.001, 1.0)
    limiter_attack_s: float = 0.0001

    # Filters
    min_filter_freq: float = 20.0
    eq_gain_range: tuple[float, float] = (-20.0, 20.0)
    eq_q_range: tuple[float, float] = (0.1, 30.0)


# Global config instances (immutable singletons)
AUDIO_CONFIG = AudioConfig()
UNDO_CONFIG = UndoConfig()
SYNC_CONFIG = SyncConfig()
WORKER_CONFIG = WorkerConfig()
TRANSPORT_CONFIG = TransportConfig()
EFFECTS_CONFIG = EffectsConfig()
