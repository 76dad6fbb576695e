"""
tracksmith Core Module

This module contains the core audio editing logic:
- AudioEngine: Main orchestrator for editing, history, mixdown and playback
- EditorState: Session state (tracks, selection, clipboard, transport)
- Track: Track representation
- SampleBuffer: Immutable decoded audio
- PlaybackController: Multi-track playback against a shared transport
- Effects: Region-aware audio effects
"""
from .audio_engine import AudioEngine, ExportJob
from .buffer import SampleBuffer
from .state import EditorState, Selection, RepeatRegion
from .track import Track
from .transport import Transport
from .playback import PlaybackController, TrackPlayer, AudioOutput
from .undo_manager import UndoManager
from .handles import WavHandleFactory, PlayableHandle
from .merge_executor import InlineMergeExecutor, WorkerMergeExecutor, create_merge_executor
from .errors import TracksmithError, DecodeError, WorkerError, WorkerTimeoutError, UnknownEffectError
from .config import (
    AUDIO_CONFIG,
    EFFECTS_CONFIG,
    UNDO_CONFIG,
    SYNC_CONFIG,
    WORKER_CONFIG,
    TRANSPORT_CONFIG,
    PlaybackState,
    WaveformRenderer
)
from . import effects
from . import operations

__all__ = [
    # Main classes
    'AudioEngine',
    'ExportJob',
    'SampleBuffer',
    'EditorState',
    'Selection',
    'RepeatRegion',
    'Track',
    'Transport',
    'PlaybackController',
    'TrackPlayer',
    'AudioOutput',
    'UndoManager',
    'WavHandleFactory',
    'PlayableHandle',
    'InlineMergeExecutor',
    'WorkerMergeExecutor',
    'create_merge_executor',
    # Errors
    'TracksmithError',
    'DecodeError',
    'WorkerError',
    'WorkerTimeoutError',
    'UnknownEffectError',
    # Config
    'AUDIO_CONFIG',
    'EFFECTS_CONFIG',
    'UNDO_CONFIG',
    'SYNC_CONFIG',
    'WORKER_CONFIG',
    'TRANSPORT_CONFIG',
    'PlaybackState',
    'WaveformRenderer',
    # Submodules
    'effects',
    'operations',
]
