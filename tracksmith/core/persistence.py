"""
Session snapshots for tracksmith.

``snapshot_state`` flattens an editing session into plain Python values
(buffers become raw little-endian float32 bytes) and ``restore_state`` builds
it back. Where the snapshot is stored is up to the caller.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Tuple
import numpy as np

from .buffer import SampleBuffer
from .config import UNDO_CONFIG, WaveformRenderer
from .handles import HandleFactory
from .state import EditorState, RepeatRegion, Selection
from .track import Track
from .undo_manager import HistoryEntry, UndoManager

logger = logging.getLogger("tracksmith")

SNAPSHOT_VERSION = 1


def buffer_to_dict(buffer: SampleBuffer) -> Dict[str, Any]:
    return {
        "sample_rate": buffer.sample_rate,
        "channels": buffer.channels,
        "length": buffer.length,
        "data": buffer.data.astype("<f4").tobytes(),
    }


def buffer_from_dict(data: Dict[str, Any]) -> SampleBuffer:
    samples = np.frombuffer(data["data"], dtype="<f4").astype(np.float32)
    samples = samples.reshape((int(data["length"]), int(data["channels"])))
    return SampleBuffer(samples, int(data["sample_rate"]))


def _range_to_dict(value: Optional[Selection | RepeatRegion]) -> Optional[Dict[str, float]]:
    if value is None:
        return None
    return {"start": value.start, "end": value.end}


def _track_to_dict(track: Track) -> Dict[str, Any]:
    return {
        "id": track.id,
        "name": track.name,
        "duration": track.duration,
        "background_color": track.background_color,
        "volume": track.volume,
        "pan": track.pan,
        "muted": track.muted,
        "soloed": track.soloed,
        "waveform_renderer": track.waveform_renderer.value,
        "buffer": buffer_to_dict(track.buffer) if track.buffer is not None else None,
    }


def _entry_to_dict(entry: HistoryEntry) -> Dict[str, Any]:
    return {
        "track_id": entry.track_id,
        "duration": entry.duration,
        "buffer": buffer_to_dict(entry.buffer),
    }


def snapshot_state(state: EditorState, history: Optional[UndoManager] = None) -> Dict[str, Any]:
    """
    Capture a session as plain values.

    Args:
        state: Editor state to capture
        history: Undo manager whose stacks are included (bounded to 50 each)

    Returns:
        Snapshot dict
    """
    snapshot: Dict[str, Any] = {
        "version": SNAPSHOT_VERSION,
        "project_name": state.project_name,
        "tracks": [_track_to_dict(t) for t in state.tracks],
        "current_track_id": state.current_track_id,
        "selection": _range_to_dict(state.selection),
        "repeat_region": _range_to_dict(state.repeat_region),
        "zoom": state.transport.zoom,
        "current_time": state.transport.current_time,
        "clipboard": buffer_to_dict(state.clipboard) if state.clipboard is not None else None,
        "undo_stack": [],
        "redo_stack": [],
    }
    if history is not None:
        depth = UNDO_CONFIG.max_depth
        snapshot["undo_stack"] = [_entry_to_dict(e) for e in list(history.undo_stack)[-depth:]]
        snapshot["redo_stack"] = [_entry_to_dict(e) for e in list(history.redo_stack)[-depth:]]
    return snapshot


def restore_state(
    snapshot: Dict[str, Any],
    handle_factory: HandleFactory
) -> Tuple[EditorState, UndoManager]:
    """
    Rebuild a session from ``snapshot_state`` output.

    Tracks and history entries get fresh playable handles. Playback always
    restores as stopped.

    Raises:
        ValueError: If the snapshot version is not supported
    """
    version = snapshot.get("version", SNAPSHOT_VERSION)
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported snapshot version {version}")

    state = EditorState(project_name=snapshot.get("project_name", "Untitled Project"))

    for data in snapshot.get("tracks", []):
        track = Track(
            name=data["name"],
            volume=data.get("volume", 1.0),
            pan=data.get("pan", 0.0),
            muted=data.get("muted", False),
            soloed=data.get("soloed", False),
            background_color=data.get("background_color"),
            waveform_renderer=WaveformRenderer(data.get("waveform_renderer", WaveformRenderer.BARS.value)),
        )
        track.id = data["id"]
        if data.get("buffer") is not None:
            track.replace_buffer(buffer_from_dict(data["buffer"]), handle_factory)
        state.tracks.append(track)

    current_id = snapshot.get("current_track_id")
    state.current_track_id = current_id if state.get_track(current_id or "") else (
        state.tracks[0].id if state.tracks else None
    )

    selection = snapshot.get("selection")
    if selection is not None:
        candidate = Selection(selection["start"], selection["end"])
        current = state.current_track
        if current is not None and candidate.is_valid_for(current.duration):
            state.selection = candidate

    region = snapshot.get("repeat_region")
    if region is not None:
        state.repeat_region = RepeatRegion(region["start"], region["end"])

    clipboard = snapshot.get("clipboard")
    if clipboard is not None:
        state.clipboard = buffer_from_dict(clipboard)

    state.sync_timeline()
    state.transport.zoom = snapshot.get("zoom", state.transport.zoom)
    state.transport.current_time = snapshot.get("current_time", 0.0)

    history = UndoManager(handle_factory)
    for key, stack in (("undo_stack", history.undo_stack), ("redo_stack", history.redo_stack)):
        for data in snapshot.get(key, [])[-history.max_depth:]:
            buffer = buffer_from_dict(data["buffer"])
            stack.append(HistoryEntry(data["track_id"], buffer, handle_factory.create(buffer), data["duration"]))

    logger.info("Restored '%s' with %d track(s)", state.project_name, len(state.tracks))
    return state, history
