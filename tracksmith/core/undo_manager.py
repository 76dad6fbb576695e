"""
Undo/redo history for tracksmith.

History is a pair of bounded stacks of buffer snapshots. Each snapshot owns
its own playable handle, which is released when the snapshot is evicted or
cleared.
"""
from __future__ import annotations
import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Deque, Optional

from .buffer import SampleBuffer
from .config import UNDO_CONFIG

if TYPE_CHECKING:
    from .handles import HandleFactory, PlayableHandle
    from .state import EditorState
    from .track import Track

logger = logging.getLogger("tracksmith")


@dataclass(frozen=True)
class HistoryEntry:
    """Immutable snapshot of one track's audio."""
    track_id: str
    buffer: SampleBuffer
    handle: Optional["PlayableHandle"]
    duration: float


class UndoManager:
    """
    Bounded undo/redo stacks of track snapshots.
    """
    def __init__(self, handle_factory: "HandleFactory", max_depth: int = UNDO_CONFIG.max_depth) -> None:
        self._handles = handle_factory
        self.max_depth = max_depth
        self.undo_stack: Deque[HistoryEntry] = deque()
        self.redo_stack: Deque[HistoryEntry] = deque()

    # --- Queries ---

    @property
    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    @property
    def undo_depth(self) -> int:
        return len(self.undo_stack)

    @property
    def redo_depth(self) -> int:
        return len(self.redo_stack)

    def __len__(self) -> int:
        return len(self.undo_stack) + len(self.redo_stack)

    # --- Recording ---

    def _snapshot(self, track: "Track") -> Optional[HistoryEntry]:
        if track.buffer is None:
            return None
        buffer = track.buffer.clone()
        return HistoryEntry(track.id, buffer, self._handles.create(buffer), track.duration)

    def _push(self, stack: Deque[HistoryEntry], entry: HistoryEntry) -> None:
        stack.append(entry)
        while len(stack) > self.max_depth:
            evicted = stack.popleft()
            self._handles.release(evicted.handle)

    def _release_all(self, stack: Deque[HistoryEntry]) -> None:
        for entry in stack:
            self._handles.release(entry.handle)
        stack.clear()

    def save_to_history(self, track: "Track") -> bool:
        """
        Snapshot a track before a destructive edit.

        Returns:
            False if the track has no buffer to snapshot
        """
        entry = self._snapshot(track)
        if entry is None:
            logger.warning("Not saving history for '%s': track has no audio", track.name)
            return False

        self._push(self.undo_stack, entry)
        self._release_all(self.redo_stack)
        logger.debug("History saved for '%s' (depth %d)", track.name, len(self.undo_stack))
        return True

    # --- Restoring ---

    def undo(self, state: "EditorState") -> bool:
        """Restore the most recent snapshot, making it redoable."""
        return self._restore(state, self.undo_stack, self.redo_stack, "Undo")

    def redo(self, state: "EditorState") -> bool:
        """Re-apply the most recently undone snapshot."""
        return self._restore(state, self.redo_stack, self.undo_stack, "Redo")

    def _restore(
        self,
        state: "EditorState",
        source: Deque[HistoryEntry],
        opposite: Deque[HistoryEntry],
        label: str
    ) -> bool:
        if not source:
            logger.debug("Nothing to %s", label.lower())
            return False

        current = state.current_track
        if current is None or current.buffer is None:
            logger.debug("%s skipped: no current track audio", label)
            return False

        entry = source.pop()
        track = state.get_track(entry.track_id)
        snapshot = self._snapshot(track) if track is not None else None
        if snapshot is None:
            logger.warning("%s dropped: track %s no longer exists", label, entry.track_id)
            self._handles.release(entry.handle)
            return False

        self._push(opposite, snapshot)
        track.replace_buffer(entry.buffer.clone(), self._handles)
        self._handles.release(entry.handle)
        logger.info("%s: restored '%s' (%.2fs)", label, track.name, entry.duration)
        return True

    # --- Maintenance ---

    def discard_track(self, track_id: str) -> None:
        """Drop every snapshot that belongs to a deleted track."""
        for stack in (self.undo_stack, self.redo_stack):
            kept = [e for e in stack if e.track_id != track_id]
            for entry in stack:
                if entry.track_id == track_id:
                    self._handles.release(entry.handle)
            stack.clear()
            stack.extend(kept)

    def clear(self) -> None:
        """Empty both stacks and release every snapshot handle."""
        self._release_all(self.undo_stack)
        self._release_all(self.redo_stack)
        logger.debug("Undo/Redo stacks cleared")
