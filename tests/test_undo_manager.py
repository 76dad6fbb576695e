"""
Tests for UndoManager.
"""
import pytest

from tracksmith.core import effects
from tracksmith.core.track import Track
from tracksmith.core.undo_manager import UndoManager


def edit(track, handle_factory, gain=0.5):
    """Apply a simple destructive edit."""
    track.replace_buffer(effects.amplify(track.buffer, gain), handle_factory)


class TestUndoManager:
    """Tests for UndoManager functionality."""

    def test_initial_state(self, undo_manager):
        assert not undo_manager.can_undo
        assert not undo_manager.can_redo
        assert len(undo_manager) == 0

    def test_save_to_history(self, undo_manager, sample_track):
        assert undo_manager.save_to_history(sample_track)
        assert undo_manager.can_undo
        assert not undo_manager.can_redo
        assert len(undo_manager) == 1

    def test_save_without_buffer(self, undo_manager):
        assert not undo_manager.save_to_history(Track())
        assert not undo_manager.can_undo

    def test_snapshot_is_a_copy(self, undo_manager, sample_track):
        undo_manager.save_to_history(sample_track)
        entry = undo_manager.undo_stack[-1]
        assert entry.buffer == sample_track.buffer
        assert entry.buffer.data is not sample_track.buffer.data
        assert entry.track_id == sample_track.id
        assert entry.handle is not None

    def test_undo_restores_buffer(self, undo_manager, state_with_track, handle_factory):
        track = state_with_track.current_track
        original = track.buffer
        undo_manager.save_to_history(track)
        edit(track, handle_factory)

        assert undo_manager.undo(state_with_track)
        assert track.buffer == original

    def test_redo_reapplies_edit(self, undo_manager, state_with_track, handle_factory):
        track = state_with_track.current_track
        undo_manager.save_to_history(track)
        edit(track, handle_factory)
        edited = track.buffer

        undo_manager.undo(state_with_track)
        assert undo_manager.redo(state_with_track)
        assert track.buffer == edited

    def test_undo_moves_to_redo_stack(self, undo_manager, state_with_track):
        undo_manager.save_to_history(state_with_track.current_track)
        undo_manager.undo(state_with_track)
        assert not undo_manager.can_undo
        assert undo_manager.can_redo

    def test_new_save_clears_redo(self, undo_manager, state_with_track, handle_factory):
        track = state_with_track.current_track
        undo_manager.save_to_history(track)
        undo_manager.undo(state_with_track)
        assert undo_manager.can_redo

        undo_manager.save_to_history(track)
        assert not undo_manager.can_redo

    def test_max_depth(self, undo_manager, sample_track):
        for _ in range(15):
            undo_manager.save_to_history(sample_track)
        assert undo_manager.undo_depth == 10

    def test_evicted_handles_are_released(self, undo_manager, sample_track, handle_factory):
        for _ in range(15):
            undo_manager.save_to_history(sample_track)
        # 10 snapshots plus the track's own handle
        assert handle_factory.live_handles == 11

    def test_empty_undo_returns_false(self, undo_manager, state_with_track):
        assert not undo_manager.undo(state_with_track)
        assert not undo_manager.redo(state_with_track)

    def test_undo_without_current_track(self, undo_manager, state_with_track):
        undo_manager.save_to_history(state_with_track.current_track)
        state_with_track.current_track_id = None
        assert not undo_manager.undo(state_with_track)
        assert undo_manager.can_undo

    def test_undo_for_deleted_track_is_dropped(self, undo_manager, state_with_track, stereo_buffer, handle_factory):
        gone = Track(name="Gone")
        gone.replace_buffer(stereo_buffer, handle_factory)
        undo_manager.save_to_history(gone)

        assert not undo_manager.undo(state_with_track)
        assert not undo_manager.can_undo

    def test_undo_for_emptied_track_is_dropped(self, undo_manager, state_with_track, mono_buffer, handle_factory):
        other = Track(name="Other")
        other.replace_buffer(mono_buffer, handle_factory)
        state_with_track.add_track(other)
        undo_manager.save_to_history(other)
        other.release(handle_factory)
        other.buffer = None

        assert not undo_manager.undo(state_with_track)
        assert not undo_manager.can_undo
        assert not undo_manager.can_redo

    def test_undo_targets_the_edited_track(self, undo_manager, state_with_track, mono_buffer, handle_factory):
        first = state_with_track.current_track
        other = Track(name="Other")
        other.replace_buffer(mono_buffer, handle_factory)
        state_with_track.add_track(other)

        undo_manager.save_to_history(other)
        edit(other, handle_factory)
        undo_manager.undo(state_with_track)

        assert other.buffer == mono_buffer
        assert state_with_track.current_track is first

    def test_discard_track(self, undo_manager, sample_track, handle_factory):
        undo_manager.save_to_history(sample_track)
        undo_manager.save_to_history(sample_track)
        undo_manager.discard_track(sample_track.id)
        assert not undo_manager.can_undo
        assert handle_factory.live_handles == 1

    def test_clear(self, undo_manager, state_with_track):
        undo_manager.save_to_history(state_with_track.current_track)
        undo_manager.undo(state_with_track)
        undo_manager.save_to_history(state_with_track.current_track)
        undo_manager.clear()
        assert len(undo_manager) == 0
