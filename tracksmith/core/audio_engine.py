"""
AudioEngine: the single entry point the UI talks to.
Owns the editor state, history, playback and the merge executor.
"""
from __future__ import annotations
import asyncio
import os
from typing import Any, Callable, List, NamedTuple, Optional, Union

from .buffer import SampleBuffer
from .codec import AudioSource, decode_audio, encode_wav
from .config import AUDIO_CONFIG, WaveformRenderer
from .effects import EFFECTS, apply_effect as run_effect
from .errors import UnknownEffectError
from .handles import HandleFactory, WavHandleFactory
from .merge_executor import MergeExecutor, create_merge_executor
from .mixdown import mixdown, mixdown_selection
from .operations import copy, cut, paste, split
from .playback import PlaybackController, TrackPlayer
from .state import EditorState, RepeatRegion, Selection
from .track import Track
from .transport import Transport
from .types import Listener
from .undo_manager import UndoManager
from ..utils.logger import logger

EXPORT_SCOPES = ("all", "current", "selection")
EFFECT_SCOPES = ("all", "track", "selection")


class ExportJob(NamedTuple):
    """A render-ready buffer and the file name to save it under."""
    buffer: SampleBuffer
    filename: str


class AudioEngine:
    """
    Core engine for editing, history, mixdown and playback of a multi-track session.
    """
    def __init__(
        self,
        state: Optional[EditorState] = None,
        handle_factory: Optional[HandleFactory] = None,
        merge_executor: Optional[MergeExecutor] = None,
        sample_rate: int = AUDIO_CONFIG.default_samplerate
    ) -> None:
        self.state = state if state is not None else EditorState()
        self.handles: HandleFactory = handle_factory if handle_factory is not None else WavHandleFactory()
        self.merger: MergeExecutor = merge_executor if merge_executor is not None else create_merge_executor()
        self.history = UndoManager(self.handles)
        self.playback = PlaybackController(self.state.transport, sample_rate)
        self.on_tracks_changed: List[Listener] = []
        self.on_selection_changed: List[Callable[[Optional[Selection]], None]] = []

        for track in self.state.tracks:
            if track.buffer is not None and track.handle is None:
                track.handle = self.handles.create(track.buffer)
            self._attach(track)
        if self.state.current_track_id is not None:
            self.playback.set_current(self.state.current_track_id)
        self._show_selection(self.state.selection)
        self.playback.repeat_region = self.state.repeat_region
        self._adopt_sample_rate()
        logger.info("AudioEngine initialized")

    # --- Accessors ---

    @property
    def tracks(self) -> List[Track]:
        return self.state.tracks

    @property
    def current_track(self) -> Optional[Track]:
        return self.state.current_track

    @property
    def selection(self) -> Optional[Selection]:
        return self.state.selection

    @property
    def clipboard(self) -> Optional[SampleBuffer]:
        return self.state.clipboard

    @property
    def transport(self) -> Transport:
        return self.state.transport

    # --- Notifications ---

    def _tracks_changed(self) -> None:
        self.state.sync_timeline()
        self.playback.refresh_timeline()
        self.playback.update_routing()
        for callback in list(self.on_tracks_changed):
            callback()

    def _show_selection(self, selection: Optional[Selection]) -> None:
        player = self.playback.current_player
        if player is not None and player.selection != selection:
            player.show_selection(selection)

    def _set_selection(self, selection: Optional[Selection]) -> None:
        self._show_selection(selection)
        if selection == self.state.selection:
            return
        self.state.selection = selection
        for callback in list(self.on_selection_changed):
            callback(selection)

    def _adopt_sample_rate(self) -> None:
        """Play back at the rate of the first track with audio."""
        for track in self.state.tracks:
            if track.buffer is not None:
                self.playback.sample_rate = track.buffer.sample_rate
                return

    def _replace(self, track: Track, buffer: SampleBuffer) -> None:
        """Give a track a new buffer and keep its player in step."""
        track.replace_buffer(buffer, self.handles)
        player = self.playback.player(track.id)
        if player is not None:
            player.set_buffer(buffer)

    def _attach(self, track: Track) -> TrackPlayer:
        """Attach a player and route its drag selections into the editor state."""
        known = self.playback.player(track.id) is not None
        player = self.playback.attach(track)
        if not known:
            player.on_selection_changed.append(
                lambda selection, p=player: self._on_player_selection(p, selection)
            )
        return player

    def _on_player_selection(self, player: TrackPlayer, selection: Optional[Selection]) -> None:
        if player is self.playback.current_player:
            self._set_selection(selection)

    def _sync_players(self) -> None:
        for track in self.state.tracks:
            player = self.playback.player(track.id)
            if player is not None and player.buffer is not track.buffer:
                player.set_buffer(track.buffer)

    def _find(self, track_id: str) -> Optional[Track]:
        track = self.state.get_track(track_id)
        if track is None:
            logger.warning(f"Unknown track id {track_id}")
        return track

    # --- Track Management ---

    def add_track(
        self,
        buffer: Optional[SampleBuffer] = None,
        name: Optional[str] = None,
        index: Optional[int] = None
    ) -> Track:
        """Adds a track, makes it current if nothing is, and notifies listeners."""
        track = Track(name=name or f"Track {len(self.state.tracks) + 1}")
        if buffer is not None:
            track.replace_buffer(buffer, self.handles)
        self.state.add_track(track, index)
        self._attach(track)
        if self.state.current_track_id is None:
            self.set_current_track(track.id)
        self._adopt_sample_rate()
        self._tracks_changed()
        logger.info(f"Added track '{track.name}' ({track.duration:.2f}s)")
        return track

    async def import_audio(self, source: AudioSource, name: Optional[str] = None) -> Track:
        """
        Decode audio off the event loop and add it as a new track.

        Raises:
            DecodeError: If the source cannot be decoded; no track is added
        """
        buffer = await asyncio.to_thread(decode_audio, source)
        if name is None:
            name = os.path.basename(source) if isinstance(source, (str, os.PathLike)) else None
        return self.add_track(buffer, name)

    async def load_track_audio(self, track_id: str, source: AudioSource) -> bool:
        """
        Replace a track's audio with a newly decoded source.

        A later load onto the same track supersedes this one.

        Returns:
            True if the decoded audio was applied
        """
        track = self._find(track_id)
        player = self.playback.player(track_id)
        if track is None or player is None:
            return False

        async def loader() -> SampleBuffer:
            return await asyncio.to_thread(decode_audio, source)

        if not await player.load(loader):
            return False
        self.history.save_to_history(track)
        track.replace_buffer(player.buffer, self.handles)
        if track is self.current_track:
            self._set_selection(None)
        self._adopt_sample_rate()
        self._tracks_changed()
        return True

    def delete_track(self, track_id: str) -> bool:
        """Removes a track; the last remaining track cannot be deleted."""
        if len(self.state.tracks) <= 1:
            logger.warning("Refusing to delete the last track")
            return False
        index = self.state.index_of(track_id)
        if index < 0:
            return False

        track = self.state.remove_track(track_id)
        self.history.discard_track(track_id)
        track.release(self.handles)
        self.playback.detach(track_id)

        if self.state.current_track_id == track_id:
            successor = self.state.tracks[min(index, len(self.state.tracks) - 1)]
            self.set_current_track(successor.id)
        self._tracks_changed()
        logger.info(f"Deleted track '{track.name}'")
        return True

    def duplicate_track(self, track_id: str) -> Optional[Track]:
        """Inserts a deep copy right after the source track."""
        source = self._find(track_id)
        if source is None:
            return None
        clone = source.copy()
        if clone.buffer is not None:
            clone.handle = self.handles.create(clone.buffer)
        self.state.add_track(clone, self.state.index_of(track_id) + 1)
        self._attach(clone)
        self._tracks_changed()
        return clone

    def rename_track(self, track_id: str, name: str) -> bool:
        track = self._find(track_id)
        if track is None or not name.strip():
            return False
        track.name = name.strip()
        self._tracks_changed()
        return True

    def set_track_volume(self, track_id: str, volume: float) -> bool:
        track = self._find(track_id)
        if track is None:
            return False
        track.volume = volume
        self._tracks_changed()
        return True

    def set_track_pan(self, track_id: str, pan: float) -> bool:
        track = self._find(track_id)
        if track is None:
            return False
        track.pan = pan
        self._tracks_changed()
        return True

    def set_track_color(self, track_id: str, color: Optional[str]) -> bool:
        track = self._find(track_id)
        if track is None:
            return False
        track.background_color = color
        self._tracks_changed()
        return True

    def set_track_renderer(self, track_id: str, renderer: Union[WaveformRenderer, str]) -> bool:
        track = self._find(track_id)
        if track is None:
            return False
        track.waveform_renderer = WaveformRenderer(renderer)
        self._tracks_changed()
        return True

    def toggle_mute(self, track_id: str) -> bool:
        """Flips mute; returns the new state."""
        track = self._find(track_id)
        if track is None:
            return False
        track.muted = not track.muted
        self._tracks_changed()
        return track.muted

    def toggle_solo(self, track_id: str) -> bool:
        """Flips solo; returns the new state."""
        track = self._find(track_id)
        if track is None:
            return False
        track.soloed = not track.soloed
        self._tracks_changed()
        return track.soloed

    def reorder_tracks(self, from_index: int, to_index: int) -> bool:
        tracks = self.state.tracks
        if not (0 <= from_index < len(tracks)) or not (0 <= to_index < len(tracks)):
            return False
        if from_index == to_index:
            return False
        tracks.insert(to_index, tracks.pop(from_index))
        self._tracks_changed()
        return True

    def set_current_track(self, track_id: str) -> bool:
        """Focuses a track; the selection belongs to the old track and is cleared."""
        if self.state.get_track(track_id) is None:
            return False
        self.state.current_track_id = track_id
        self.playback.set_current(track_id)
        self._set_selection(None)
        return True

    # --- Selection ---

    def set_selection(self, start: float, end: float) -> Optional[Selection]:
        """Selects a range on the current track; an invalid range clears the selection."""
        track = self.current_track
        selection = Selection(start, end)
        if track is None or not selection.is_valid_for(track.duration):
            logger.debug(f"Invalid selection {start:.3f}-{end:.3f}")
            selection = None
        self._set_selection(selection)
        return selection

    def clear_selection(self) -> None:
        self._set_selection(None)

    def set_repeat_region(self, start: float, end: float) -> bool:
        region = RepeatRegion(start, end)
        if not region.is_valid_for(self.state.duration):
            return False
        self.state.repeat_region = region
        self.playback.repeat_region = region
        return True

    def clear_repeat_region(self) -> None:
        self.state.repeat_region = None
        self.playback.repeat_region = None

    # --- Editing Operations ---

    def _editable(self, need_selection: bool = True) -> Optional[Track]:
        track = self.current_track
        if track is None or track.buffer is None:
            logger.debug("No current track audio to edit")
            return None
        if need_selection and self.state.selection is None:
            logger.debug("No selection")
            return None
        return track

    def _unchanged(self, track: Track, buffer: SampleBuffer) -> bool:
        """False if the track was removed or edited while a merge was pending."""
        if self.state.get_track(track.id) is not track or track.buffer is not buffer:
            logger.warning(f"Discarding stale edit of '{track.name}': track changed during merge")
            return False
        return True

    async def cut_selection(self) -> bool:
        """Moves the selection to the clipboard and closes the gap."""
        track = self._editable()
        if track is None:
            return False
        sel = self.state.selection
        buffer = track.buffer

        before, after = cut(buffer, sel.start, sel.end)
        merged = await self.merger.merge(before, after, buffer.channels, buffer.sample_rate)
        if not self._unchanged(track, buffer):
            return False

        self.state.clipboard = copy(buffer, sel.start, sel.end)
        self.history.save_to_history(track)
        self._replace(track, merged)
        self._set_selection(None)
        self._tracks_changed()
        logger.info(f"Cut {sel.length:.3f}s from '{track.name}'")
        return True

    def copy_selection(self) -> bool:
        """Copies the selection to the clipboard."""
        track = self._editable()
        if track is None:
            return False
        sel = self.state.selection
        self.state.clipboard = copy(track.buffer, sel.start, sel.end)
        logger.debug(f"Copied {sel.length:.3f}s to clipboard")
        return True

    def paste_at_cursor(self) -> bool:
        """Inserts the clipboard into the current track at the transport time."""
        clip = self.state.clipboard
        track = self.current_track
        if clip is None or track is None:
            return False

        if track.buffer is None:
            self._replace(track, clip.clone())
        else:
            self.history.save_to_history(track)
            self._replace(track, paste(track.buffer, clip, self.state.transport.current_time))
        self._set_selection(None)
        self._tracks_changed()
        logger.info(f"Pasted {clip.duration:.3f}s into '{track.name}'")
        return True

    async def delete_selection(self) -> bool:
        """Removes the selection and closes the gap."""
        track = self._editable()
        if track is None:
            return False
        sel = self.state.selection
        buffer = track.buffer

        before, after = cut(buffer, sel.start, sel.end)
        merged = await self.merger.merge(before, after, buffer.channels, buffer.sample_rate)
        if not self._unchanged(track, buffer):
            return False

        self.history.save_to_history(track)
        self._replace(track, merged)
        self._set_selection(None)
        self._tracks_changed()
        logger.info(f"Deleted {sel.length:.3f}s from '{track.name}'")
        return True

    def apply_effect(self, name: str, scope: str = "track", **params: Any) -> bool:
        """
        Applies a named effect.

        Args:
            name: Registered effect name (see ``effects.EFFECTS``)
            scope: "all" tracks, the current "track", or the current "selection"
            **params: Effect parameters

        Returns:
            True if any track changed; a no-op effect records no history

        Raises:
            UnknownEffectError: If no effect is registered under ``name``
            ValueError: If ``scope`` is not recognised
        """
        if name not in EFFECTS:
            raise UnknownEffectError(name)
        if scope not in EFFECT_SCOPES:
            raise ValueError(f"Unknown effect scope '{scope}'")

        if scope == "all":
            targets = [t for t in self.state.tracks if t.buffer is not None]
            start = end = None
        else:
            track = self._editable(need_selection=scope == "selection")
            if track is None:
                return False
            targets = [track]
            sel = self.state.selection
            start, end = (sel.start, sel.end) if scope == "selection" else (None, None)

        if not targets:
            return False

        changed = 0
        for track in targets:
            result = run_effect(name, track.buffer, start=start, end=end, **params)
            if result is track.buffer or result == track.buffer:
                logger.debug(f"{name} left '{track.name}' unchanged")
                continue
            self.history.save_to_history(track)
            self._replace(track, result)
            changed += 1

        if not changed:
            return False
        self._set_selection(None)
        self._tracks_changed()
        logger.info(f"Applied {name} to {changed} track(s) ({scope})")
        return True

    def silence_selection(self) -> bool:
        """Zeroes the selected range without changing the track length."""
        return self.apply_effect("silence", scope="selection")

    def split_track_at(self, seconds: float) -> Optional[Track]:
        """
        Splits the current track in two.
        The track keeps the left part; the right part becomes a new track after it.
        """
        track = self._editable(need_selection=False)
        if track is None or not (0 < seconds < track.duration):
            return None

        left, right = split(track.buffer, seconds)
        self.history.save_to_history(track)
        self._replace(track, left)

        right_track = Track(
            name=f"{track.name} (split)",
            volume=track.volume,
            pan=track.pan,
            muted=track.muted,
            soloed=track.soloed,
            background_color=track.background_color,
            waveform_renderer=track.waveform_renderer,
        )
        right_track.replace_buffer(right, self.handles)
        self.state.add_track(right_track, self.state.index_of(track.id) + 1)
        self._attach(right_track)

        self._set_selection(None)
        self._tracks_changed()
        logger.info(f"Split '{track.name}' at {seconds:.3f}s")
        return right_track

    # --- History ---

    def _after_history(self, changed: bool) -> bool:
        if changed:
            self._sync_players()
            current = self.current_track
            sel = self.state.selection
            if sel is not None and (current is None or not sel.is_valid_for(current.duration)):
                self._set_selection(None)
            self._tracks_changed()
        return changed

    def undo(self) -> bool:
        return self._after_history(self.history.undo(self.state))

    def redo(self) -> bool:
        return self._after_history(self.history.redo(self.state))

    # --- Export ---

    def mixdown(self) -> Optional[SampleBuffer]:
        """Mixes every audible track; None if nothing is audible."""
        return mixdown(self.state.tracks)

    def prepare_export(self, scope: str = "all", fmt: str = "wav") -> Optional[ExportJob]:
        """
        Picks the buffer and file name for an export.

        Args:
            scope: "all" (full mix), "current" (current track) or "selection"
            fmt: File extension for the name

        Returns:
            ExportJob, or None if there is nothing to export
        """
        if scope not in EXPORT_SCOPES:
            raise ValueError(f"Unknown export scope '{scope}'")
        project = self.state.project_name

        if scope == "current":
            track = self.current_track
            if track is None or track.buffer is None:
                return None
            return ExportJob(track.buffer, f"{project}_{track.name}.{fmt}")

        if scope == "selection":
            sel = self.state.selection
            if sel is None:
                return None
            buffer = mixdown_selection(self.state.tracks, sel.start, sel.end)
            if buffer is None:
                return None
            return ExportJob(buffer, f"{project}_selection.{fmt}")

        buffer = self.mixdown()
        if buffer is None:
            return None
        return ExportJob(buffer, f"{project}.{fmt}")

    def export_wav(self, path: Optional[Union[str, os.PathLike]] = None, scope: str = "all") -> Optional[bytes]:
        """
        Renders an export scope to 16-bit PCM WAV.

        Args:
            path: File or directory to write to (directory uses the job's file name)
            scope: Export scope, as for ``prepare_export``

        Returns:
            The WAV bytes, or None if there is nothing to export
        """
        job = self.prepare_export(scope, "wav")
        if job is None:
            logger.warning(f"Nothing to export for scope '{scope}'")
            return None
        data = encode_wav(job.buffer)
        if path is not None:
            target = os.path.join(path, job.filename) if os.path.isdir(path) else path
            with open(target, "wb") as f:
                f.write(data)
            logger.info(f"Exported {job.filename} to {target}")
        return data

    # --- Playback Control ---

    def play(self) -> bool:
        return self.playback.play()

    def pause(self) -> None:
        self.playback.pause()

    def stop(self) -> None:
        self.playback.stop()

    def seek(self, seconds: float) -> None:
        self.playback.seek(seconds)

    # --- Lifecycle ---

    def reset(self) -> None:
        """Resets the engine to a clean state."""
        self.playback.stop()
        for track in self.state.tracks:
            track.release(self.handles)
            self.playback.detach(track.id)
        self.history.clear()

        self.state.tracks.clear()
        self.state.current_track_id = None
        self.state.clipboard = None
        self.state.repeat_region = None
        self.playback.repeat_region = None
        self.state.transport.reset()
        self.state.transport.reset_zoom()
        self._set_selection(None)
        self._tracks_changed()
        logger.info("Project cleared")

    def close(self) -> None:
        """Releases the merge worker pool."""
        self.merger.close()
