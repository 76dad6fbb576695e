"""
Multi-track playback for tracksmith.

One TrackPlayer per track, all bound to a shared Transport. Exactly one
player is current: it owns the clock and the selection. The others follow
and reseek whenever they drift too far from the transport.
"""
from __future__ import annotations
import logging
import math
from typing import TYPE_CHECKING, Callable, Dict, List, Optional
import numpy as np

from .buffer import SampleBuffer
from .config import AUDIO_CONFIG, SYNC_CONFIG, PlaybackState
from .routing import TrackRouter
from .state import RepeatRegion, Selection
from .transport import Transport
from .types import AudioArray, BufferLoader, StereoArray

if TYPE_CHECKING:
    from .track import Track

logger = logging.getLogger("tracksmith")

SelectionListener = Callable[[Optional[Selection]], None]


class TrackPlayer:
    """
    Plays one track's buffer against the shared transport.
    """
    __slots__ = (
        'track', 'transport', 'router', 'is_current', '_buffer', '_position',
        '_generation', '_anchor', '_selection', 'on_selection_changed', '_tolerance'
    )

    def __init__(
        self,
        track: "Track",
        transport: Transport,
        tolerance: float = SYNC_CONFIG.tolerance_seconds
    ) -> None:
        self.track = track
        self.transport = transport
        self.router = TrackRouter()
        self.is_current: bool = False
        self._buffer: Optional[SampleBuffer] = None
        self._position: float = 0.0
        self._generation: int = 0
        self._anchor: Optional[float] = None
        self._selection: Optional[Selection] = None
        self.on_selection_changed: List[SelectionListener] = []
        self._tolerance = tolerance

    # --- Loading ---

    @property
    def buffer(self) -> Optional[SampleBuffer]:
        return self._buffer

    @property
    def duration(self) -> float:
        return self._buffer.duration if self._buffer is not None else 0.0

    @property
    def generation(self) -> int:
        """Incremented by every load; stale loads compare against it."""
        return self._generation

    async def load(self, loader: BufferLoader) -> bool:
        """
        Load a buffer from an async source.

        A newer load (or ``set_buffer``/``cancel``) supersedes this one; the
        superseded result is discarded.

        Returns:
            True if the loaded buffer was applied

        Raises:
            Whatever the loader raises, unless the load was superseded first
        """
        self._generation += 1
        generation = self._generation
        try:
            buffer = await loader()
        except Exception as e:
            if generation != self._generation:
                logger.debug("Ignoring failure of superseded load for '%s': %s", self.track.name, e)
                return False
            raise
        if generation != self._generation:
            logger.debug("Discarding superseded load for '%s'", self.track.name)
            return False
        self._apply(buffer)
        return True

    def set_buffer(self, buffer: Optional[SampleBuffer]) -> None:
        """Swap the buffer immediately, superseding any pending load."""
        self._generation += 1
        self._apply(buffer)

    def cancel(self) -> None:
        """Invalidate any pending load."""
        self._generation += 1

    def _apply(self, buffer: Optional[SampleBuffer]) -> None:
        self._buffer = buffer
        self._position = min(self._position, max(self.duration, self.transport.duration))

    # --- Position ---

    @property
    def position(self) -> float:
        """Playback position in seconds."""
        return self._position

    def seek(self, seconds: float) -> None:
        """Position on the shared timeline; past the buffer end the player is silent."""
        limit = max(self.duration, self.transport.duration)
        self._position = max(0.0, min(limit, seconds))

    def step(self, seconds: float) -> None:
        """Advance the local clock; clamps at the timeline end."""
        self.seek(self._position + seconds)

    def publish(self) -> bool:
        """Write this player's position to the transport (current player only)."""
        if not self.is_current:
            return False
        self.transport.current_time = self._position
        return True

    def set_playing(self, playing: bool) -> bool:
        """Write the playing flag to the transport (current player only)."""
        if not self.is_current:
            return False
        self.transport.is_playing = playing
        return True

    def follow(self) -> bool:
        """
        Mirror the transport. Reseeks when drift exceeds the tolerance.

        Returns:
            True if a reseek happened
        """
        if self.is_current:
            return False
        target = self.transport.current_time
        if abs(self._position - target) > self._tolerance:
            self.seek(target)
            return True
        return False

    # --- Selection ---

    @property
    def selection(self) -> Optional[Selection]:
        return self._selection

    def _emit_selection(self) -> None:
        for listener in list(self.on_selection_changed):
            listener(self._selection)

    def begin_selection(self, seconds: float) -> Optional[Selection]:
        """Start a drag selection; ignored on followers."""
        if not self.is_current:
            return None
        self._anchor = max(0.0, min(self.duration, seconds))
        self._selection = None
        self._emit_selection()
        return None

    def update_selection(self, seconds: float) -> Optional[Selection]:
        """Extend the drag selection to ``seconds``."""
        if not self.is_current or self._anchor is None:
            return None
        edge = max(0.0, min(self.duration, seconds))
        start, end = min(self._anchor, edge), max(self._anchor, edge)
        self._selection = Selection(start, end) if end > start else None
        self._emit_selection()
        return self._selection

    def end_selection(self, seconds: float) -> Optional[Selection]:
        """Finish the drag; a zero-width drag clears the selection."""
        if not self.is_current or self._anchor is None:
            return None
        selection = self.update_selection(seconds)
        self._anchor = None
        return selection

    def move_selection(self, start: float) -> Optional[Selection]:
        """Slide the selection to ``start`` keeping its width inside the track."""
        if not self.is_current or self._selection is None:
            return None
        width = self._selection.length
        new_start = max(0.0, min(start, self.duration - width))
        self._selection = Selection(new_start, new_start + width)
        self._emit_selection()
        return self._selection

    def show_selection(self, selection: Optional[Selection]) -> bool:
        """
        Adopt a selection made elsewhere without emitting it back.
        A drag in progress keeps its anchor.
        """
        if not self.is_current:
            return False
        self._selection = selection
        return True

    def clear_selection(self) -> None:
        if not self.is_current:
            return
        self._anchor = None
        if self._selection is not None:
            self._selection = None
            self._emit_selection()

    # --- Rendering ---

    def render(self, frames: int, sample_rate: int) -> StereoArray:
        """
        Routed stereo block of ``frames`` samples at the current position.
        Past the buffer end the block is silent.
        """
        buffer = self._buffer
        if buffer is None or frames <= 0:
            return np.zeros((max(0, frames), 2), dtype=np.float32)

        start = int(math.floor(self._position * buffer.sample_rate))
        if buffer.sample_rate == sample_rate:
            index = start + np.arange(frames)
        else:
            ratio = buffer.sample_rate / sample_rate
            index = start + np.floor(np.arange(frames) * ratio).astype(np.int64)

        block: AudioArray = np.zeros((frames, buffer.channels), dtype=np.float32)
        valid = index < buffer.length
        block[valid] = buffer.data[index[valid]]
        return self.router.process(block)

    def __repr__(self) -> str:
        role = "current" if self.is_current else "follower"
        return f"TrackPlayer({self.track.name!r}, {role}, position={self._position:.3f})"


class PlaybackController:
    """
    Owns the track players, the transport and the repeat region.
    """
    __slots__ = (
        '_transport', '_players', '_current_id', '_state', 'sample_rate',
        'repeat_region', 'on_state_changed'
    )

    def __init__(self, transport: Transport, sample_rate: int = AUDIO_CONFIG.default_samplerate) -> None:
        """
        Initialize playback controller.

        Args:
            transport: Shared transport to drive
            sample_rate: Output rate for rendered blocks
        """
        self._transport = transport
        self._players: Dict[str, TrackPlayer] = {}
        self._current_id: Optional[str] = None
        self._state = PlaybackState.STOPPED
        self.sample_rate = sample_rate
        self.repeat_region: Optional[RepeatRegion] = None
        self.on_state_changed: List[Callable[[PlaybackState], None]] = []

    # --- Properties ---

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def state(self) -> PlaybackState:
        """Current playback state."""
        return self._state

    @property
    def is_playing(self) -> bool:
        """Check if currently playing."""
        return self._state == PlaybackState.PLAYING

    @property
    def players(self) -> List[TrackPlayer]:
        return list(self._players.values())

    @property
    def current_player(self) -> Optional[TrackPlayer]:
        if self._current_id is None:
            return None
        return self._players.get(self._current_id)

    @property
    def duration(self) -> float:
        """Timeline length: the longest loaded player."""
        return max((p.duration for p in self._players.values()), default=0.0)

    def player(self, track_id: str) -> Optional[TrackPlayer]:
        return self._players.get(track_id)

    def _set_state(self, state: PlaybackState) -> None:
        """Update state and notify callbacks."""
        if self._state != state:
            self._state = state
            for callback in list(self.on_state_changed):
                callback(state)

    def refresh_timeline(self) -> None:
        """Push the timeline length into the transport."""
        self._transport.duration = self.duration
        if self.duration == 0.0:
            self._set_state(PlaybackState.STOPPED)

    # --- Players ---

    def attach(self, track: "Track") -> TrackPlayer:
        """
        Create a player for a track, loaded with its current buffer.
        The first attached player becomes current.
        """
        player = self._players.get(track.id)
        if player is None:
            player = TrackPlayer(track, self._transport)
            self._players[track.id] = player
        player.set_buffer(track.buffer)
        player.seek(self._transport.current_time)
        if self.current_player is None:
            self.set_current(track.id)
        self.refresh_timeline()
        return player

    def detach(self, track_id: str) -> bool:
        """Drop a track's player, cancelling any pending load."""
        player = self._players.pop(track_id, None)
        if player is None:
            return False
        player.cancel()
        player.is_current = False
        if self._current_id == track_id:
            self._current_id = None
            if self._players:
                self.set_current(next(iter(self._players)))
        self.refresh_timeline()
        return True

    def set_current(self, track_id: str) -> bool:
        """Hand clock and selection ownership to another player."""
        new = self._players.get(track_id)
        if new is None:
            return False
        old = self.current_player
        if old is not None and old is not new:
            old.clear_selection()
            old.is_current = False
        new.is_current = True
        self._current_id = track_id
        new.seek(self._transport.current_time)
        return True

    def update_routing(self) -> None:
        """Recompute every router from its track's volume, pan, mute and solo."""
        solo_active = any(p.track.soloed and p.buffer is not None for p in self._players.values())
        for p in self._players.values():
            t = p.track
            p.router.update(t.volume, t.pan, t.muted, solo_active and not t.soloed)

    # --- Transport control ---

    def play(self) -> bool:
        """
        Start playback.

        Returns:
            True if playback started
        """
        current = self.current_player
        if current is None or self.is_playing or self.duration == 0.0:
            return False
        for p in self._players.values():
            p.seek(self._transport.current_time)
        current.set_playing(True)
        self._set_state(PlaybackState.PLAYING)
        logger.info("Playback started at %.3fs", self._transport.current_time)
        return True

    def pause(self) -> None:
        """Pause playback (keep position)."""
        current = self.current_player
        if current is not None:
            current.set_playing(False)
        self._set_state(PlaybackState.PAUSED)
        logger.info("Playback paused at %.3fs", self._transport.current_time)

    def stop(self) -> None:
        """Stop playback and reset position."""
        for p in self._players.values():
            p.seek(0.0)
        self._transport.reset()
        self._set_state(PlaybackState.STOPPED)
        logger.info("Playback stopped")

    def seek(self, seconds: float) -> None:
        """Move every player to ``seconds`` (clamped to the timeline)."""
        target = max(0.0, min(self.duration, seconds))
        for p in self._players.values():
            p.seek(target)
        current = self.current_player
        if current is None or not current.publish():
            self._transport.current_time = target

    def advance(self, seconds: float) -> None:
        """
        Move the clock forward while playing.

        The current player steps first. Crossing the end of the repeat region
        from inside it loops back to its start; a playhead already outside the
        region plays on. The end of the timeline stops playback. Followers
        then resync.
        """
        current = self.current_player
        if not self.is_playing or current is None:
            return

        now = self._transport.current_time
        target = now + seconds
        region = self.repeat_region
        if region is not None and region.start <= now < region.end <= target:
            logger.debug("Looping back to %.3fs", region.start)
            for p in self._players.values():
                p.seek(region.start)
            current.publish()
            return
        if target >= self.duration - SYNC_CONFIG.end_epsilon_seconds:
            self.stop()
            return

        current.seek(target)
        current.publish()
        for p in self._players.values():
            if p is not current:
                p.step(seconds)
                p.follow()

    def render(self, frames: int) -> StereoArray:
        """
        Mix one output block from every player and advance the clock.
        """
        out = np.zeros((frames, AUDIO_CONFIG.playback_channels), dtype=np.float32)
        if not self.is_playing:
            return out
        self.update_routing()
        for p in self._players.values():
            out[:, :2] += p.render(frames, self.sample_rate)
        np.clip(out, -1.0, 1.0, out=out)
        self.advance(frames / self.sample_rate)
        return out


class AudioOutput:
    """
    Streams PlaybackController blocks to the sound card via sounddevice.
    """
    def __init__(
        self,
        controller: PlaybackController,
        blocksize: int = AUDIO_CONFIG.playback_blocksize,
        channels: int = AUDIO_CONFIG.playback_channels
    ) -> None:
        self._controller = controller
        self._blocksize = blocksize
        self._channels = channels
        self._stream = None
        self._sd = None

    @property
    def active(self) -> bool:
        return self._stream is not None

    def _callback(self, outdata: np.ndarray, frames: int, time: object, status: object) -> None:
        """Real-time audio callback."""
        try:
            block = self._controller.render(frames)
            outdata.fill(0)
            width = min(outdata.shape[1], block.shape[1])
            outdata[:, :width] = block[:, :width]
        except Exception as e:
            logger.error("Playback callback error: %s", e, exc_info=True)
            outdata.fill(0)
            self._controller.pause()

        if self._sd is not None and not self._controller.is_playing:
            raise self._sd.CallbackStop()

    def _on_finished(self) -> None:
        self._stream = None

    def start(self) -> bool:
        """
        Open the output stream and start playback.

        Returns:
            True if the stream is running
        """
        if self._stream is not None:
            return True
        if not self._controller.play() and not self._controller.is_playing:
            return False
        try:
            import sounddevice as sd
            self._sd = sd
            self._stream = sd.OutputStream(
                samplerate=self._controller.sample_rate,
                channels=self._channels,
                blocksize=self._blocksize,
                callback=self._callback,
                finished_callback=self._on_finished,
            )
            self._stream.start()
            return True
        except Exception as e:
            logger.error("Failed to start playback: %s", e, exc_info=True)
            self._stream = None
            self._controller.pause()
            return False

    def stop(self) -> None:
        """Close the stream; the controller keeps its position."""
        stream, self._stream = self._stream, None
        if stream is not None:
            try:
                stream.stop()
                stream.close()
            except Exception as e:
                logger.warning("Error stopping stream: %s", e)
        if self._controller.is_playing:
            self._controller.pause()
