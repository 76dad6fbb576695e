"""
Shared transport clock for tracksmith.

The transport is the only playback state shared between track players. Every
change notifies subscribers with the current time.
"""
from __future__ import annotations
from typing import Callable, List

from .config import TRANSPORT_CONFIG
from .types import TimeListener


class Transport:
    """
    Current time, playing flag and zoom level for the whole timeline.
    """
    __slots__ = ('_current_time', '_is_playing', '_zoom', '_duration', '_listeners')

    def __init__(self) -> None:
        self._current_time: float = 0.0
        self._is_playing: bool = False
        self._zoom: float = TRANSPORT_CONFIG.default_zoom
        self._duration: float = 0.0
        self._listeners: List[TimeListener] = []

    # --- Subscriptions ---

    def subscribe(self, listener: TimeListener) -> Callable[[], None]:
        """
        Register a listener called with the current time on every change.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._current_time)

    # --- Timeline ---

    @property
    def duration(self) -> float:
        """Length of the shared timeline (longest track)."""
        return self._duration

    @duration.setter
    def duration(self, value: float) -> None:
        self._duration = max(0.0, value)
        if self._duration == 0.0:
            # Empty track set
            self._is_playing = False
            self._current_time = 0.0
            self._notify()
        elif self._current_time > self._duration:
            self.current_time = self._duration

    @property
    def current_time(self) -> float:
        return self._current_time

    @current_time.setter
    def current_time(self, value: float) -> None:
        clamped = max(0.0, min(self._duration, value))
        if clamped != self._current_time:
            self._current_time = clamped
            self._notify()

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @is_playing.setter
    def is_playing(self, value: bool) -> None:
        if value != self._is_playing:
            self._is_playing = value
            self._notify()

    def reset(self) -> None:
        """Stop and rewind to 0."""
        changed = self._is_playing or self._current_time != 0.0
        self._is_playing = False
        self._current_time = 0.0
        if changed:
            self._notify()

    # --- Zoom ---

    @property
    def zoom(self) -> float:
        """Zoom level in percent."""
        return self._zoom

    @zoom.setter
    def zoom(self, value: float) -> None:
        self._zoom = max(TRANSPORT_CONFIG.min_zoom, min(TRANSPORT_CONFIG.max_zoom, value))

    def zoom_in(self) -> float:
        self._zoom = min(TRANSPORT_CONFIG.max_zoom, self._zoom * TRANSPORT_CONFIG.zoom_step)
        return self._zoom

    def zoom_out(self) -> float:
        self._zoom = max(TRANSPORT_CONFIG.min_zoom, self._zoom / TRANSPORT_CONFIG.zoom_step)
        return self._zoom

    def reset_zoom(self) -> float:
        self._zoom = TRANSPORT_CONFIG.default_zoom
        return self._zoom

    def __repr__(self) -> str:
        return (
            f"Transport(current_time={self._current_time:.3f}, "
            f"is_playing={self._is_playing}, zoom={self._zoom:.0f}%)"
        )
