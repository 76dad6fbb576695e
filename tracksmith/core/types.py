"""
Type definitions for the tracksmith core module.
Provides type aliases and protocols for type safety and better IDE support.
"""
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol
import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from .buffer import SampleBuffer

# Audio data types
AudioArray = NDArray[np.float32]  # Shape: (samples, channels)
MonoArray = NDArray[np.float32]   # Shape: (samples,)
StereoArray = NDArray[np.float32] # Shape: (samples, 2)

# Callback types
Listener = Callable[[], None]
TimeListener = Callable[[float], None]
BufferLoader = Callable[[], Awaitable["SampleBuffer"]]


class FullEffectFunc(Protocol):
    """Protocol for full-buffer effect algorithms."""
    def __call__(self, buffer: "SampleBuffer", *args: Any) -> "SampleBuffer": ...


class RegionEffectFunc(Protocol):
    """Protocol for region-scoped effect entry points."""
    def __call__(
        self,
        buffer: "SampleBuffer",
        *args: Any,
        start: float | None = None,
        end: float | None = None,
        **kwargs: Any,
    ) -> "SampleBuffer": ...
