"""
Exception types raised by the tracksmith core.

Invalid edit ranges and empty mixdowns are not errors: they come back as the
unchanged input or as ``None``.
"""


class TracksmithError(Exception):
    """Base exception for core failures."""
    def __init__(self, message: str, operation: str = "Unknown"):
        self.message = message
        self.operation = operation
        super().__init__(f"[{operation}] {message}")


class DecodeError(TracksmithError):
    """Raw bytes could not be decoded into a SampleBuffer."""
    def __init__(self, message: str):
        super().__init__(message, operation="Decode")


class WorkerError(TracksmithError):
    """A background merge failed or returned a mismatched response."""
    def __init__(self, message: str):
        super().__init__(message, operation="Merge")


class WorkerTimeoutError(WorkerError):
    """A background merge did not answer in time."""


class UnknownEffectError(TracksmithError):
    """No effect is registered under the requested name."""
    def __init__(self, name: str):
        super().__init__(f"Unknown effect '{name}'", operation="Effect")
        self.name = name
