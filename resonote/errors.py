"""
Error taxonomy for the ResoNote core.

All errors are deterministic given their input and are never retried. The
HTTP layer and CLI translate them; the core only raises.
"""
from typing import Optional


class ResoNoteError(Exception):
    """Base class for all core errors."""

    def detail(self) -> dict:
        return {}


class InvalidArgumentError(ResoNoteError, ValueError):
    """Malformed seed list, out-of-range option or unknown similarity type."""

    def __init__(self, message: str, parameter: Optional[str] = None):
        super().__init__(message)
        self.parameter = parameter

    def detail(self) -> dict:
        return {"parameter": self.parameter} if self.parameter else {}


class TrackNotFoundError(ResoNoteError, LookupError):
    """A track ID did not resolve in the data store."""

    def __init__(self, track_id: str):
        super().__init__(f"Track with ID {track_id} not found")
        self.track_id = track_id

    def detail(self) -> dict:
        return {"track_id": self.track_id}


class NotReadyError(ResoNoteError, RuntimeError):
    """The corpus was queried before loading completed."""

    def __init__(self, message: str = "Data not loaded yet"):
        super().__init__(message)


class InsufficientResultsError(ResoNoteError):
    """Fewer tracks survived filtering than the requested minimum."""

    def __init__(self, found: int, required: int):
        super().__init__(
            f"Only {found} tracks available after filtering; at least {required} required"
        )
        self.found = found
        self.required = required

    def detail(self) -> dict:
        return {"found": self.found, "required": self.required}
