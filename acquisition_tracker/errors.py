from typing import Optional


class AcquisitionTrackerError(Exception):
    """Base class for errors raised by the acquisition tracker."""


class UpstreamFetchError(AcquisitionTrackerError):
    """A request to the Sleeper API failed (transport error or non-404 status)."""

    def __init__(self, url: str, status_code: Optional[int] = None, message: str = ""):
        self.url = url
        self.status_code = status_code
        detail = f"{status_code} " if status_code is not None else ""
        super().__init__(f"Upstream fetch failed: {detail}{url} {message}".rstrip())


class ResolutionCancelled(AcquisitionTrackerError):
    """The caller cancelled an in-flight resolution."""
