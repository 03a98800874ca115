from __future__ import annotations


class TrackingError(Exception):
    """Base class for failures raised by the tracking layer."""


class ConfigurationError(TrackingError, ValueError):
    """Invalid filter parameter or unknown resampler name."""


class BoundaryResolutionError(TrackingError, RuntimeError):
    """A particle could not be moved back inside the box after reflection."""


class ResamplingError(TrackingError, RuntimeError):
    """Cumulative-weight search ran past the last source particle."""


class FilterCollapseError(TrackingError, RuntimeError):
    """Total unnormalized weight collapsed (particle deprivation)."""


class ObservationParseError(TrackingError, ValueError):
    """Malformed observation record."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number
