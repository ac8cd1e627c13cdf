"""Error taxonomy for collaborator failures surfaced to the user."""

from __future__ import annotations


class FlexRouteError(Exception):
    """Base class for failures that carry a user-facing message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ExtractionFailure(FlexRouteError):
    """Screenshot extraction failed, returned malformed data, or found no stops."""


class OptimizationFailure(FlexRouteError):
    """The optimize call failed or returned a set of stops that does not match the route."""


class SummaryFailure(FlexRouteError):
    pass


class TrafficFailure(FlexRouteError):
    pass


class WeatherFailure(FlexRouteError):
    pass


class LocationFailure(FlexRouteError):
    """A GPS fix could not be obtained; ``code`` distinguishes permission problems."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code

    @property
    def permission_denied(self) -> bool:
        return self.code == "permission_denied"


class PersistenceFailure(FlexRouteError):
    pass


class SharedRouteError(FlexRouteError):
    pass


class UsageLimitExceeded(FlexRouteError):
    pass


class ProviderConfigurationError(FlexRouteError, ValueError):
    """The AI provider is unknown or missing credentials."""
