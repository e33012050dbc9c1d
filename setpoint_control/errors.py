from __future__ import annotations


class SetpointControlError(Exception):
    """Base class for every error raised by the controller."""


class ConfigError(SetpointControlError, ValueError):
    """Invalid configuration value or unknown configuration key."""


class MetricUnavailable(SetpointControlError):
    """The metric query failed or returned a non-success status; the tick is skipped."""


class MetricMalformed(SetpointControlError):
    """A single series is missing its label or carries a non-finite value."""


class UnknownResource(SetpointControlError):
    """A sample refers to a resource key that was never seeded."""

    def __init__(self, resource_key: str):
        super().__init__(f"Unknown resource '{resource_key}'")
        self.resource_key = resource_key


class ApplyFailure(SetpointControlError):
    """Pushing a new setpoint to the controlled tier failed."""

    def __init__(self, resource_key: str, value: int, cause: str = ""):
        message = f"Failed to apply {value} to '{resource_key}'"
        if cause:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.resource_key = resource_key
        self.value = value


class BaselineUnavailable(SetpointControlError):
    """The baseline setpoints could not be fetched from the controlled tier."""


class InitializationError(SetpointControlError):
    """An engine could not be moved to the ready state."""
