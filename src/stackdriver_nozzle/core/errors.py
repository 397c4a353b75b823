"""Exception hierarchy for the nozzle.

Adapters raise these; the pipeline entry points catch and log them.
"""


class NozzleError(Exception):
    """Base class for all nozzle errors."""


class TranslationError(NozzleError):
    """An envelope could not be converted into a generic payload."""


class UnsupportedValueError(NozzleError):
    """A telemetry series holds a value the reporter cannot encode."""

    def __init__(self, name: str, value: object) -> None:
        super().__init__(f"unknown value type for {name!r}: {type(value).__name__}")
        self.name = name
        self.value = value


class BackendError(NozzleError):
    """A call to the remote logging or monitoring backend failed."""


class MetadataLookupError(NozzleError):
    """The application metadata source could not resolve an app."""


class ConfigError(NozzleError):
    """The nozzle configuration is missing or malformed."""
