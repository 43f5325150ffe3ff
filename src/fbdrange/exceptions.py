"""
Configuration errors raised while assembling a range likelihood.

All of these are detected when parameters or observation data are resolved,
before any likelihood is evaluated. They subclass ``ValueError`` so callers
that only care about "bad input" can catch that.
"""


class ConfigurationError(ValueError):
    """Base class for invalid process configurations."""


class ShapeMismatch(ConfigurationError):
    """A per-interval or per-taxon vector has the wrong length."""

    def __init__(self, parameter: str, expected: int, actual: int, unit: str = "time intervals"):
        self.parameter = parameter
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Number of {parameter} ({actual}) does not match number of {unit} ({expected})"
        )


class ConflictingDataRegime(ConfigurationError):
    """More than one kind of observation count data was supplied."""


class UnsupportedDataRegime(ConfigurationError):
    """The requested combination of observation data and options is not supported."""


class MissingTimeline(ConfigurationError):
    """Per-interval values were given without any interval times."""


class UnsortedTimeline(ConfigurationError):
    """Interval times are neither ascending nor descending."""
