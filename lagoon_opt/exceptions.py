"""
Exception hierarchy. Every error raised by lagoon_opt on a precondition violation
derives from LagoonOptError and from the builtin it specialises, so callers can catch
either.
"""
from __future__ import annotations


class LagoonOptError(Exception):
    """Base class for lagoon_opt errors."""


class InvalidHeadError(LagoonOptError, ValueError):
    """A head value lies outside [MIN_HEAD, MAX_HEAD] or is not finite."""

    def __init__(self, name: str, value: float, lower: float, upper: float):
        self.name = name
        self.value = value
        super().__init__(f"Invalid {name}: {value!r} must be between {lower} and {upper}")


class PopulationFullError(LagoonOptError, RuntimeError):
    """Raised when adding to a population that is already at capacity."""


class UnknownOperatorError(LagoonOptError, ValueError):
    def __init__(self, kind: str, name: str, available):
        self.kind = kind
        self.operator = name
        self.available = tuple(available)
        super().__init__(
            f"Unknown {kind} operator {name!r}. Available: {', '.join(self.available)}"
        )


class ConfigurationError(LagoonOptError, ValueError):
    """Raised when an NSGA2Config field fails validation."""
