"""
Exceptions raised by the engine.

Dirty activity data never raises; these are reserved for caller contract
violations such as a race date that precedes the plan start.
"""


class PlanConfigurationError(ValueError):
    """Plan generation was called with dates that cannot form a plan."""


class ConfigurationError(ValueError):
    """A parameter set failed validation."""
