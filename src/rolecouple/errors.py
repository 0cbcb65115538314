"""
Exception types raised by rolecouple.
"""


class ConfigurationError(Exception):
    """A required input is missing or invalid; the run stops before any scan."""


class CorruptStateError(ValueError):
    """A persisted tally file cannot be reconstructed safely."""
