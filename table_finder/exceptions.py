"""
Exceptions raised by the table finder.

An empty result is never an error: pages without tables simply yield an
empty list. Exceptions are reserved for settings that cannot be resolved
and for adapter input that cannot be parsed at all.
"""


class TableFinderError(Exception):
    """Base class for all table finder errors."""


class ConfigurationError(TableFinderError, ValueError):
    """
    Raised when table settings cannot be resolved.

    Examples: an unknown strategy name, the explicit strategy without any
    coordinates, unknown option keys or negative tolerances.
    """


class InputError(TableFinderError):
    """Raised when a page-primitives document cannot be parsed."""
