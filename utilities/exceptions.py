"""
Error types raised by the map version monitor.
"""


class MapVersionError(Exception):
    """Base class for map version monitor errors."""


class FetchError(MapVersionError):
    """The map version page could not be retrieved."""


class ParseError(MapVersionError):
    """The map version marker was not found in the page."""


class StoreError(MapVersionError):
    """A read or write against the key-value store failed."""


class NotificationError(MapVersionError):
    """The email API rejected a notification."""
