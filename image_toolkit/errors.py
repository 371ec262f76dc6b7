"""Exceptions raised by the Qt-free core and reported by the UI layer."""


class ToolkitError(Exception):
    """Base class for all toolkit errors."""


class InvalidImage(ToolkitError, ValueError):
    """The image is missing, undecodable or has a zero dimension."""


class InvalidConfiguration(ToolkitError, ValueError):
    """A user-supplied setting (size, colour, percent, text...) is unusable."""
