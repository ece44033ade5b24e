"""
Errors raised by the upload intake and the image derivative pipeline.

None of these are retried automatically; callers decide what to do.
"""
from django.core.exceptions import ValidationError


class ImagingError(Exception):
    """Base class for article_blog image errors."""


class ValidationFailed(ImagingError, ValidationError):
    """An upload was rejected by intake (size, MIME type, undecodable)."""


class UnknownFilterSet(ImagingError, LookupError):
    """No filter set is registered under the requested name."""

    def __init__(self, name):
        self.name = name
        super().__init__(f"Unknown filter set: {name!r}")


class InvalidParams(ImagingError, ValueError):
    """A primitive was given parameters it cannot work with."""


class OutOfBounds(ImagingError, ValueError):
    """A crop rectangle extends past the source image."""


class UnsupportedConversion(ImagingError):
    """The target format cannot be written."""


class UnsupportedFormat(UnsupportedConversion):
    """The source bytes are not an image Pillow can decode."""


class StorageWriteFailed(ImagingError):
    """A derivative could not be persisted to the cache store."""
