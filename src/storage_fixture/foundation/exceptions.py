"""Exception classes for foundation utilities.

This module provides exception classes used by foundation components.
"""


class FoundationError(Exception):
    """Base exception class for foundation-related errors."""


class UpstreamError(FoundationError):
    """Exception raised when the storage engine fails a request.

    This exception indicates that the Elasticsearch instance is unreachable,
    returned an error status, or failed to complete a request.
    """
