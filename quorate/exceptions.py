"""Exceptions defined and used by this package."""

import typing as t

__all__ = [
    "APIError",
    "ConfigurationError",
    "TransportError",
    "DecodeError",
    "NotFoundError",
    "ShapeError",
    "ResourceError",
]


class APIError(Exception):
    """Error interacting with NationStates API."""


class ConfigurationError(APIError, ValueError):
    """Missing or invalid settings, detected before any request is made."""


class TransportError(APIError):
    """A request could not be completed, or returned a bad status."""

    def __init__(self, message: str, status: t.Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class DecodeError(TransportError, ValueError):
    """A response body did not match the expected XML shape."""


class NotFoundError(APIError, LookupError):
    """The requested object does not exist on NS."""


class ShapeError(APIError, ValueError):
    """NS returned data that breaks an assumption about the API contract."""


class ResourceError(APIError, ValueError):
    """Error with retrieving or reading a data dump."""
