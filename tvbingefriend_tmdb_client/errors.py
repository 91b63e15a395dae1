"""Exceptions raised by the TMDB show tracker."""

from typing import Optional


class TMDBClientError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(TMDBClientError):
    """Raised when required settings are missing or invalid."""


class ShowNotFoundError(TMDBClientError, LookupError):
    """Raised when a search by name returns no results."""

    def __init__(self, query: Optional[str]):
        self.query = query
        super().__init__(f"No TMDB series found for query {query!r}")


class InvalidResponseError(TMDBClientError, ValueError):
    """Raised when the API returns a body that is not the JSON we expect."""
