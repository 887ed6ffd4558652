"""Exceptions raised by the Confluence loader."""

from typing import Any


class ConfluenceError(Exception):
    """Base class for every error raised by this package."""


class TransportError(ConfluenceError):
    """The request never produced an HTTP response (DNS, connect, read...)."""

    def __init__(self, reason: str):
        super().__init__(f"Transport error: {reason}")
        self.reason = reason


class FetchTimeoutError(TransportError):
    """The request did not complete within the configured timeout."""


class ApiError(ConfluenceError):
    """The API answered with a status outside 200-299."""

    def __init__(self, status: int, body: Any):
        super().__init__(f"Confluence API returned {status}: {body!r}")
        self.status = status
        self.body = body


class NotFoundError(ConfluenceError):
    """A space key lookup returned no results."""


class InvalidTimestampError(ConfluenceError):
    """A timestamp argument could not be parsed as an ISO-8601 instant."""

    def __init__(self, value: Any):
        super().__init__(f"Invalid timestamp: {value!r}")
        self.value = value


class InvalidResponseError(ConfluenceError):
    """A response did not have the shape the caller expected."""
