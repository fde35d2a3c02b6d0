# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exception classes for the regional rate limiter.

All exceptions inherit from RateLimiterError, making it easy to catch every
error surfaced by a RegionalClient with a single except clause.

Caller errors (an endpoint that does not exist, the wrong number of path
arguments) derive from ConfigurationError and are never retried. Failed
requests derive from RequestFailedError and carry the status code, message
and URL of the last attempt.
"""

from typing import Any


class RateLimiterError(Exception):
    """Base exception for all regional rate limiter errors.

    Example:
        try:
            summoner = await client.get("na1", "summoner.by_name", "someone")
        except RateLimiterError as e:
            logger.error(f"Request failed: {e}")
    """

    pass


class ConfigurationError(RateLimiterError):
    """Raised when a call or a configuration value is invalid.

    Configuration faults indicate a programmer error rather than a transient
    condition, so requests failing with one are never retried.
    """

    pass


class EndpointNotFoundError(ConfigurationError):
    """Raised when a dotted endpoint path does not resolve in the catalog.

    Attributes:
        endpoint: The dotted endpoint path that was requested.
    """

    def __init__(self, endpoint: str):
        super().__init__(f"Api endpoint {endpoint} not defined")
        self.endpoint = endpoint


class PathArgumentError(ConfigurationError):
    """Raised when the number of path arguments does not match the template.

    Attributes:
        args: The positional path arguments that were supplied.
        template: The URL template of the endpoint.
    """

    def __init__(self, args: tuple[Any, ...], template: str):
        super().__init__(
            f"Wrong number of path arguments: {list(args)!r}, for path {template!r}."
        )
        self.args_supplied = args
        self.template = template


class RequestFailedError(RateLimiterError):
    """Raised when a request fails terminally.

    Attributes:
        status_code: HTTP status code of the last attempt, or None when the
            transport failed before a response was received.
        url: The URL that was requested, when known.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.url = url

    def to_dict(self) -> dict[str, Any]:
        """Return the structured payload of this failure."""
        return {
            "status_code": self.status_code,
            "message": self.message,
            "url": self.url,
        }


class RateLimitExceededError(RequestFailedError):
    """Raised when a request keeps hitting 429 after all retries.

    Attributes:
        retries: Number of retries performed before giving up.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = 429,
        url: str | None = None,
        retries: int = 0,
    ):
        super().__init__(message, status_code=status_code, url=url)
        self.retries = retries


class ServerFaultError(RequestFailedError):
    """Raised when the server keeps failing (5xx) after all retries.

    Attributes:
        retries: Number of retries performed before giving up.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        retries: int = 0,
    ):
        super().__init__(message, status_code=status_code, url=url)
        self.retries = retries


class TransportFaultError(RequestFailedError):
    """Raised for any other failure; never retried."""

    pass


class BackendConnectionError(RateLimiterError):
    """Raised when connection to the shared store fails."""

    pass


class BackendOperationError(RateLimiterError):
    """Raised when an operation on the shared store fails."""

    pass


__all__ = [
    "BackendConnectionError",
    "BackendOperationError",
    "ConfigurationError",
    "EndpointNotFoundError",
    "PathArgumentError",
    "RateLimitExceededError",
    "RateLimiterError",
    "RequestFailedError",
    "ServerFaultError",
    "TransportFaultError",
]
