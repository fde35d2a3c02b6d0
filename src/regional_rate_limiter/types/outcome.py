# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Transport outcomes and their classification.

Every response coming back from the transport is classified exactly once into
an OutcomeKind; the retry controller matches on the kind instead of branching
on raw status codes.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

RETRY_AFTER_HEADER = "retry-after"
METHOD_LIMIT_HEADER = "x-method-rate-limit"

SERVER_FAULT_STATUSES = frozenset({500, 502, 503, 504})


class OutcomeKind(Enum):
    """
    Closed set of transport outcomes.

    - SUCCESS: 2xx, the body is handed to the caller
    - NOT_FOUND: 404, resolved as success with an empty result
    - RATE_LIMITED: 429, retried at high priority
    - SERVER_FAULT: transient 5xx, retried with exponential backoff
    - UNKNOWN_FAULT: anything else, terminal
    """

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    SERVER_FAULT = "server_fault"
    UNKNOWN_FAULT = "unknown_fault"


@dataclass
class TransportResponse:
    """
    Result of one transport call.

    Attributes:
        status_code: HTTP status, or None if no response was received
        headers: Response headers (looked up case-insensitively)
        body: Parsed JSON body for successful responses
        message: Error text for failed responses
    """

    status_code: int | None
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    message: str = ""

    def __post_init__(self) -> None:
        self.headers = {str(k).lower(): v for k, v in dict(self.headers).items()}

    def header(self, name: str) -> str | None:
        """Get a header value by case-insensitive name."""
        return self.headers.get(name.lower())

    @property
    def retry_after_ms(self) -> int | None:
        """Server retry hint converted to milliseconds, if present and numeric."""
        value = self.header(RETRY_AFTER_HEADER)
        if value is None:
            return None
        try:
            return int(value) * 1000
        except (TypeError, ValueError):
            return None

    @property
    def method_limit(self) -> str | None:
        """Current endpoint-group limit reported by the server, if any."""
        return self.header(METHOD_LIMIT_HEADER)


def classify(response: TransportResponse) -> OutcomeKind:
    """Classify a transport response into its OutcomeKind."""
    status = response.status_code
    if status is None:
        return OutcomeKind.UNKNOWN_FAULT
    if 200 <= status < 300:
        return OutcomeKind.SUCCESS
    if status == 404:
        return OutcomeKind.NOT_FOUND
    if status == 429:
        return OutcomeKind.RATE_LIMITED
    if status in SERVER_FAULT_STATUSES:
        return OutcomeKind.SERVER_FAULT
    return OutcomeKind.UNKNOWN_FAULT


__all__ = [
    "METHOD_LIMIT_HEADER",
    "RETRY_AFTER_HEADER",
    "SERVER_FAULT_STATUSES",
    "OutcomeKind",
    "TransportResponse",
    "classify",
]
