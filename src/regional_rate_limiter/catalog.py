# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Static endpoint catalog.

Maps dotted endpoint paths (``"summoner.by_name"``) to a URL template with
positional ``%s`` placeholders and the endpoint group's default rate limit.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from .exceptions import EndpointNotFoundError, PathArgumentError

PLACEHOLDER = "%s"


@dataclass(frozen=True)
class EndpointDescriptor:
    """
    A logical API operation.

    Attributes:
        url_template: Path template with positional ``%s`` placeholders
        limit: Default endpoint-group limit, ``"max:intervalSeconds"``
    """

    url_template: str
    limit: str

    @property
    def placeholder_count(self) -> int:
        return self.url_template.count(PLACEHOLDER)

    def build_path(self, args: tuple[Any, ...]) -> str:
        """
        Substitute positional path arguments into the template.

        Each argument is percent-encoded as a single path segment.

        Raises:
            PathArgumentError: If the argument count does not match the template
        """
        if len(args) != self.placeholder_count:
            raise PathArgumentError(args, self.url_template)
        return self.url_template % tuple(quote(str(a), safe="") for a in args)


DEFAULT_ENDPOINTS: dict[str, Any] = {
    "champion": {
        "list": {"url": "/lol/platform/v3/champions?freeToPlay=%s", "limit": "400:60"},
        "by_id": {"url": "/lol/platform/v3/champions/%s", "limit": "400:60"},
        "rotations": {"url": "/lol/platform/v3/champion-rotations", "limit": "30:10"},
    },
    "championmastery": {
        "by_summoner": {
            "url": "/lol/champion-mastery/v3/champion-masteries/by-summoner/%s",
            "limit": "2000:60",
        },
        "by_summoner_champion": {
            "url": "/lol/champion-mastery/v3/champion-masteries/by-summoner/%s/by-champion/%s",
            "limit": "2000:60",
        },
        "score": {
            "url": "/lol/champion-mastery/v3/scores/by-summoner/%s",
            "limit": "2000:60",
        },
    },
    "league": {
        "challenger": {
            "url": "/lol/league/v3/challengerleagues/by-queue/%s",
            "limit": "10:10",
        },
        "master": {
            "url": "/lol/league/v3/masterleagues/by-queue/%s",
            "limit": "10:10",
        },
        "positions": {
            "url": "/lol/league/v3/positions/by-summoner/%s",
            "limit": "300:60",
        },
    },
    "match": {
        "by_id": {"url": "/lol/match/v3/matches/%s", "limit": "500:10"},
        "by_account": {"url": "/lol/match/v3/matchlists/by-account/%s", "limit": "1000:10"},
        "timeline": {"url": "/lol/match/v3/timelines/by-match/%s", "limit": "500:10"},
    },
    "spectator": {
        "active_game": {
            "url": "/lol/spectator/v3/active-games/by-summoner/%s",
            "limit": "20000:10",
        },
        "featured_games": {"url": "/lol/spectator/v3/featured-games", "limit": "20000:10"},
    },
    "status": {
        "shard_data": {"url": "/lol/status/v3/shard-data", "limit": "20000:10"},
    },
    "summoner": {
        "by_account": {"url": "/lol/summoner/v3/summoners/by-account/%s", "limit": "2000:60"},
        "by_name": {"url": "/lol/summoner/v3/summoners/by-name/%s", "limit": "2000:60"},
        "by_id": {"url": "/lol/summoner/v3/summoners/%s", "limit": "2000:60"},
    },
}
"""Built-in catalog of platform endpoints."""


class EndpointCatalog:
    """
    Read-only lookup of dotted endpoint paths.

    The mapping is nested; leaves are either EndpointDescriptor instances or
    dicts with ``url`` and ``limit`` keys.

    Example:
        >>> catalog = EndpointCatalog(DEFAULT_ENDPOINTS)
        >>> catalog.resolve("summoner.by_name").build_path(("someone",))
        '/lol/summoner/v3/summoners/by-name/someone'
    """

    def __init__(self, endpoints: Mapping[str, Any] | None = None):
        self._endpoints = endpoints if endpoints is not None else DEFAULT_ENDPOINTS

    def resolve(self, endpoint: str) -> EndpointDescriptor:
        """
        Resolve a dotted path to its descriptor.

        Raises:
            EndpointNotFoundError: If any segment of the path is missing
        """
        node: Any = self._endpoints
        for segment in endpoint.split("."):
            if not isinstance(node, Mapping) or segment not in node:
                raise EndpointNotFoundError(endpoint)
            node = node[segment]

        if isinstance(node, EndpointDescriptor):
            return node
        if isinstance(node, Mapping) and "url" in node and "limit" in node:
            return EndpointDescriptor(url_template=node["url"], limit=node["limit"])
        raise EndpointNotFoundError(endpoint)

    def __contains__(self, endpoint: object) -> bool:
        if not isinstance(endpoint, str):
            return False
        try:
            self.resolve(endpoint)
        except EndpointNotFoundError:
            return False
        return True


__all__ = [
    "DEFAULT_ENDPOINTS",
    "PLACEHOLDER",
    "EndpointCatalog",
    "EndpointDescriptor",
]
