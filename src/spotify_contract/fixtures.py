"""Static fixture data and constant tables shared by the contract tests."""

from types import MappingProxyType
from typing import Any, Mapping


def _frozen(tables: dict[str, dict[str, Any]]) -> Mapping[str, Mapping[str, Any]]:
    return MappingProxyType({name: MappingProxyType(table) for name, table in tables.items()})


TEST_DATA = _frozen(
    {
        "albums": {
            "valid_id": "4aawyAB9vmqN3uQ7FjRGTy",
            "valid_ids": "4aawyAB9vmqN3uQ7FjRGTy,382ObEPsp2rxGrnsizN5TX",
            "invalid_id": "xxxxx",
            "market": "US",
            "invalid_market": "ZZ",
        },
        "artists": {
            "search_query": "Taylor Swift",
            "type": "artist",
            "limit": 1,
        },
        "playlists": {
            "search_query": "workout",
            "type": "playlist",
            "limit": 10,
        },
        "users": {
            "public_user_id": "spotify",
            "market": "US",
        },
        "endpoints": {
            "albums": "/albums",
            "artists": "/search",
            "me": "/me",
            "devices": "/me/player/devices",
            "users": "/users",
        },
    }
)

API_CONFIG = MappingProxyType(
    {
        "base_url": "https://api.spotify.com/v1",
        "timeout_ms": 5000,
        "default_limit": 20,
    }
)

ERROR_CODES = MappingProxyType(
    {
        "bad_request": 400,
        "unauthorized": 401,
        "forbidden": 403,
        "not_found": 404,
        "too_many_requests": 429,
        "server_error": 500,
    }
)

VALIDATIONS = MappingProxyType(
    {
        "content_type_json": "application/json",
        "max_response_time_ms": 1500,
        "min_response_time_ms": 100,
    }
)
