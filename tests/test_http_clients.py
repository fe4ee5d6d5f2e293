"""Tests for the HTTP meal API adapter."""

import asyncio
import json
from collections.abc import Callable
from datetime import date

import httpx

from meal_diary.adapters.meal_api_client import HttpxMealApiClient


def _client(
    handler: Callable[[httpx.Request], httpx.Response],
) -> HttpxMealApiClient:
    transport = httpx.MockTransport(handler)
    return HttpxMealApiClient(
        base_url="http://backend.test",
        http_client=httpx.AsyncClient(transport=transport),
    )


def test_list_recent_uses_trailing_slash_and_limit() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/v1/meals/"
        assert request.url.params["limit"] == "1000"
        return httpx.Response(200, json=[])

    assert asyncio.run(_client(handler).list_recent(1000)) == []


def test_list_range_sends_iso_dates() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/meals"
        assert dict(request.url.params) == {
            "start_date": "2026-09-28",
            "end_date": "2026-11-01",
        }
        return httpx.Response(200, json=[{"id": 1}])

    result = asyncio.run(
        _client(handler).list_range(date(2026, 9, 28), date(2026, 11, 1))
    )

    assert result == [{"id": 1}]


def test_delete_and_duplicate_paths() -> None:
    seen: list[tuple[str, str, bytes]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, request.content))
        if request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(200, json={"id": 8})

    client = _client(handler)
    asyncio.run(client.delete(3))
    copied = asyncio.run(
        client.duplicate(3, {"new_eaten_at": "2026-10-20T08:00:00+00:00"})
    )

    assert seen[0][:2] == ("DELETE", "/v1/meals/3")
    assert seen[1][:2] == ("POST", "/v1/meals/3/duplicate")
    assert json.loads(seen[1][2].decode()) == {
        "new_eaten_at": "2026-10-20T08:00:00+00:00"
    }
    assert copied == {"id": 8}


def test_create_client_strips_trailing_slash() -> None:
    client = HttpxMealApiClient.create_client("http://backend.test/", timeout=5)

    assert client.base_url == "http://backend.test"
    assert client.timeout == 5
    asyncio.run(client.close())
