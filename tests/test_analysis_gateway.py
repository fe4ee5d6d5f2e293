"""Tests for the analysis gateway error classification and payloads."""

import asyncio
import json
from collections.abc import Callable
from datetime import date

import httpx
import pytest

from meal_diary.adapters.meal_api_client import HttpxMealApiClient
from meal_diary.domain.errors import (
    AnalysisFailed,
    FetchFailed,
    PersistFailed,
    RateLimited,
)
from meal_diary.domain.meals import MacroTotals, MealType, PendingMeal
from meal_diary.services.analysis import AnalysisGateway
from tests.conftest import EGG_ANALYSIS, FIXED_NOW, meal_record


def _gateway(handler: Callable[[httpx.Request], httpx.Response]) -> AnalysisGateway:
    client = HttpxMealApiClient(
        base_url="http://backend.test",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return AnalysisGateway(
        client=client, user_id=7, persona="friendly", rate_limit_cooldown_seconds=30
    )


def test_analyze_sends_request_and_parses_result() -> None:
    seen: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/v1/meals/analyze"
        seen.append(json.loads(request.content.decode()))
        return httpx.Response(200, json=EGG_ANALYSIS)

    result = asyncio.run(
        _gateway(handler).analyze("에그 스크램블", FIXED_NOW, MealType.BREAKFAST)
    )

    assert seen[0] == {
        "text": "에그 스크램블",
        "client_local_time": FIXED_NOW.isoformat(),
        "meal_type_hint": "breakfast",
        "persona": "friendly",
    }
    assert result.meal_type is MealType.BREAKFAST
    assert result.total_kcal == 220
    assert result.food_items[0].macros == MacroTotals(carbs=2, protein=14, fat=16)
    assert result.suggestions[0].name == "토스트"
    assert result.message == "A protein-rich breakfast."


def test_analyze_omits_missing_hint() -> None:
    seen: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content.decode()))
        return httpx.Response(200, json={"meal_type": "snack", "food_items": []})

    result = asyncio.run(_gateway(handler).analyze("apple", FIXED_NOW))

    assert "meal_type_hint" not in seen[0]
    assert result.suggestions == []
    assert result.macros is None


def test_analyze_rate_limited_on_503() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"detail": "busy"})

    with pytest.raises(RateLimited) as excinfo:
        asyncio.run(_gateway(handler).analyze("apple", FIXED_NOW))

    assert excinfo.value.cooldown_seconds == 30


@pytest.mark.parametrize("status_code", [400, 429, 500, 502])
def test_analyze_other_statuses_fail_generically(status_code: int) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code)

    with pytest.raises(AnalysisFailed):
        asyncio.run(_gateway(handler).analyze("apple", FIXED_NOW))


def test_analyze_transport_error_fails_generically() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AnalysisFailed):
        asyncio.run(_gateway(handler).analyze("apple", FIXED_NOW))


def test_analyze_malformed_body_fails_generically() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"food_items": [{"kcal": -10}]})

    with pytest.raises(AnalysisFailed):
        asyncio.run(_gateway(handler).analyze("apple", FIXED_NOW))


def test_analyze_non_json_body_fails_generically() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>oops</html>")

    with pytest.raises(AnalysisFailed):
        asyncio.run(_gateway(handler).analyze("apple", FIXED_NOW))


def test_create_renames_items_and_sends_empty_meal() -> None:
    seen: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/meals/create"
        seen.append(json.loads(request.content.decode()))
        return httpx.Response(
            201,
            json={"id": 5, "created_at": "2026-10-19T08:31:00Z", "message": "ok"},
        )

    meal = PendingMeal(
        meal_type=MealType.SNACK,
        eaten_at=FIXED_NOW,
        raw_text="nothing really",
        food_items=[],
        total_kcal=0,
        ai_summary="Empty meal",
    )

    created = asyncio.run(_gateway(handler).create(meal))

    assert created.id == 5
    assert seen[0] == {
        "user_id": 7,
        "raw_text": "nothing really",
        "meal_type": "snack",
        "eaten_at": FIXED_NOW.isoformat(),
        "items": [],
        "total_kcal": 0,
        "macros": None,
        "ai_summary": "Empty meal",
    }


def test_create_failure_raises_persist_failed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    meal = PendingMeal(
        meal_type=MealType.SNACK,
        eaten_at=FIXED_NOW,
        raw_text="x",
        food_items=[],
        total_kcal=0,
        ai_summary="",
    )

    with pytest.raises(PersistFailed):
        asyncio.run(_gateway(handler).create(meal))


def test_list_range_reads_items_json() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/meals"
        assert request.url.params["start_date"] == "2026-10-13"
        assert request.url.params["end_date"] == "2026-10-19"
        return httpx.Response(
            200,
            json=[
                meal_record(
                    1,
                    "2026-10-14T12:00:00+00:00",
                    640,
                    {"carbs": 80, "protein": 20, "fat": 25},
                )
            ],
        )

    meals = asyncio.run(
        _gateway(handler).list_range(date(2026, 10, 13), date(2026, 10, 19))
    )

    assert meals[0].id == 1
    assert meals[0].items[0].name == "rice"
    assert meals[0].macros == MacroTotals(carbs=80, protein=20, fat=25)


def test_list_recent_failure_raises_fetch_failed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    with pytest.raises(FetchFailed):
        asyncio.run(_gateway(handler).list_recent(10))


def test_delete_failure_raises_persist_failed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    with pytest.raises(PersistFailed):
        asyncio.run(_gateway(handler).delete(3))
