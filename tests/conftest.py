"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import httpx
import pytest

from meal_diary.adapters.meal_api_client import MealApiClient
from meal_diary.config import Settings
from meal_diary.containers import AppContainer
from meal_diary.services.analysis import AnalysisGateway
from meal_diary.services.conversation import ConversationLog, ConversationRegistry
from meal_diary.services.history import MealHistoryService
from meal_diary.services.recipes import RecipeService
from meal_diary.services.stats import StatsService

FIXED_NOW = datetime(2026, 10, 19, 8, 30, tzinfo=UTC)

EGG_ANALYSIS: dict[str, object] = {
    "meal_type": "breakfast",
    "eaten_at": "2026-10-19T08:00:00+00:00",
    "total_kcal": 220,
    "macros": {"carbs": 2, "protein": 14, "fat": 16},
    "message": "A protein-rich breakfast.",
    "food_items": [
        {
            "name": "에그 스크램블",
            "qty": "1 plate",
            "kcal": 220,
            "macros": {"carbs": 2, "protein": 14, "fat": 16},
        }
    ],
    "suggestions": [
        {
            "name": "토스트",
            "qty": "1 slice",
            "kcal": 150,
            "macros": {"carbs": 28, "protein": 4, "fat": 2},
        }
    ],
}


def fixed_clock() -> datetime:
    return FIXED_NOW


def http_error(status_code: int, path: str = "/v1/meals/analyze") -> httpx.HTTPStatusError:
    """Build the error httpx raises for a non-2xx response."""
    request = httpx.Request("POST", f"http://backend.test{path}")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError(
        f"Server returned {status_code}", request=request, response=response
    )


@dataclass
class FakeMealApiClient(MealApiClient):
    """Fake meal backend recording every call."""

    analyze_responses: list[object] = field(default_factory=list)
    create_response: object = field(
        default_factory=lambda: {
            "id": 42,
            "created_at": "2026-10-19T08:31:00+00:00",
            "message": "saved",
        }
    )
    meals: list[dict[str, object]] = field(default_factory=list)
    duplicate_response: object = None
    delete_error: Exception | None = None
    honor_range: bool = False
    gate: asyncio.Event | None = None
    analyze_calls: list[dict[str, object]] = field(default_factory=list)
    create_calls: list[dict[str, object]] = field(default_factory=list)
    range_calls: list[tuple[date, date]] = field(default_factory=list)
    deleted: list[object] = field(default_factory=list)
    duplicate_calls: list[tuple[object, dict[str, object]]] = field(
        default_factory=list
    )

    async def analyze(self, payload: dict[str, object]) -> dict[str, object]:
        self.analyze_calls.append(payload)
        if self.gate is not None:
            await self.gate.wait()
        response = self.analyze_responses.pop(0) if self.analyze_responses else EGG_ANALYSIS
        if isinstance(response, Exception):
            raise response
        return response

    async def create(self, payload: dict[str, object]) -> dict[str, object]:
        self.create_calls.append(payload)
        if self.gate is not None:
            await self.gate.wait()
        if isinstance(self.create_response, Exception):
            raise self.create_response
        return self.create_response

    async def list_recent(self, limit: int) -> list[dict[str, object]]:
        return self.meals[:limit]

    async def list_range(
        self, start_date: date, end_date: date
    ) -> list[dict[str, object]]:
        self.range_calls.append((start_date, end_date))
        if self.honor_range:
            first, last = start_date.isoformat(), end_date.isoformat()
            return [
                meal for meal in self.meals if first <= str(meal["eaten_at"])[:10] <= last
            ]
        return list(self.meals)

    async def delete(self, meal_id: int | str) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        self.deleted.append(meal_id)

    async def duplicate(
        self, meal_id: int | str, payload: dict[str, object]
    ) -> dict[str, object]:
        self.duplicate_calls.append((meal_id, payload))
        if isinstance(self.duplicate_response, Exception):
            raise self.duplicate_response
        return self.duplicate_response or {
            "id": 99,
            "raw_text": "copied",
            "meal_type": "lunch",
            "eaten_at": payload["new_eaten_at"],
            "total_kcal": 500,
        }


def meal_record(
    meal_id: int,
    eaten_at: str,
    total_kcal: float,
    macros: dict[str, float] | None = None,
) -> dict[str, object]:
    """Build a backend meal record payload."""
    return {
        "id": meal_id,
        "user_id": 1,
        "raw_text": f"meal {meal_id}",
        "meal_type": "lunch",
        "eaten_at": eaten_at,
        "total_kcal": total_kcal,
        "macros": macros,
        "ai_summary": "ok",
        "items_json": [{"name": "rice", "qty": "1 bowl", "kcal": total_kcal}],
        "created_at": eaten_at,
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(
        meal_api_base_url="http://backend.test",
        rate_limit_cooldown_seconds=60,
        timezone="UTC",
    )


@pytest.fixture
def api_client() -> FakeMealApiClient:
    return FakeMealApiClient()


@pytest.fixture
def gateway(api_client: FakeMealApiClient) -> AnalysisGateway:
    return AnalysisGateway(
        client=api_client, user_id=1, persona="friendly", rate_limit_cooldown_seconds=60
    )


@pytest.fixture
def conversation_log(gateway: AnalysisGateway) -> ConversationLog:
    return ConversationLog(gateway=gateway, persona="friendly", clock=fixed_clock)


@pytest.fixture
def container(settings: Settings, gateway: AnalysisGateway) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        gateway=gateway,
        conversations=ConversationRegistry(
            gateway=gateway, persona=settings.persona, clock=fixed_clock
        ),
        history_service=MealHistoryService(gateway=gateway, timezone_name="UTC"),
        stats_service=StatsService(gateway=gateway, timezone_name="UTC"),
        recipe_service=RecipeService(),
        close_resources=close_resources,
    )
