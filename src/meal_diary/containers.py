"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from meal_diary.adapters.meal_api_client import HttpxMealApiClient
from meal_diary.config import Settings
from meal_diary.services.analysis import AnalysisGateway
from meal_diary.services.conversation import ConversationRegistry
from meal_diary.services.history import MealHistoryService
from meal_diary.services.recipes import RecipeService
from meal_diary.services.stats import StatsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    gateway: AnalysisGateway
    conversations: ConversationRegistry
    history_service: MealHistoryService
    stats_service: StatsService
    recipe_service: RecipeService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    api_client = HttpxMealApiClient.create_client(
        base_url=resolved_settings.meal_api_base_url,
        timeout=resolved_settings.meal_api_timeout_seconds,
    )
    gateway = AnalysisGateway(
        client=api_client,
        user_id=resolved_settings.user_id,
        persona=resolved_settings.persona,
        rate_limit_cooldown_seconds=resolved_settings.rate_limit_cooldown_seconds,
    )
    conversations = ConversationRegistry(
        gateway=gateway, persona=resolved_settings.persona
    )
    history_service = MealHistoryService(
        gateway=gateway, timezone_name=resolved_settings.timezone
    )
    stats_service = StatsService(
        gateway=gateway, timezone_name=resolved_settings.timezone
    )

    async def close_resources() -> None:
        await api_client.close()

    return AppContainer(
        settings=resolved_settings,
        gateway=gateway,
        conversations=conversations,
        history_service=history_service,
        stats_service=stats_service,
        recipe_service=RecipeService(),
        close_resources=close_resources,
    )
