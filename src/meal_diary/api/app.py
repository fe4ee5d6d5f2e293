"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import date, datetime
from zoneinfo import ZoneInfo

from fastapi import FastAPI, Query, Request, status
from fastapi.responses import JSONResponse

from meal_diary.api.models import (
    DuplicateRequest,
    FoodItemRequest,
    ManualItemRequest,
    MealUpdateRequest,
    RecipeRequest,
    SubmitMessageRequest,
)
from meal_diary.app_logging import configure_logging
from meal_diary.containers import AppContainer
from meal_diary.domain.conversation import ComposerDraft, ConversationMessage
from meal_diary.domain.errors import (
    AnalysisFailed,
    ConversationNotFound,
    FetchFailed,
    MealDiaryError,
    MessageNotFound,
    PersistFailed,
    RateLimited,
    ValidationFailed,
)
from meal_diary.domain.meals import MealRecord
from meal_diary.services.conversation import ConversationLog, format_analysis_text
from meal_diary.services.recipes import INGREDIENTS

_ERROR_STATUS: dict[type[MealDiaryError], int] = {
    ValidationFailed: status.HTTP_400_BAD_REQUEST,
    MessageNotFound: status.HTTP_404_NOT_FOUND,
    ConversationNotFound: status.HTTP_404_NOT_FOUND,
    RateLimited: status.HTTP_429_TOO_MANY_REQUESTS,
    AnalysisFailed: status.HTTP_502_BAD_GATEWAY,
    PersistFailed: status.HTTP_502_BAD_GATEWAY,
    FetchFailed: status.HTTP_502_BAD_GATEWAY,
}


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(MealDiaryError)
    async def meal_diary_error(request: Request, exc: MealDiaryError) -> JSONResponse:
        status_code = _ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        content: dict[str, object] = {"detail": str(exc)}
        headers = None
        if isinstance(exc, RateLimited):
            content["retry_after_seconds"] = exc.cooldown_seconds
            headers = {"Retry-After": str(exc.cooldown_seconds)}
        return JSONResponse(status_code=status_code, content=content, headers=headers)

    def conversation(request: Request, conversation_id: str) -> ConversationLog:
        state_container: AppContainer = request.app.state.container
        return state_container.conversations.find(conversation_id)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/conversations/{conversation_id}/messages")
    async def list_messages(conversation_id: str, request: Request) -> dict[str, object]:
        """Return the conversation log."""
        log = conversation(request, conversation_id)
        return {"messages": [_message_payload(log, message) for message in log.messages]}

    @app.post("/conversations/{conversation_id}/messages")
    async def submit_message(
        conversation_id: str, body: SubmitMessageRequest, request: Request
    ) -> dict[str, object]:
        """Append a user message, analyzing it when auto-analysis is enabled."""
        state_container: AppContainer = request.app.state.container
        log = state_container.conversations.get(conversation_id)
        hint = body.meal_type_hint or state_container.settings.default_meal_type_hint
        message = log.submit_utterance(body.text, hint)
        if state_container.settings.auto_analyze:
            analyzed = await log.request_analysis(message.id)
            return _message_response(log, analyzed)
        return _message_response(log, message)

    @app.post("/conversations/{conversation_id}/messages/{message_id}/analyze")
    async def analyze_message(
        conversation_id: str, message_id: str, request: Request
    ) -> dict[str, object]:
        """Analyze a local message."""
        log = conversation(request, conversation_id)
        return _message_response(log, await log.request_analysis(message_id))

    @app.post("/conversations/{conversation_id}/messages/{message_id}/confirm")
    async def confirm_message(
        conversation_id: str, message_id: str, request: Request
    ) -> dict[str, object]:
        """Save the message's pending meal."""
        log = conversation(request, conversation_id)
        return _message_response(log, await log.confirm_and_save(message_id))

    @app.post("/conversations/{conversation_id}/messages/{message_id}/retry")
    async def retry_message(
        conversation_id: str, message_id: str, request: Request
    ) -> dict[str, object]:
        """Remove a message and return its text for editing."""
        log = conversation(request, conversation_id)
        draft: ComposerDraft = log.retry(message_id)
        return {"draft": asdict(draft)}

    @app.post("/conversations/{conversation_id}/messages/{message_id}/cancel")
    async def cancel_message(
        conversation_id: str, message_id: str, request: Request
    ) -> dict[str, object]:
        """Discard the message's pending meal."""
        log = conversation(request, conversation_id)
        return _message_response(log, log.cancel(message_id))

    @app.post("/conversations/{conversation_id}/messages/{message_id}/items")
    async def add_item(
        conversation_id: str,
        message_id: str,
        body: FoodItemRequest,
        request: Request,
    ) -> dict[str, object]:
        """Add a fully specified item."""
        log = conversation(request, conversation_id)
        return _message_response(log, log.add_item(message_id, body.to_domain()))

    @app.post("/conversations/{conversation_id}/messages/{message_id}/items/manual")
    async def add_manual_item(
        conversation_id: str,
        message_id: str,
        body: ManualItemRequest,
        request: Request,
    ) -> dict[str, object]:
        """Add an item by name, estimating nutrition when kcal is missing."""
        log = conversation(request, conversation_id)
        updated = await log.add_manual_item(message_id, body.name, body.kcal)
        return _message_response(log, updated)

    @app.delete("/conversations/{conversation_id}/messages/{message_id}/items/{index}")
    async def remove_item(
        conversation_id: str, message_id: str, index: int, request: Request
    ) -> dict[str, object]:
        """Remove an item by position."""
        log = conversation(request, conversation_id)
        return _message_response(log, log.remove_item(message_id, index))

    @app.post(
        "/conversations/{conversation_id}/messages/{message_id}"
        "/suggestions/{index}/accept"
    )
    async def accept_suggestion(
        conversation_id: str, message_id: str, index: int, request: Request
    ) -> dict[str, object]:
        """Move a suggestion into the meal."""
        log = conversation(request, conversation_id)
        return _message_response(log, log.accept_suggestion(message_id, index))

    @app.patch("/conversations/{conversation_id}/messages/{message_id}/meal")
    async def update_meal(
        conversation_id: str,
        message_id: str,
        body: MealUpdateRequest,
        request: Request,
    ) -> dict[str, object]:
        """Change meal type and/or eaten-at time."""
        log = conversation(request, conversation_id)
        message = log.get(message_id)
        if body.meal_type is not None:
            message = log.change_meal_type(message_id, body.meal_type)
        if body.eaten_at is not None:
            message = log.change_eaten_at(message_id, body.eaten_at)
        return _message_response(log, message)

    @app.get("/meals")
    async def list_meals(request: Request, limit: int = 1000) -> dict[str, object]:
        """Return recent meals."""
        state_container: AppContainer = request.app.state.container
        meals = await state_container.history_service.recent(limit)
        return {"meals": [_meal_payload(meal) for meal in meals]}

    @app.delete("/meals/{meal_id}")
    async def delete_meal(meal_id: str, request: Request) -> dict[str, str]:
        """Delete a meal."""
        state_container: AppContainer = request.app.state.container
        await state_container.history_service.delete(meal_id)
        return {"status": "ok"}

    @app.post("/meals/{meal_id}/duplicate")
    async def duplicate_meal(
        meal_id: str, body: DuplicateRequest, request: Request
    ) -> dict[str, object]:
        """Copy a meal to another day."""
        state_container: AppContainer = request.app.state.container
        record = await state_container.history_service.duplicate_to_day(
            meal_id, body.day
        )
        return {"meal": _meal_payload(record)}

    @app.get("/dashboard/day")
    async def dashboard_day(
        request: Request, day: date | None = Query(default=None, alias="date")
    ) -> dict[str, object]:
        """Return meals and totals for a day."""
        state_container: AppContainer = request.app.state.container
        resolved = day or _today(state_container)
        summary = await state_container.stats_service.get_day(resolved)
        payload = asdict(summary)
        payload["meals"] = [_meal_payload(meal) for meal in summary.meals]
        return payload

    @app.get("/dashboard/week")
    async def dashboard_week(
        request: Request, day: date | None = Query(default=None, alias="date")
    ) -> dict[str, object]:
        """Return the weekly calorie and macro series."""
        state_container: AppContainer = request.app.state.container
        points = await state_container.stats_service.get_week(
            day or _today(state_container)
        )
        return {"points": [asdict(point) for point in points]}

    @app.get("/dashboard/month")
    async def dashboard_month(
        request: Request, day: date | None = Query(default=None, alias="date")
    ) -> dict[str, object]:
        """Return the monthly calorie and macro series by week."""
        state_container: AppContainer = request.app.state.container
        points = await state_container.stats_service.get_month(
            day or _today(state_container)
        )
        return {"points": [asdict(point) for point in points]}

    @app.get("/recipes/ingredients")
    async def recipe_ingredients() -> dict[str, object]:
        """Return selectable ingredients."""
        return {"ingredients": list(INGREDIENTS)}

    @app.post("/recipes")
    async def create_recipe(body: RecipeRequest, request: Request) -> dict[str, object]:
        """Generate a recipe ticket."""
        state_container: AppContainer = request.app.state.container
        ticket = state_container.recipe_service.generate(
            body.ingredients, body.preference
        )
        payload = asdict(ticket)
        payload["text"] = ticket.render()
        return payload

    return app


def _today(container: AppContainer) -> date:
    return datetime.now(tz=ZoneInfo(container.settings.timezone)).date()


def _message_payload(
    log: ConversationLog, message: ConversationMessage
) -> dict[str, object]:
    payload = asdict(message)
    payload["busy"] = log.is_busy(message.id)
    if message.pending_meal is not None:
        payload["summary_text"] = format_analysis_text(message.pending_meal)
    return payload


def _message_response(
    log: ConversationLog, message: ConversationMessage | None
) -> dict[str, object]:
    if message is None:
        return {"message": None}
    return {"message": _message_payload(log, message)}


def _meal_payload(meal: MealRecord) -> dict[str, object]:
    return asdict(meal)
