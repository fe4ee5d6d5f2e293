"""Chat conversation log driving meal analysis and saving."""

import itertools
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import uuid4

from meal_diary.domain.conversation import (
    ComposerDraft,
    ConversationMessage,
    MessageStatus,
    Role,
)
from meal_diary.domain.errors import (
    AnalysisFailed,
    ConversationNotFound,
    MessageNotFound,
    PersistFailed,
    RateLimited,
    ValidationFailed,
)
from meal_diary.domain.meals import FoodItem, MealType, PendingMeal
from meal_diary.services import editor
from meal_diary.services.analysis import AnalysisGateway

GREETING = (
    "Tell me what you ate in as much detail as you like.\n\n"
    'Example: "For breakfast I had a chicken salad and an apple."'
)

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ConversationLog:
    """Ordered message log with the analyze/confirm/retry state machine.

    Each network call captures the target message id and a fresh token. A
    response is applied only when the message still exists and still holds
    that token, so answers for retried or cancelled messages are dropped.
    """

    gateway: AnalysisGateway
    persona: str | None = None
    clock: Callable[[], datetime] = _utc_now
    messages: list[ConversationMessage] = field(default_factory=list)
    _tokens: dict[str, int] = field(default_factory=dict, init=False, repr=False)
    _busy: set[str] = field(default_factory=set, init=False, repr=False)
    _counter: Iterator[int] = field(
        default_factory=itertools.count, init=False, repr=False
    )

    def get(self, message_id: str) -> ConversationMessage:
        """Return the current snapshot of a message."""
        for message in self.messages:
            if message.id == message_id:
                return message
        raise MessageNotFound(message_id)

    def is_busy(self, message_id: str) -> bool:
        """Return whether a request for the message is in flight."""
        return message_id in self._busy

    def append_assistant(
        self, content: str, status: MessageStatus = MessageStatus.LOCAL
    ) -> ConversationMessage:
        """Append an assistant message."""
        return self._append(Role.ASSISTANT, content, status)

    def submit_utterance(
        self, text: str, meal_type_hint: MealType | None = None
    ) -> ConversationMessage:
        """Append a user message without analyzing it."""
        if not text.strip():
            raise ValidationFailed("Message text must not be empty")
        return self._append(
            Role.USER, text, MessageStatus.LOCAL, meal_type_hint=meal_type_hint
        )

    async def send(
        self, text: str, meal_type_hint: MealType | None = None
    ) -> ConversationMessage | None:
        """Submit a message and analyze it right away."""
        message = self.submit_utterance(text, meal_type_hint)
        return await self.request_analysis(message.id)

    async def request_analysis(self, message_id: str) -> ConversationMessage | None:
        """Analyze a local user message.

        Returns the updated message, or ``None`` when the response arrived
        after the message was discarded.
        """
        message = self.get(message_id)
        if message.role is not Role.USER:
            raise ValidationFailed("Only user messages can be analyzed")
        self._ensure_idle(message)
        if message.status is not MessageStatus.LOCAL:
            raise ValidationFailed(f"Message is already {message.status}")

        token = self._issue_token(message_id)
        self._replace(replace(message, status=MessageStatus.ANALYZING))
        self._busy.add(message_id)
        requested_at = self.clock()
        try:
            result = await self.gateway.analyze(
                message.content,
                requested_at,
                meal_type_hint=message.meal_type_hint,
                persona=self.persona,
            )
        except RateLimited as exc:
            return self._analysis_failed(
                message_id,
                token,
                "Too many requests right now. "
                f"Please wait {exc.cooldown_seconds} seconds and try again.",
            )
        except AnalysisFailed as exc:
            return self._analysis_failed(
                message_id, token, f"Something went wrong, please try again. ({exc})"
            )
        except Exception:
            if self._is_current(message_id, token):
                self._replace(replace(self.get(message_id), status=MessageStatus.LOCAL))
            _logger.exception("Unexpected error analyzing message %s", message_id)
            raise
        finally:
            if self._is_current(message_id, token):
                self._busy.discard(message_id)

        if not self._is_current(message_id, token):
            _logger.info("Dropping analysis for discarded message %s", message_id)
            return None
        pending = editor.pending_meal_from_analysis(
            result, raw_text=message.content, analyzed_at=requested_at
        )
        return self._replace(
            replace(
                self.get(message_id),
                status=MessageStatus.ANALYZED,
                pending_meal=pending,
            )
        )

    async def confirm_and_save(self, message_id: str) -> ConversationMessage | None:
        """Persist the message's pending meal.

        On failure the message stays analyzed and ``PersistFailed`` propagates
        so the caller can alert the user and offer saving again.
        """
        message = self._analyzed(message_id)
        pending = message.pending_meal
        token = self._issue_token(message_id)
        self._busy.add(message_id)
        try:
            created = await self.gateway.create(pending)
        except PersistFailed:
            _logger.warning("Saving meal for message %s failed", message_id)
            raise
        finally:
            if self._is_current(message_id, token):
                self._busy.discard(message_id)

        if not self._is_current(message_id, token):
            _logger.warning(
                "Meal %s saved after message %s was discarded", created.id, message_id
            )
            return None
        updated = self._replace(
            replace(
                self.get(message_id), status=MessageStatus.SAVED, meal_id=created.id
            )
        )
        self._append(
            Role.ASSISTANT,
            f"{format_analysis_text(pending)}\n\nSaved! Meal #{created.id}",
            MessageStatus.SAVED,
        )
        return updated

    def retry(self, message_id: str) -> ComposerDraft:
        """Remove a user message and hand its text back to the composer."""
        message = self.get(message_id)
        if message.role is not Role.USER:
            raise ValidationFailed("Only user messages can be retried")
        if message.status is MessageStatus.SAVED:
            raise ValidationFailed("Saved messages cannot be retried")
        self.messages = [entry for entry in self.messages if entry.id != message_id]
        self._tokens.pop(message_id, None)
        self._busy.discard(message_id)
        return ComposerDraft(text=message.content, meal_type_hint=message.meal_type_hint)

    def cancel(self, message_id: str) -> ConversationMessage:
        """Discard the pending meal and return the message to ``local``."""
        message = self._analyzed(message_id)
        self._issue_token(message_id)
        updated = self._replace(
            replace(message, status=MessageStatus.LOCAL, pending_meal=None)
        )
        self._append(
            Role.ASSISTANT,
            "Cancelled. Tell me again what you ate.",
            MessageStatus.LOCAL,
        )
        return updated

    def add_item(self, message_id: str, item: FoodItem) -> ConversationMessage:
        """Add an item to the message's pending meal."""
        return self._edit(message_id, lambda meal: editor.add_item(meal, item))

    def accept_suggestion(self, message_id: str, index: int) -> ConversationMessage:
        """Move a suggestion into the message's pending meal."""
        return self._edit(
            message_id, lambda meal: editor.accept_suggestion(meal, index)
        )

    def remove_item(self, message_id: str, index: int) -> ConversationMessage:
        """Remove an item from the message's pending meal."""
        return self._edit(message_id, lambda meal: editor.remove_item(meal, index))

    def change_meal_type(
        self, message_id: str, meal_type: MealType
    ) -> ConversationMessage:
        """Change the meal type of the pending meal."""
        return self._edit(
            message_id, lambda meal: editor.change_meal_type(meal, meal_type)
        )

    def change_eaten_at(
        self, message_id: str, eaten_at: datetime
    ) -> ConversationMessage:
        """Change when the pending meal was eaten."""
        return self._edit(
            message_id, lambda meal: editor.change_eaten_at(meal, eaten_at)
        )

    async def add_manual_item(
        self, message_id: str, name: str, kcal: float | None = None
    ) -> ConversationMessage | None:
        """Add a typed item, estimating nutrition through the gateway."""
        message = self._analyzed(message_id)
        token = self._issue_token(message_id)
        self._busy.add(message_id)
        try:
            updated_meal = await editor.add_manual_item(
                message.pending_meal,
                name,
                self.gateway,
                self.clock(),
                explicit_kcal=kcal,
            )
        finally:
            if self._is_current(message_id, token):
                self._busy.discard(message_id)

        if not self._is_current(message_id, token):
            _logger.info("Dropping manual item for discarded message %s", message_id)
            return None
        return self._replace(replace(self.get(message_id), pending_meal=updated_meal))

    def _edit(
        self, message_id: str, change: Callable[[PendingMeal], PendingMeal]
    ) -> ConversationMessage:
        message = self._analyzed(message_id)
        return self._replace(replace(message, pending_meal=change(message.pending_meal)))

    def _analyzed(self, message_id: str) -> ConversationMessage:
        message = self.get(message_id)
        self._ensure_idle(message)
        if message.status is not MessageStatus.ANALYZED or message.pending_meal is None:
            raise ValidationFailed("Message has no analyzed meal")
        return message

    def _ensure_idle(self, message: ConversationMessage) -> None:
        if message.id in self._busy:
            raise ValidationFailed("A request for this message is already in progress")

    def _analysis_failed(
        self, message_id: str, token: int, text: str
    ) -> ConversationMessage | None:
        if not self._is_current(message_id, token):
            _logger.info("Dropping analysis error for discarded message %s", message_id)
            return None
        reverted = self._replace(
            replace(self.get(message_id), status=MessageStatus.LOCAL)
        )
        self._append(Role.ASSISTANT, text, MessageStatus.FAILED)
        return reverted

    def _issue_token(self, message_id: str) -> int:
        token = next(self._counter)
        self._tokens[message_id] = token
        return token

    def _is_current(self, message_id: str, token: int) -> bool:
        return self._tokens.get(message_id) == token and any(
            message.id == message_id for message in self.messages
        )

    def _append(
        self,
        role: Role,
        content: str,
        status: MessageStatus,
        meal_type_hint: MealType | None = None,
    ) -> ConversationMessage:
        message = ConversationMessage(
            id=uuid4().hex,
            role=role,
            content=content,
            timestamp=self.clock(),
            status=status,
            meal_type_hint=meal_type_hint,
        )
        self.messages = [*self.messages, message]
        return message

    def _replace(self, message: ConversationMessage) -> ConversationMessage:
        self.messages = [
            message if entry.id == message.id else entry for entry in self.messages
        ]
        return message


@dataclass
class ConversationRegistry:
    """In-memory conversations keyed by id."""

    gateway: AnalysisGateway
    persona: str | None = None
    clock: Callable[[], datetime] = _utc_now
    _logs: dict[str, ConversationLog] = field(
        default_factory=dict, init=False, repr=False
    )

    def get(self, conversation_id: str) -> ConversationLog:
        """Return the conversation, starting it with a greeting if new."""
        log = self._logs.get(conversation_id)
        if log is None:
            log = ConversationLog(
                gateway=self.gateway, persona=self.persona, clock=self.clock
            )
            log.append_assistant(GREETING)
            self._logs[conversation_id] = log
        return log

    def find(self, conversation_id: str) -> ConversationLog:
        """Return an existing conversation without starting a new one."""
        log = self._logs.get(conversation_id)
        if log is None:
            raise ConversationNotFound(conversation_id)
        return log


def format_analysis_text(meal: PendingMeal) -> str:
    """Render a pending meal the way the assistant reports it."""
    lines = ["I found:"]
    for item in meal.food_items:
        lines.append(f"- {item.name} ({item.qty}): {_number(item.kcal)}kcal")
    total = f"Total: {_number(meal.total_kcal)}kcal"
    if meal.macros is not None:
        total += (
            f" (C:{_number(meal.macros.carbs)}g"
            f" P:{_number(meal.macros.protein)}g"
            f" F:{_number(meal.macros.fat)}g)"
        )
    lines.extend(["", total])
    if meal.ai_summary:
        lines.extend(["", meal.ai_summary])
    return "\n".join(lines)


def _number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)
