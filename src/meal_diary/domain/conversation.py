"""Domain models for chat conversations."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from meal_diary.domain.meals import MealType, PendingMeal


class Role(StrEnum):
    """Author of a conversation message."""

    USER = "user"
    ASSISTANT = "assistant"


class MessageStatus(StrEnum):
    """Lifecycle state of a conversation message."""

    LOCAL = "local"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"
    SAVED = "saved"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversationMessage:
    """Single entry of a conversation log."""

    id: str
    role: Role
    content: str
    timestamp: datetime
    status: MessageStatus
    meal_type_hint: MealType | None = None
    pending_meal: PendingMeal | None = None
    meal_id: int | str | None = None


@dataclass(frozen=True)
class ComposerDraft:
    """Text handed back to the composer when a message is retried."""

    text: str
    meal_type_hint: MealType | None = None
