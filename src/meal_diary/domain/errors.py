"""Error taxonomy for meal diary operations."""


class MealDiaryError(Exception):
    """Base class for all meal diary errors."""


class RateLimited(MealDiaryError):
    """The analysis backend reported capacity exhaustion."""

    def __init__(self, cooldown_seconds: int) -> None:
        super().__init__(f"Analysis is rate limited, retry in {cooldown_seconds}s")
        self.cooldown_seconds = cooldown_seconds


class AnalysisFailed(MealDiaryError):
    """Meal analysis did not succeed."""


class PersistFailed(MealDiaryError):
    """A write against the meal backend did not succeed."""


class FetchFailed(MealDiaryError):
    """Listing meals from the backend did not succeed."""


class ValidationFailed(MealDiaryError):
    """A local precondition was violated."""


class MessageNotFound(MealDiaryError):
    """No conversation message exists for the given id."""


class ConversationNotFound(MealDiaryError):
    """No conversation exists for the given id."""
