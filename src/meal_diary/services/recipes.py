"""Recipe ticket generation from pantry ingredients."""

from dataclasses import dataclass
from enum import StrEnum

from meal_diary.domain.errors import ValidationFailed

INGREDIENTS = (
    "닭가슴살",
    "계란",
    "두부",
    "고구마",
    "양파",
    "파",
    "마늘",
    "김치",
    "돼지고기",
    "소고기",
    "참치캔",
    "스팸",
    "감자",
    "버섯",
    "콩나물",
    "시금치",
    "오이",
    "당근",
    "양배추",
    "브로콜리",
    "토마토",
    "치즈",
    "우유",
    "요거트",
    "아몬드",
)

INSTRUCTIONS = (
    "Prep ingredients.",
    "Fry pan.",
    "Cook until done.",
    "Serve warm.",
)


class Preference(StrEnum):
    """Diet preference selectable for a recipe."""

    BALANCED = "Balanced"
    LOW_CARB = "Low Carb"
    HIGH_PROTEIN = "High Protein"
    VEGAN = "Vegan"


@dataclass(frozen=True)
class RecipeTicket:
    """Generated recipe."""

    number: int
    menu: str
    ingredients: list[str]
    preference: Preference
    instructions: list[str]

    def render(self) -> str:
        """Return the ticket as printable text."""
        ingredient_lines = "\n".join(f"- {name}" for name in self.ingredients)
        step_lines = "\n".join(
            f"{index}. {step}" for index, step in enumerate(self.instructions, start=1)
        )
        return (
            f"[RECIPE TICKET #{self.number}]\n\n"
            f"MENU: {self.menu}\n"
            f"PREFERENCE: {self.preference}\n\n"
            f"INGREDIENTS:\n{ingredient_lines}\n\n"
            f"INSTRUCTIONS:\n{step_lines}"
        )


@dataclass
class RecipeService:
    """Placeholder recipe generator; no backend call is made."""

    next_number: int = 992

    def generate(
        self, ingredients: list[str], preference: Preference = Preference.BALANCED
    ) -> RecipeTicket:
        """Build a recipe ticket from the selected ingredients."""
        selected = list(dict.fromkeys(name.strip() for name in ingredients))
        selected = [name for name in selected if name]
        if not selected:
            raise ValidationFailed("Select at least one ingredient")
        ticket = RecipeTicket(
            number=self.next_number,
            menu=f"Special {selected[0]} Stir-fry",
            ingredients=selected,
            preference=preference,
            instructions=list(INSTRUCTIONS),
        )
        self.next_number += 1
        return ticket
