"""Meal backend HTTP API client."""

from dataclasses import dataclass
from datetime import date
from typing import Protocol

import httpx


class MealApiClient(Protocol):
    """Interface for the meal backend REST API."""

    async def analyze(self, payload: dict[str, object]) -> dict[str, object]:
        """Analyze a natural-language meal description."""

    async def create(self, payload: dict[str, object]) -> dict[str, object]:
        """Persist a meal and return the acknowledgment."""

    async def list_recent(self, limit: int) -> list[dict[str, object]]:
        """Return the most recent meals."""

    async def list_range(
        self, start_date: date, end_date: date
    ) -> list[dict[str, object]]:
        """Return meals eaten between two dates, inclusive."""

    async def delete(self, meal_id: int | str) -> None:
        """Delete a meal."""

    async def duplicate(
        self, meal_id: int | str, payload: dict[str, object]
    ) -> dict[str, object]:
        """Copy a meal and return the new record."""


@dataclass
class HttpxMealApiClient(MealApiClient):
    """HTTPX-backed meal backend client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 15

    @classmethod
    def create_client(
        cls, base_url: str, timeout: float = 15
    ) -> "HttpxMealApiClient":
        """Create a meal API client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def analyze(self, payload: dict[str, object]) -> dict[str, object]:
        """Call ``POST /v1/meals/analyze``."""
        response = await self.http_client.post(
            f"{self.base_url}/v1/meals/analyze", json=payload, timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    async def create(self, payload: dict[str, object]) -> dict[str, object]:
        """Call ``POST /v1/meals/create``."""
        response = await self.http_client.post(
            f"{self.base_url}/v1/meals/create", json=payload, timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    async def list_recent(self, limit: int) -> list[dict[str, object]]:
        """Call ``GET /v1/meals/?limit=N``."""
        response = await self.http_client.get(
            f"{self.base_url}/v1/meals/",
            params={"limit": limit},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def list_range(
        self, start_date: date, end_date: date
    ) -> list[dict[str, object]]:
        """Call ``GET /v1/meals?start_date=&end_date=``."""
        response = await self.http_client.get(
            f"{self.base_url}/v1/meals",
            params={
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def delete(self, meal_id: int | str) -> None:
        """Call ``DELETE /v1/meals/{id}``."""
        response = await self.http_client.delete(
            f"{self.base_url}/v1/meals/{meal_id}", timeout=self.timeout
        )
        response.raise_for_status()

    async def duplicate(
        self, meal_id: int | str, payload: dict[str, object]
    ) -> dict[str, object]:
        """Call ``POST /v1/meals/{id}/duplicate``."""
        response = await self.http_client.post(
            f"{self.base_url}/v1/meals/{meal_id}/duplicate",
            json=payload,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
