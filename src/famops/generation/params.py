"""
Famops - Generation request parameters.

Preferences and trip details come straight from the client, so parsing is
lenient: malformed values fall back to defaults instead of failing the
request. Both camelCase and snake_case keys are accepted.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _Params(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple, set)):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    return []


def _as_int(value: Any, default: int, minimum: int = 1) -> int:
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        return default
    return max(minimum, number)


class MealPreferences(_Params):
    """Household preferences for meal planning."""

    family_size: int = 4
    dietary_restrictions: list[str] = Field(default_factory=list)
    dislikes: list[str] = Field(default_factory=list)
    cooking_time: int = 45
    budget: str = "medium"

    @field_validator("family_size", mode="before")
    @classmethod
    def _family_size(cls, value: Any) -> int:
        return _as_int(value, 4)

    @field_validator("cooking_time", mode="before")
    @classmethod
    def _cooking_time(cls, value: Any) -> int:
        return _as_int(value, 45)

    @field_validator("dietary_restrictions", "dislikes", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> list[str]:
        return _as_str_list(value)

    @field_validator("budget", mode="before")
    @classmethod
    def _budget(cls, value: Any) -> str:
        return str(value).strip() if value else "medium"

    @property
    def is_vegetarian(self) -> bool:
        return any(r.lower() == "vegetarian" for r in self.dietary_restrictions)

    @classmethod
    def coerce(cls, value: "MealPreferences | dict[str, Any] | None") -> "MealPreferences":
        if isinstance(value, MealPreferences):
            return value
        return cls.model_validate(value if isinstance(value, dict) else {})


class Traveler(_Params):
    type: str = "adult"
    age: int = 30

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, value: Any) -> str:
        return str(value).strip() if value else "adult"

    @field_validator("age", mode="before")
    @classmethod
    def _age(cls, value: Any) -> int:
        return _as_int(value, 30, minimum=0)


class TripDetails(_Params):
    """Trip description used for packing list generation."""

    title: str | None = None
    destination: str = "Trip"
    start_date: str | None = None
    end_date: str | None = None
    travelers: list[Traveler] = Field(default_factory=lambda: [Traveler(), Traveler()])
    purpose: str = "vacation"
    items: list[str] = Field(default_factory=list)

    @field_validator("destination", mode="before")
    @classmethod
    def _destination(cls, value: Any) -> str:
        text = str(value).strip() if value is not None else ""
        return text or "Trip"

    @field_validator("purpose", mode="before")
    @classmethod
    def _purpose(cls, value: Any) -> str:
        text = str(value).strip() if value is not None else ""
        return text or "vacation"

    @field_validator("title", "start_date", "end_date", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str | None:
        text = str(value).strip() if value is not None else ""
        return text or None

    @field_validator("travelers", mode="before")
    @classmethod
    def _travelers(cls, value: Any) -> list[Any]:
        # Either a head count or a list of {type, age}
        if isinstance(value, list):
            travelers = [t for t in value if isinstance(t, dict)] or [{} for _ in value]
            return travelers or [{}]
        return [{} for _ in range(_as_int(value, 2))]

    @field_validator("items", mode="before")
    @classmethod
    def _items(cls, value: Any) -> list[str]:
        if isinstance(value, list):
            names = [v if isinstance(v, str) else v.get("name") if isinstance(v, dict) else None for v in value]
            return _as_str_list([n for n in names if n])
        return []

    @classmethod
    def coerce(cls, value: "TripDetails | dict[str, Any] | None") -> "TripDetails":
        if isinstance(value, TripDetails):
            return value
        data = dict(value) if isinstance(value, dict) else {}
        # Older clients send the purpose as tripType
        if "purpose" not in data and "tripType" in data:
            data["purpose"] = data["tripType"]
        return cls.model_validate(data)
