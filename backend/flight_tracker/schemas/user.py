import enum
import uuid
from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field


class WeightUnit(str, enum.Enum):
    KILOGRAMS = "kg"
    POUNDS = "lbs"


class NotificationPreferences(BaseModel):
    """Thresholds are percentages of the entry's initial price."""

    enable_price_drop_alerts: bool = True
    enable_price_increase_alerts: bool = False
    price_drop_threshold: float = 10.0
    price_increase_threshold: float = 20.0
    enable_departure_reminders: bool = True
    reminder_hours_before: float = 24.0


class LuggagePreference(BaseModel):
    carry_on_bags: int = 1
    checked_bags: int = 1
    weight_unit: WeightUnit = WeightUnit.KILOGRAMS


class UserProfile(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    username: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    preferred_currency: str = "USD"
    preferred_airports: List[str] = Field(default_factory=list)  # IATA codes
    notification_preferences: NotificationPreferences = Field(
        default_factory=NotificationPreferences
    )
    luggage_preference: LuggagePreference = Field(default_factory=LuggagePreference)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_login: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def initials(self) -> str:
        return f"{self.first_name[:1]}{self.last_name[:1]}".upper()

    @classmethod
    def default(cls, currency: str = "USD") -> "UserProfile":
        """Empty profile used before sign-up or when stored state is unusable."""
        return cls(preferred_currency=currency)
