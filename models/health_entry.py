from dataclasses import dataclass, asdict
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

NUMERIC_FIELDS = (
    "calories_consumed", "calories_burned", "sleep_hours",
    "sleep_quality", "workout_minutes",
)

# fields the entry form submits; id/user_id/timestamps are owned by the database
PAYLOAD_FIELDS = (
    "entry_date", "calories_consumed", "calories_burned", "sleep_hours",
    "sleep_quality", "workout_minutes", "workout_type", "notes",
)


def round_half_up(value, digits=0):
    """Round like the browser's Math.round: halves always go up."""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def to_number(value, cast=float):
    """Missing, empty or unparseable values count as zero."""
    if value is None or value == "":
        return cast(0)
    try:
        return cast(value)
    except (TypeError, ValueError):
        try:
            return cast(float(value))
        except (TypeError, ValueError):
            return cast(0)


def parse_entry_date(value: str) -> date:
    return datetime.strptime(value[:10], "%Y-%m-%d").date()


@dataclass
class HealthEntry:
    id: Optional[str] = None
    user_id: Optional[str] = None
    entry_date: str = ""
    calories_consumed: int = 0
    calories_burned: int = 0
    sleep_hours: float = 0.0
    sleep_quality: int = 0
    workout_minutes: int = 0
    workout_type: str = ""
    notes: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_record(cls, record: dict) -> "HealthEntry":
        return cls(
            id=record.get("id"),
            user_id=record.get("user_id"),
            entry_date=record.get("entry_date") or "",
            calories_consumed=to_number(record.get("calories_consumed"), int),
            calories_burned=to_number(record.get("calories_burned"), int),
            sleep_hours=to_number(record.get("sleep_hours"), float),
            sleep_quality=to_number(record.get("sleep_quality"), int),
            workout_minutes=to_number(record.get("workout_minutes"), int),
            workout_type=record.get("workout_type") or "",
            notes=record.get("notes") or "",
            created_at=record.get("created_at"),
            updated_at=record.get("updated_at"),
        )

    def to_record(self) -> dict:
        return asdict(self)

    def payload(self) -> dict:
        return {name: getattr(self, name) for name in PAYLOAD_FIELDS}

    def entry_day(self) -> Optional[date]:
        try:
            return parse_entry_date(self.entry_date)
        except ValueError:
            return None


@dataclass
class WorkoutType:
    id: Optional[str] = None
    name: str = ""
    category: str = ""
    calories_per_minute: float = 0.0

    @classmethod
    def from_record(cls, record: dict) -> "WorkoutType":
        return cls(
            id=record.get("id"),
            name=record.get("name") or "",
            category=record.get("category") or "",
            calories_per_minute=to_number(record.get("calories_per_minute"), float),
        )

    def calories_for(self, minutes) -> int:
        return round_half_up(self.calories_per_minute * minutes)

    @property
    def label(self) -> str:
        return f"{self.name} ({self.category})"
