"""
Server-side model of the add/edit entry form.

Calories burned is derived from the selected workout type and minutes:
whenever either changes and both are usable, the derived value replaces
whatever was typed into the calories-burned field. Clearing the workout
type clears the selection, so later minute changes derive nothing.
"""

from datetime import date
from typing import Dict, List, Optional, Set

from models.health_entry import HealthEntry, WorkoutType, PAYLOAD_FIELDS, to_number

SLEEP_QUALITY_LABELS = ["", "Poor", "Fair", "Good", "Very Good", "Excellent"]

INT_FIELDS = ("calories_consumed", "calories_burned", "sleep_quality", "workout_minutes")
FLOAT_FIELDS = ("sleep_hours",)
DERIVATION_TRIGGERS = ("workout_minutes", "workout_type")


class HealthEntryForm:
    def __init__(self, workout_types: List[WorkoutType], entry: Optional[HealthEntry] = None,
                 today: Optional[date] = None):
        self.workout_types = workout_types
        self.entry = entry
        today = today or date.today()
        self.data: Dict = {
            "entry_date": (entry and entry.entry_date) or today.isoformat(),
            "calories_consumed": (entry and entry.calories_consumed) or 0,
            "calories_burned": (entry and entry.calories_burned) or 0,
            "sleep_hours": (entry and entry.sleep_hours) or 0,
            "sleep_quality": (entry and entry.sleep_quality) or 3,
            "workout_minutes": (entry and entry.workout_minutes) or 0,
            "workout_type": (entry and entry.workout_type) or "",
            "notes": (entry and entry.notes) or "",
        }
        self.touched: Set[str] = set()
        self.selected_workout_type: Optional[WorkoutType] = None
        self._select_workout_type()

    @property
    def is_edit(self) -> bool:
        return self.entry is not None

    @property
    def title(self) -> str:
        return "Edit Health Entry" if self.is_edit else "Add Health Entry"

    def _select_workout_type(self):
        name = self.data["workout_type"]
        self.selected_workout_type = next(
            (w for w in self.workout_types if w.name == name), None) if name else None

    def _derive_calories_burned(self):
        minutes = self.data["workout_minutes"]
        if self.selected_workout_type and minutes > 0:
            self.data["calories_burned"] = self.selected_workout_type.calories_for(minutes)
            self.touched.add("calories_burned")

    def set_field(self, name: str, value) -> None:
        if name not in PAYLOAD_FIELDS:
            raise KeyError(name)
        if name in INT_FIELDS:
            value = int(to_number(value, float))
        elif name in FLOAT_FIELDS:
            value = to_number(value, float)
        elif value is None:
            value = ""

        changed = self.data.get(name) != value
        self.data[name] = value
        self.touched.add(name)
        if name == "workout_type":
            self._select_workout_type()
        if changed and name in DERIVATION_TRIGGERS:
            self._derive_calories_burned()

    def update(self, form: Dict) -> "HealthEntryForm":
        """Apply submitted fields in form order, as a user filling the form would."""
        for name in PAYLOAD_FIELDS:
            if name in form:
                self.set_field(name, form[name])
        return self

    def sleep_quality_label(self) -> str:
        value = self.data["sleep_quality"]
        if 0 <= value < len(SLEEP_QUALITY_LABELS):
            return SLEEP_QUALITY_LABELS[value]
        return ""

    def to_payload(self) -> Dict:
        return dict(self.data)

    def changes(self) -> Dict:
        """Only the fields that were set, plus a derived calories_burned."""
        return {name: self.data[name] for name in PAYLOAD_FIELDS if name in self.touched}
