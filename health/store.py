"""
In-memory view of the user's health entries and workout types, kept in
step with Supabase.

Every remote failure is caught here, logged, and turned into a single
generic toast. In-memory state only changes after the remote call succeeds.
"""

import logging
from typing import List, Optional

from config import Config
from models.health_entry import HealthEntry, WorkoutType
from notifications import Toast, ToastQueue, error_toast

logger = logging.getLogger(__name__)

LOAD_FAILED = "Failed to load health data. Please try again."
SAVE_FAILED = "Failed to save health entry. Please try again."
DELETE_FAILED = "Failed to delete health entry. Please try again."


class HealthEntryStore:
    def __init__(self, data_service, notifications: ToastQueue,
                 entries_table: str = Config.HEALTH_ENTRIES_TABLE,
                 workout_types_table: str = Config.WORKOUT_TYPES_TABLE):
        self.data_service = data_service
        self.notifications = notifications
        self.entries_table = entries_table
        self.workout_types_table = workout_types_table
        self.entries: List[HealthEntry] = []
        self.workout_types: List[WorkoutType] = []

    # ------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------
    def get(self, entry_id) -> Optional[HealthEntry]:
        return next((e for e in self.entries if e.id == entry_id), None)

    def find_workout_type(self, name) -> Optional[WorkoutType]:
        if not name:
            return None
        return next((w for w in self.workout_types if w.name == name), None)

    def recent(self, limit=7) -> List[HealthEntry]:
        return self.entries[:limit]

    # ------------------------------------------------------------
    # Remote operations
    # ------------------------------------------------------------
    def load(self) -> bool:
        try:
            entry_rows = self.data_service.select(self.entries_table, "entry_date", ascending=False)
            workout_rows = self.data_service.select(self.workout_types_table, "name", ascending=True)
        except Exception as e:
            logger.error("Error loading data: %s", e)
            self.notifications.push(error_toast(LOAD_FAILED))
            return False

        self.entries = [HealthEntry.from_record(r) for r in entry_rows]
        self.workout_types = [WorkoutType.from_record(r) for r in workout_rows]
        return True

    def save(self, entry_data: dict, entry_id=None) -> Optional[HealthEntry]:
        """Create an entry, or update the one named by entry_id."""
        try:
            user = self.data_service.get_user()
            if not user:
                self.notifications.push(Toast(
                    title="Authentication Required",
                    description="Please log in to save health entries.",
                    destructive=True,
                ))
                return None

            data = dict(entry_data, user_id=user["id"])

            if entry_id is not None:
                record = self.data_service.update(self.entries_table, entry_id, data)
                saved = HealthEntry.from_record(record)
                self.entries = [saved if e.id == entry_id else e for e in self.entries]
                self.notifications.push(Toast(
                    title="Entry Updated",
                    description="Your health entry has been updated successfully.",
                ))
            else:
                record = self.data_service.insert(self.entries_table, data)
                saved = HealthEntry.from_record(record)
                self.entries = [saved] + self.entries
                self.notifications.push(Toast(
                    title="Entry Created",
                    description="Your health entry has been created successfully.",
                ))
            return saved
        except Exception as e:
            logger.error("Error saving entry: %s", e)
            self.notifications.push(error_toast(SAVE_FAILED))
            return None

    def delete(self, entry_id) -> bool:
        try:
            self.data_service.delete(self.entries_table, entry_id)
        except Exception as e:
            logger.error("Error deleting entry: %s", e)
            self.notifications.push(error_toast(DELETE_FAILED))
            return False

        self.entries = [e for e in self.entries if e.id != entry_id]
        self.notifications.push(Toast(
            title="Entry Deleted",
            description="Your health entry has been deleted.",
        ))
        return True
