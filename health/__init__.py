from .store import HealthEntryStore
from .form import HealthEntryForm
from .stats import summary_cards, average, today_entry, last_7_days

__all__ = [
    "HealthEntryStore", "HealthEntryForm",
    "summary_cards", "average", "today_entry", "last_7_days",
]
