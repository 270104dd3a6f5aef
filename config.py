import os
import logging
from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "supersecretkey")
    SUPABASE_URL = os.getenv("SUPABASE_URL")
    SUPABASE_KEY = os.getenv("SUPABASE_KEY")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "60 per minute")
    AUTH_RATELIMIT = os.getenv("AUTH_RATELIMIT", "10 per minute")
    HEALTH_ENTRIES_TABLE = os.getenv("HEALTH_ENTRIES_TABLE", "health_entries")
    WORKOUT_TYPES_TABLE = os.getenv("WORKOUT_TYPES_TABLE", "workout_types")
    MIND_MAPS_TABLE = os.getenv("MIND_MAPS_TABLE", "mind_maps")
    CANVAS_DRAFTS_PER_USER = int(os.getenv("CANVAS_DRAFTS_PER_USER", 10))


def configure_logging(level=None):
    """Set up root logging once; later calls only adjust the level."""
    level = (level or Config.LOG_LEVEL).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    else:
        root.setLevel(level)
