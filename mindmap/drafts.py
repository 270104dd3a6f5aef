"""
Canvases open for editing, held per signed-in user between requests.

Each user keeps at most `limit` canvases; opening one more evicts the
least recently used. Unsaved canvases live under a "new-<hex>" key until
their first save re-keys them to the stored id.
"""

import threading
import uuid
from collections import OrderedDict
from typing import Dict, Optional

from config import Config
from .canvas import MindMapCanvas

NEW_KEY_PREFIX = "new-"


def new_draft_key() -> str:
    return f"{NEW_KEY_PREFIX}{uuid.uuid4().hex[:8]}"


def is_draft_key(key: str) -> bool:
    return key.startswith(NEW_KEY_PREFIX)


class CanvasDrafts:
    def __init__(self, limit: int = Config.CANVAS_DRAFTS_PER_USER):
        self.limit = max(1, limit)
        self._by_user: Dict[str, "OrderedDict[str, MindMapCanvas]"] = {}
        self._lock = threading.Lock()

    def get(self, user_id, key) -> Optional[MindMapCanvas]:
        with self._lock:
            canvases = self._by_user.get(user_id)
            if canvases is None or key not in canvases:
                return None
            canvases.move_to_end(key)
            return canvases[key]

    def put(self, user_id, key, canvas: MindMapCanvas) -> MindMapCanvas:
        with self._lock:
            canvases = self._by_user.setdefault(user_id, OrderedDict())
            canvases[key] = canvas
            canvases.move_to_end(key)
            while len(canvases) > self.limit:
                canvases.popitem(last=False)
            return canvas

    def rekey(self, user_id, old_key, new_key) -> None:
        with self._lock:
            canvases = self._by_user.get(user_id)
            if canvases is None or old_key not in canvases:
                return
            canvases[new_key] = canvases.pop(old_key)

    def discard(self, user_id, key) -> None:
        with self._lock:
            canvases = self._by_user.get(user_id)
            if canvases is not None:
                canvases.pop(key, None)
                if not canvases:
                    del self._by_user[user_id]

    def count(self, user_id) -> int:
        with self._lock:
            return len(self._by_user.get(user_id, ()))
