from .canvas import MindMapCanvas, ConnectMode, ConnectionPath, NodeState
from .drafts import CanvasDrafts, new_draft_key, is_draft_key
from .repository import MindMapRepository
from .list_view import summarize, summarize_all

__all__ = [
    "MindMapCanvas", "ConnectMode", "ConnectionPath", "NodeState",
    "CanvasDrafts", "new_draft_key", "is_draft_key",
    "MindMapRepository", "summarize", "summarize_all",
]
