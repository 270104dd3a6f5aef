import logging
from typing import List, Optional

from config import Config
from models.mind_map import DEFAULT_MIND_MAP_NAME, MindMap, MindMapNode
from notifications import Toast, ToastQueue, error_toast

logger = logging.getLogger(__name__)


class MindMapRepository:
    """Supabase-backed storage for mind maps (nodes kept as a JSON column)."""

    def __init__(self, data_service, notifications: ToastQueue,
                 table: str = Config.MIND_MAPS_TABLE):
        self.data_service = data_service
        self.notifications = notifications
        self.table = table

    def list(self) -> List[MindMap]:
        try:
            rows = self.data_service.select(self.table, "updated_at", ascending=False)
        except Exception as e:
            logger.error("Error loading mind maps: %s", e)
            self.notifications.push(error_toast("Failed to load mind maps. Please try again."))
            return []
        return [MindMap.from_record(r) for r in rows]

    def get(self, mind_map_id) -> Optional[MindMap]:
        return next((m for m in self.list() if str(m.id) == str(mind_map_id)), None)

    def save(self, name: Optional[str], nodes: List[MindMapNode], mind_map_id=None,
             description: Optional[str] = None) -> Optional[MindMap]:
        mind_map = MindMap(id=mind_map_id, name=name or DEFAULT_MIND_MAP_NAME,
                           description=description, nodes=nodes)
        try:
            user = self.data_service.get_user()
            if not user:
                self.notifications.push(Toast(
                    title="Authentication Required",
                    description="Please log in to save mind maps.",
                    destructive=True,
                ))
                return None

            record = dict(mind_map.to_record(), user_id=user["id"])
            if mind_map_id is not None:
                record.pop("id", None)
                stored = self.data_service.update(self.table, mind_map_id, record)
            else:
                stored = self.data_service.insert(self.table, record)
        except Exception as e:
            logger.error("Error saving mind map: %s", e)
            self.notifications.push(error_toast("Failed to save mind map. Please try again."))
            return None

        self.notifications.push(Toast(
            title="Mind Map Saved",
            description=f'"{mind_map.name}" has been saved.',
        ))
        return MindMap.from_record(stored)

    def delete(self, mind_map_id) -> bool:
        try:
            self.data_service.delete(self.table, mind_map_id)
        except Exception as e:
            logger.error("Error deleting mind map: %s", e)
            self.notifications.push(error_toast("Failed to delete mind map. Please try again."))
            return False
        self.notifications.push(Toast(title="Mind Map Deleted",
                                      description="Your mind map has been deleted."))
        return True
