from .health_entry import HealthEntry, WorkoutType, round_half_up
from .mind_map import MindMap, MindMapNode, NodeType, DEFAULT_MIND_MAP_NAME

__all__ = [
    "HealthEntry", "WorkoutType", "round_half_up",
    "MindMap", "MindMapNode", "NodeType", "DEFAULT_MIND_MAP_NAME",
]
