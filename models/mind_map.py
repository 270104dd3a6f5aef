import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

DEFAULT_MIND_MAP_NAME = "Untitled Mind Map"


class NodeType(str, enum.Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    ACCENT = "accent"
    DEFAULT = "default"

    @classmethod
    def coerce(cls, value) -> "NodeType":
        try:
            return cls(value)
        except ValueError:
            return cls.DEFAULT


@dataclass
class MindMapNode:
    id: str
    x: float
    y: float
    text: str
    type: NodeType = NodeType.DEFAULT
    connections: List[str] = field(default_factory=list)
    # UI-only, never persisted
    is_editing: bool = False

    @classmethod
    def from_record(cls, record: dict) -> "MindMapNode":
        return cls(
            id=str(record["id"]),
            x=float(record.get("x", 0)),
            y=float(record.get("y", 0)),
            text=record.get("text", ""),
            type=NodeType.coerce(record.get("type")),
            connections=[str(t) for t in record.get("connections") or []],
        )

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "text": self.text,
            "type": self.type.value,
            "connections": list(self.connections),
        }


def _parse_timestamp(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def prune_dangling(nodes: List[MindMapNode]) -> List[MindMapNode]:
    """Drop connection targets that do not name a node in the same map."""
    known = {n.id for n in nodes}
    for node in nodes:
        node.connections = [t for t in node.connections if t in known]
    return nodes


@dataclass
class MindMap:
    id: Optional[str] = None
    name: str = DEFAULT_MIND_MAP_NAME
    description: Optional[str] = None
    nodes: List[MindMapNode] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: dict) -> "MindMap":
        nodes = [MindMapNode.from_record(n) for n in record.get("nodes") or []]
        return cls(
            id=record.get("id"),
            name=record.get("name") or DEFAULT_MIND_MAP_NAME,
            description=record.get("description"),
            nodes=prune_dangling(nodes),
            created_at=_parse_timestamp(record.get("created_at")),
            updated_at=_parse_timestamp(record.get("updated_at")),
        )

    def to_record(self) -> dict:
        record = {
            "name": self.name,
            "description": self.description,
            "nodes": [n.to_record() for n in self.nodes],
        }
        if self.id is not None:
            record["id"] = self.id
        return record

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def connection_count(self) -> int:
        # per-source lists, so A->B and B->A count twice
        return sum(len(n.connections) for n in self.nodes)
