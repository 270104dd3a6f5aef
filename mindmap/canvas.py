"""
Mind-map canvas: positioned, labeled nodes joined by directed connections.

All operations are synchronous in-memory mutations driven by pointer and
toolbar events. Connecting is a two-click modal gesture modelled as a small
state machine (see ConnectMode); dragging tracks a single active node.

Deleting a node also removes it from every other node's connection list.
Rendering still skips unknown targets, since update_node can set
connections directly.
"""

import enum
import random
import uuid
from dataclasses import dataclass
from html import escape
from typing import Callable, List, Optional, Tuple

from models.mind_map import DEFAULT_MIND_MAP_NAME, MindMapNode, NodeType

NODE_WIDTH = 192
NODE_HEIGHT = 80
# centre used for connection endpoints, relative to the node's top-left
NODE_CENTER_OFFSET = (100, 40)
CONTROL_POINT_OFFSET = 50

SPAWN_X = (100, 700)
SPAWN_Y = (100, 500)
NEW_NODE_TEXT = "New Idea"

EDITABLE_FIELDS = {"x", "y", "text", "type", "connections", "is_editing"}

NODE_FILL = {
    NodeType.PRIMARY: "#6366f1",
    NodeType.SECONDARY: "#0ea5e9",
    NodeType.ACCENT: "#f59e0b",
    NodeType.DEFAULT: "#e5e7eb",
}


class ConnectMode(enum.Enum):
    NORMAL = "normal"
    AWAITING_SOURCE = "awaiting-source"
    AWAITING_TARGET = "awaiting-target"


class NodeState(str, enum.Enum):
    IDLE = "idle"
    EDITING = "editing"
    DRAGGING = "dragging"
    ENDPOINT_SELECTED = "connection-endpoint-selected"


@dataclass(frozen=True)
class ConnectionPath:
    source: str
    target: str
    d: str

    @property
    def key(self):
        return f"{self.source}-{self.target}"


def _fmt(value: float) -> str:
    return f"{value:g}"


def central_idea() -> MindMapNode:
    return MindMapNode(id="1", x=400, y=300, text="Central Idea", type=NodeType.PRIMARY)


class MindMapCanvas:
    def __init__(self, nodes: Optional[List[MindMapNode]] = None, name: Optional[str] = None,
                 mind_map_id=None, description=None,
                 rng: Optional[random.Random] = None,
                 id_factory: Optional[Callable[[], str]] = None):
        self.nodes: List[MindMapNode] = list(nodes) if nodes is not None else [central_idea()]
        self.name = name
        self.mind_map_id = mind_map_id
        self.description = description
        self.rng = rng or random.Random()
        self.id_factory = id_factory or (lambda: uuid.uuid4().hex)

        self.connect_mode = ConnectMode.NORMAL
        self.pending_source: Optional[str] = None
        self.dragged_node: Optional[str] = None
        self.drag_offset: Tuple[float, float] = (0, 0)

    # ------------------------------------------------------------
    # Node collection
    # ------------------------------------------------------------
    def get_node(self, node_id) -> Optional[MindMapNode]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def _require(self, node_id) -> MindMapNode:
        node = self.get_node(node_id)
        if node is None:
            raise KeyError(f"Unknown node: {node_id}")
        return node

    def add_node(self, node_type=NodeType.DEFAULT) -> MindMapNode:
        node = MindMapNode(
            id=self.id_factory(),
            x=self.rng.uniform(*SPAWN_X),
            y=self.rng.uniform(*SPAWN_Y),
            text=NEW_NODE_TEXT,
            type=NodeType.coerce(node_type),
            connections=[],
            is_editing=True,
        )
        self.nodes.append(node)
        return node

    def update_node(self, node_id, **fields) -> Optional[MindMapNode]:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise TypeError(f"Cannot update node fields: {sorted(unknown)}")
        node = self.get_node(node_id)
        if node is None:
            return None
        if "type" in fields:
            fields["type"] = NodeType.coerce(fields["type"])
        if "connections" in fields:
            fields["connections"] = [str(t) for t in fields["connections"]]
        for name, value in fields.items():
            setattr(node, name, value)
        return node

    def delete_node(self, node_id) -> bool:
        before = len(self.nodes)
        self.nodes = [n for n in self.nodes if n.id != node_id]
        if len(self.nodes) == before:
            return False
        for node in self.nodes:
            node.connections = [t for t in node.connections if t != node_id]
        if self.dragged_node == node_id:
            self.pointer_up()
        if self.pending_source == node_id:
            self.pending_source = None
            self.connect_mode = ConnectMode.AWAITING_SOURCE
        return True

    # ------------------------------------------------------------
    # Connect gesture
    # ------------------------------------------------------------
    @property
    def is_connecting(self) -> bool:
        return self.connect_mode is not ConnectMode.NORMAL

    def toggle_connecting(self) -> ConnectMode:
        if self.is_connecting:
            self._end_connecting()
        else:
            self.connect_mode = ConnectMode.AWAITING_SOURCE
        return self.connect_mode

    def _end_connecting(self):
        self.connect_mode = ConnectMode.NORMAL
        self.pending_source = None

    def _connect_click(self, node_id) -> Optional[str]:
        """Returns the source id when a connection was created."""
        if self.connect_mode is ConnectMode.AWAITING_SOURCE:
            self.pending_source = node_id
            self.connect_mode = ConnectMode.AWAITING_TARGET
            return None

        source = self.pending_source
        if source == node_id:
            self._end_connecting()
            return None
        self._require(source).connections.append(node_id)
        self._end_connecting()
        return source

    # ------------------------------------------------------------
    # Pointer events (canvas coordinates)
    # ------------------------------------------------------------
    def pointer_down(self, node_id, px: float, py: float):
        node = self._require(node_id)
        if self.is_connecting:
            return self._connect_click(node_id)
        self.drag_offset = (px - node.x, py - node.y)
        self.dragged_node = node_id
        return None

    def pointer_move(self, px: float, py: float) -> Optional[MindMapNode]:
        if self.dragged_node is None:
            return None
        ox, oy = self.drag_offset
        # no upper clamp: nodes may leave the visible area to the right/bottom
        return self.update_node(self.dragged_node, x=max(0, px - ox), y=max(0, py - oy))

    def pointer_up(self) -> None:
        self.dragged_node = None
        self.drag_offset = (0, 0)

    pointer_leave = pointer_up

    def node_state(self, node_id) -> NodeState:
        node = self._require(node_id)
        if self.dragged_node == node_id:
            return NodeState.DRAGGING
        if self.is_connecting and self.pending_source == node_id:
            return NodeState.ENDPOINT_SELECTED
        if node.is_editing:
            return NodeState.EDITING
        return NodeState.IDLE

    # ------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------
    @staticmethod
    def node_center(node: MindMapNode) -> Tuple[float, float]:
        return node.x + NODE_CENTER_OFFSET[0], node.y + NODE_CENTER_OFFSET[1]

    def connection_path(self, from_id, to_id) -> Optional[ConnectionPath]:
        from_node = self.get_node(from_id)
        to_node = self.get_node(to_id)
        if from_node is None or to_node is None:
            return None

        fx, fy = self.node_center(from_node)
        tx, ty = self.node_center(to_node)
        mid_x = (fx + tx) / 2
        mid_y = (fy + ty) / 2
        d = (f"M {_fmt(fx)} {_fmt(fy)} "
             f"Q {_fmt(mid_x)} {_fmt(mid_y - CONTROL_POINT_OFFSET)} {_fmt(tx)} {_fmt(ty)}")
        return ConnectionPath(source=from_id, target=to_id, d=d)

    def render_connections(self) -> List[ConnectionPath]:
        paths = []
        for node in self.nodes:
            for target in node.connections:
                path = self.connection_path(node.id, target)
                if path is not None:
                    paths.append(path)
        return paths

    def to_svg(self, margin=40) -> str:
        width = max([800] + [int(n.x + NODE_WIDTH + margin) for n in self.nodes])
        height = max([600] + [int(n.y + NODE_HEIGHT + margin) for n in self.nodes])
        parts = [
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
            f'viewBox="0 0 {width} {height}">',
            '<defs><marker id="arrowhead" markerWidth="10" markerHeight="7" refX="9" '
            'refY="3.5" orient="auto"><polygon points="0 0, 10 3.5, 0 7" fill="#6b7280"/>'
            '</marker></defs>',
        ]
        for path in self.render_connections():
            parts.append(f'<path d="{path.d}" fill="none" stroke="#6b7280" stroke-width="2" '
                         f'marker-end="url(#arrowhead)"/>')
        for node in self.nodes:
            cx, cy = node.x + NODE_WIDTH / 2, node.y + NODE_HEIGHT / 2
            parts.append(
                f'<g class="node node-{node.type.value}">'
                f'<rect x="{_fmt(node.x)}" y="{_fmt(node.y)}" width="{NODE_WIDTH}" '
                f'height="{NODE_HEIGHT}" rx="12" fill="{NODE_FILL[node.type]}"/>'
                f'<text x="{_fmt(cx)}" y="{_fmt(cy)}" text-anchor="middle" '
                f'dominant-baseline="middle">{escape(node.text)}</text></g>'
            )
        parts.append("</svg>")
        return "\n".join(parts)

    def to_dict(self) -> dict:
        return {
            "id": self.mind_map_id,
            "name": self.name or DEFAULT_MIND_MAP_NAME,
            "nodes": [
                dict(n.to_record(), is_editing=n.is_editing, state=self.node_state(n.id).value)
                for n in self.nodes
            ],
            "connections": [
                {"source": p.source, "target": p.target, "d": p.d}
                for p in self.render_connections()
            ],
            "connect_mode": self.connect_mode.value,
            "pending_source": self.pending_source,
            "dragged_node": self.dragged_node,
        }

    # ------------------------------------------------------------
    # Persistence hand-off
    # ------------------------------------------------------------
    def save(self, on_save: Optional[Callable] = None):
        if on_save is None:
            return None
        return on_save(name=self.name or DEFAULT_MIND_MAP_NAME, nodes=list(self.nodes))
