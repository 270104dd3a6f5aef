from typing import Iterable, List

from models.mind_map import MindMap

PREVIEW_NODES = 4


def format_date(value) -> str:
    """'Mar 5, 2024' style, matching the list cards."""
    if value is None:
        return ""
    return f"{value:%b} {value.day}, {value.year}"


def preview(mind_map: MindMap) -> List[dict]:
    return [
        {
            "id": node.id,
            "type": node.type.value,
            "label": node.text[:3],
            "left": f"{10 + index * 15}%",
            "top": f"{20 + index * 20}%",
        }
        for index, node in enumerate(mind_map.nodes[:PREVIEW_NODES])
    ]


def summarize(mind_map: MindMap) -> dict:
    return {
        "id": mind_map.id,
        "name": mind_map.name,
        "description": mind_map.description,
        "node_count": mind_map.node_count,
        "connection_count": mind_map.connection_count,
        "preview": preview(mind_map),
        "updated": format_date(mind_map.updated_at),
    }


def summarize_all(mind_maps: Iterable[MindMap]) -> List[dict]:
    return [summarize(m) for m in mind_maps]
