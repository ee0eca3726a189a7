"""Display helpers for listing columns."""

from __future__ import annotations

from typing import Dict

from core.models import Item, ItemType

# One label per ItemType; containers show a tag instead of a byte count.
_SIZE_LABELS: Dict[ItemType, str] = {
    ItemType.FILE: "",
    ItemType.DIRECTORY: "<DIR>",
    ItemType.BUCKET: "<BUCKET>",
    ItemType.TABLE: "",
    ItemType.DATASET: "<DATASET>",
}


def human_size(n: int) -> str:
    """Convert bytes to human readable format."""
    size = float(max(0, n))
    for unit in ("B", "KB", "MB", "GB", "TB", "PB"):
        if size < 1024 or unit == "PB":
            return f"{size:.0f} {unit}" if size >= 10 or unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return "0 B"


def format_size(item: Item) -> str:
    if item.is_parent_link:
        return "UP-DIR"
    label = _SIZE_LABELS[item.type]
    return label or human_size(item.size_bytes)
