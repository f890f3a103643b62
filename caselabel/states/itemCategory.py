from __future__ import annotations
from enum import Enum


class ItemCategory(str, Enum):
    CASE      = "case"      #container: holds other items
    CABLE     = "cable"
    AUDIO     = "audio"
    LIGHTING  = "lighting"
    VIDEO     = "video"
    RIGGING   = "rigging"
    GENERAL   = "general"   #fallback when nothing matched


def to_category(value: ItemCategory | str | None) -> ItemCategory | None:
    """Coerce a feed value to ItemCategory. Unknown strings fall back to GENERAL, None stays None."""
    if value is None:
        return None
    if isinstance(value, ItemCategory):
        return value
    text = str(value).strip().lower()
    if not text:
        return None
    try:
        return ItemCategory(text)
    except ValueError:
        return ItemCategory.GENERAL
