"""
Text-only category tagging for raw feed item names.

Pipeline:
  1. strip a bracketed rental-period date range out of the name
  2. case keywords (substring, first hit wins)
  3. word-boundary regexes in priority order: cable, audio, lighting, video, rigging
  4. otherwise general
"""
from __future__ import annotations
import re
from typing import List, Tuple

from caselabel.states.itemCategory import ItemCategory

# "(02/15/2025 10:00:00 AM - 02/20/2025 10:00:00 AM)"
_SLASH_DATE_RANGE = re.compile(r"\s*\(\d{1,2}/\d{1,2}/\d{2,4}.*?-.*?\d{1,2}/\d{1,2}/\d{2,4}.*?\)\s*")
# "(2025-02-15 10:00:00 - 2025-02-20 10:00:00)"
_ISO_DATE_RANGE = re.compile(r"\s*\(\d{4}-\d{2}-\d{2}.*?-.*?\d{4}-\d{2}-\d{2}.*?\)\s*")
_MULTI_SPACE = re.compile(r"\s{2,}")

CASE_KEYWORDS: List[str] = [
    "case", "flight case", "road case", "rack case", "peli", "pelican",
    "skb", "gator", "transport case", "trunk", "flightcase", "hard case",
    "rolling case", "utility case", "equipment case",
]

# order matters: first hit wins ("dmx" lands in cable before lighting).
# "projector" is deliberately not a video term; projectors classify as general.
_CATEGORY_PATTERNS: List[Tuple[ItemCategory, re.Pattern]] = [
    (ItemCategory.CABLE, re.compile(r"\b(cable|xlr|dmx|sdi|hdmi|powercon|cat[56])\b", re.IGNORECASE)),
    (ItemCategory.AUDIO, re.compile(r"\b(speaker|sub|amp|mixer|mic|monitor|iem|earphone|headphone|di box)\b", re.IGNORECASE)),
    (ItemCategory.LIGHTING, re.compile(r"\b(light|wash|spot|beam|par|strobe|hazer|haze|fog|dmx)\b", re.IGNORECASE)),
    (ItemCategory.VIDEO, re.compile(r"\b(screen|camera|lens|tripod|switcher|recorder)\b", re.IGNORECASE)),
    (ItemCategory.RIGGING, re.compile(r"\b(clamp|coupler|truss|stand|rigging|safety|sling)\b", re.IGNORECASE)),
]


def clean_item_name(raw_name: str | None) -> str:
    if not raw_name:
        return ""
    name = _SLASH_DATE_RANGE.sub(" ", str(raw_name))
    name = _ISO_DATE_RANGE.sub(" ", name)
    return _MULTI_SPACE.sub(" ", name).strip()


def classify(raw_name: str | None) -> ItemCategory:
    name = clean_item_name(raw_name)
    lower = name.lower()
    for keyword in CASE_KEYWORDS:
        if keyword in lower:
            return ItemCategory.CASE

    for category, pattern in _CATEGORY_PATTERNS:
        if pattern.search(name):
            return category
    return ItemCategory.GENERAL


def classify_item_name(raw_name: str | None) -> Tuple[str, ItemCategory]:
    """Return (clean display name, category) for a raw feed name."""
    return clean_item_name(raw_name), classify(raw_name)
