# order_feed.py
from __future__ import annotations
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from caselabel.states.rentalOrder import RentalOrder
import caselabel.states.state_loader as state_loader

load_dotenv()

logger = logging.getLogger("CaseLabel.OrderFeed")
logger.setLevel(logging.INFO)

SAMPLE_ORDERS_PATH = Path(__file__).resolve().parent / "sample_orders.json"


def get_feed_config() -> Dict[str, Optional[str]]:
    """Feed settings from the environment (.env is loaded on import)."""
    return {
        "path": os.getenv("CASELABEL_ORDER_FEED"),
        # "normalized" | "odoo" | "currentrms"
        "format": os.getenv("CASELABEL_ORDER_FEED_FORMAT", "normalized"),
    }


def _read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _records_from_payload(payload: Any, fmt: str) -> List[Dict[str, Any]]:
    """
    Accepts a bare list or {"orders": [...]}. Odoo payloads are
    [{"order": {...}, "lines": [...]}, ...]; currentRMS is {"opportunities": [...]}.
    """
    if fmt == "odoo":
        entries = payload.get("orders", []) if isinstance(payload, dict) else payload
        return [state_loader.normalize_odoo_order(e.get("order", {}), e.get("lines", [])) for e in entries]
    if fmt == "currentrms":
        entries = payload.get("opportunities", []) if isinstance(payload, dict) else payload
        return [state_loader.normalize_currentrms_opportunity(o) for o in entries]
    if isinstance(payload, dict):
        return list(payload.get("orders", []))
    return list(payload or [])


def load_orders_from_file(path: str | Path, fmt: str = "normalized") -> List[RentalOrder]:
    payload = _read_json(Path(path))
    return state_loader.load_rental_orders(_records_from_payload(payload, fmt))


def load_sample_orders() -> List[RentalOrder]:
    return load_orders_from_file(SAMPLE_ORDERS_PATH)


def fetch_orders(path: Optional[str | Path] = None, fmt: Optional[str] = None) -> Dict[str, Any]:
    """
    Load orders from the configured feed file. Falls back to the bundled sample
    orders when nothing is configured, the file can't be read, or it is empty.

    Returns {"orders": [...], "using_sample_data": bool, "error": str | None}.
    """
    cfg = get_feed_config()
    path = path or cfg["path"]
    fmt = fmt or cfg["format"] or "normalized"

    if not path:
        return {"orders": load_sample_orders(), "using_sample_data": True, "error": None}

    try:
        orders = load_orders_from_file(path, fmt)
    except (OSError, ValueError, AttributeError, TypeError) as e:
        logger.error(f"[OrderFeed] Failed to load orders from {path}: {e}")
        return {
            "orders": load_sample_orders(),
            "using_sample_data": True,
            "error": "Failed to load orders from the feed. Showing sample data.",
        }

    if not orders:
        return {
            "orders": load_sample_orders(),
            "using_sample_data": True,
            "error": f"No orders found in {path}. Showing sample data.",
        }
    return {"orders": orders, "using_sample_data": False, "error": None}
