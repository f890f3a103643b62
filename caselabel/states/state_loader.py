# state_loader.py
from __future__ import annotations
from typing import Dict, List, Iterable, Optional, Any
import logging
import math
import re
from datetime import date
from pydantic import ValidationError

from caselabel.states.rentalOrder import RentalOrder, CaseItem, OrderStatus
from caselabel.preprocessing.category_classifier import classify, clean_item_name

logger = logging.getLogger("CaseLabel.StateLoader")
logger.setLevel(logging.INFO)

_HTML_TAG = re.compile(r"<[^>]*>")

ODOO_STATUS_MAP: Dict[str, OrderStatus] = {
    "confirmed": "confirmed",
    "pickup": "confirmed",
    "return": "in_progress",
    "returned": "returned",
}

CURRENTRMS_STATUS_MAP: Dict[int, OrderStatus] = {
    1: "confirmed",
    2: "confirmed",
    3: "in_progress",
    4: "returned",
}


# ---------- coercion helpers ----------
def _to_int(x: Any, default: int = 0) -> int:
    try:
        if x is None or (isinstance(x, float) and math.isnan(x)):
            return default
        return int(float(x))
    except (TypeError, ValueError):
        return default

def _to_float(x: Any, default: Optional[float] = None) -> Optional[float]:
    try:
        if x is None or (isinstance(x, float) and math.isnan(x)):
            return default
        return float(x)
    except (TypeError, ValueError):
        return default

def _to_str(x: Any, default: str = "") -> str:
    if x is None or (isinstance(x, float) and math.isnan(x)):
        return default
    return str(x)

def _date_part(x: Any, sep: str) -> str:
    return _to_str(x).split(sep)[0] if x else ""

def _many2one_label(x: Any) -> str:
    # odoo many2one fields come back as [id, "display name"] or False
    if isinstance(x, (list, tuple)) and len(x) > 1:
        return _to_str(x[1])
    return ""


# -------------------------
# 1) normalized record -> RentalOrder
# -------------------------
def load_case_item(rec: Dict[str, Any]) -> CaseItem:
    """
    Build a CaseItem from a normalized feed item. Items that arrive without a
    category are classified from their name; quantities below 1 become 1.
    """
    raw_name = _to_str(rec.get("name"), "Item")
    category = rec.get("category", rec.get("productCategory"))
    if not category:
        category = classify(raw_name)
    weight = _to_float(rec.get("weight"))
    serial = rec.get("serialNumber")
    return CaseItem(
        name=clean_item_name(raw_name) or raw_name,
        quantity=max(1, _to_int(rec.get("quantity"), 1)),
        serialNumber=_to_str(serial) if serial else None,
        weight=weight if weight is not None and weight >= 0 else None,
        category=category,
    )


def load_rental_order(rec: Dict[str, Any]) -> RentalOrder:
    """Validate one normalized feed record. Raises pydantic.ValidationError on bad input."""
    items = [load_case_item(i) for i in (rec.get("items") or [])]
    return RentalOrder(
        id=_to_str(rec.get("id")),
        orderRef=_to_str(rec.get("orderRef")),
        customerName=_to_str(rec.get("customerName")),
        jobName=_to_str(rec.get("jobName")),
        jobDate=_to_str(rec.get("jobDate")),
        returnDate=_to_str(rec.get("returnDate")),
        venue=_to_str(rec.get("venue")),
        # older feeds call the fallback code caseAssetCode
        assetCode=_to_str(rec.get("assetCode", rec.get("caseAssetCode"))),
        status=rec.get("status") or "confirmed",
        items=items,
        notes=rec.get("notes") or None,
    )


def load_rental_orders(records: Iterable[Dict[str, Any]]) -> List[RentalOrder]:
    """Bulk loader: records that fail validation are skipped and logged."""
    out: List[RentalOrder] = []
    for rec in records:
        try:
            out.append(load_rental_order(rec))
        except ValidationError as e:
            logger.warning(f"[StateLoader] Skipping order {rec.get('id')!r}: {e.error_count()} validation error(s)")
            continue
    return out


# -------------------------
# 2) platform payloads -> normalized record
# -------------------------
def normalize_odoo_order(ro: Dict[str, Any], lines: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Map an Odoo `sale.order` rental (search_read) plus its `sale.order.line` rows.
    Odoo line names carry the rental period, so names are cleaned and the category
    is detected from the line description.
    """
    oid = ro.get("id")
    items = []
    for line in lines:
        product = _many2one_label(line.get("product_id"))
        description = _to_str(line.get("name"))
        items.append({
            "name": clean_item_name(product or description or "Product"),
            "quantity": _to_int(line.get("product_uom_qty"), 1) or 1,
            "category": classify(description or product).value,
        })

    note = ro.get("note")
    return {
        "id": f"odoo-{oid}",
        "orderRef": _to_str(ro.get("name")) or f"ODO-{oid}",
        "customerName": _many2one_label(ro.get("partner_id")) or "Unknown Customer",
        "jobName": _to_str(ro.get("name")) or "Rental Order",
        "jobDate": _date_part(ro.get("date_order"), " ") or date.today().isoformat(),
        "returnDate": _date_part(ro.get("rental_return_date"), " "),
        "venue": "",
        "assetCode": f"ODO-{oid}",
        "status": ODOO_STATUS_MAP.get(_to_str(ro.get("rental_status")), "confirmed"),
        "items": items,
        "notes": _HTML_TAG.sub("", note) if isinstance(note, str) and note else None,
    }


def normalize_currentrms_opportunity(opp: Dict[str, Any]) -> Dict[str, Any]:
    """Map a currentRMS opportunity (with opportunity_items included)."""
    oid = opp.get("id")
    items = []
    for it in opp.get("opportunity_items") or []:
        items.append({
            "name": _to_str(it.get("name") or it.get("product_name"), "Item"),
            "quantity": _to_int(it.get("quantity"), 1) or 1,
            "serialNumber": it.get("serial_number") or None,
            "weight": it.get("weight") or None,
            # currentRMS product groups are trusted as-is
            "category": _to_str(it.get("product_group_name"), "general").lower() or "general",
        })

    return {
        "id": f"crms-{oid}",
        "orderRef": _to_str(opp.get("number")) or f"CRMS-{oid}",
        "customerName": _to_str(opp.get("member_name") or opp.get("organisation_name")) or "Unknown",
        "jobName": _to_str(opp.get("subject")) or "Opportunity",
        "jobDate": _date_part(opp.get("starts_at"), "T"),
        "returnDate": _date_part(opp.get("ends_at"), "T"),
        "venue": _to_str(opp.get("venue") or opp.get("destination")),
        "assetCode": f"CRMS-{oid}",
        "status": CURRENTRMS_STATUS_MAP.get(_to_int(opp.get("status"), 0), "confirmed"),
        "items": items,
        "notes": opp.get("description") or None,
    }
