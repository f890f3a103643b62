import json

from caselabel.states.state_loader import (
    load_rental_order, load_rental_orders, normalize_odoo_order, normalize_currentrms_opportunity,
)
from caselabel.states.itemCategory import ItemCategory
from caselabel.data.order_feed import fetch_orders, load_sample_orders


def _record(**overrides):
    rec = {
        "id": "o-1", "orderRef": "RO-1", "customerName": "Acme", "jobName": "Gala",
        "jobDate": "2025-01-01", "returnDate": "2025-01-02", "venue": "Hall",
        "assetCode": "RO-1-A", "status": "in_progress",
        "items": [
            {"name": "Peli 1610 Case", "quantity": 1, "serialNumber": "PC-1", "weight": 9.5},
            {"name": "XLR Cable 10m", "quantity": 4},
            {"name": "Widget", "quantity": 0, "category": "Lighting"},
        ],
    }
    rec.update(overrides)
    return rec


def test_load_rental_order_classifies_missing_categories():
    order = load_rental_order(_record())
    cats = [it.category for it in order.items]
    assert cats == [ItemCategory.CASE, ItemCategory.CABLE, ItemCategory.LIGHTING]
    assert order.items[2].quantity == 1
    assert order.items[0].serialNumber == "PC-1"
    assert order.status == "in_progress"
    assert order.auto_case_ids() == ["item-0"]


def test_legacy_case_asset_code_key():
    rec = _record()
    rec.pop("assetCode")
    rec["caseAssetCode"] = "LEGACY-1"
    assert load_rental_order(rec).assetCode == "LEGACY-1"


def test_unknown_category_text_becomes_general():
    order = load_rental_order(_record(items=[{"name": "Thing", "quantity": 1, "category": "Cases"}]))
    assert order.items[0].category == ItemCategory.GENERAL


def test_bulk_loader_skips_invalid_records():
    orders = load_rental_orders([_record(), _record(id="o-2", status="lost")])
    assert [o.id for o in orders] == ["o-1"]


def test_normalize_odoo_order():
    ro = {
        "id": 17, "name": "S00017", "partner_id": [5, "Northside Ltd"],
        "rental_status": "return", "date_order": "2025-02-15 09:00:00",
        "rental_return_date": "2025-02-20 18:00:00", "note": "<p>Fragile</p>",
    }
    lines = [
        {"product_id": [1, "Projector"], "name": "Projector (02/15/2025 10:00:00 AM - 02/20/2025 10:00:00 AM)",
         "product_uom_qty": 2},
        {"product_id": [2, "Flight Case Large"], "name": "Flight Case Large", "product_uom_qty": 1},
    ]
    rec = normalize_odoo_order(ro, lines)
    assert rec["id"] == "odoo-17"
    assert rec["assetCode"] == "ODO-17"
    assert rec["customerName"] == "Northside Ltd"
    assert rec["status"] == "in_progress"
    assert rec["jobDate"] == "2025-02-15"
    assert rec["returnDate"] == "2025-02-20"
    assert rec["notes"] == "Fragile"
    assert rec["items"][0] == {"name": "Projector", "quantity": 2, "category": "general"}
    assert rec["items"][1]["category"] == "case"

    order = load_rental_order(rec)
    assert order.auto_case_ids() == ["item-1"]


def test_normalize_currentrms_opportunity():
    opp = {
        "id": 9, "number": "", "organisation_name": "Blue Fern", "subject": "Launch",
        "starts_at": "2025-04-02T08:00:00Z", "ends_at": "2025-04-03T20:00:00Z",
        "destination": "Warehouse 9", "status": 4,
        "opportunity_items": [
            {"name": "Peli 1510", "quantity": 1, "serial_number": "P-9", "weight": 6.1, "product_group_name": "Case"},
            {"product_name": "Sub 18", "quantity": 2, "product_group_name": None},
        ],
    }
    rec = normalize_currentrms_opportunity(opp)
    assert rec["orderRef"] == "CRMS-9"
    assert rec["customerName"] == "Blue Fern"
    assert rec["venue"] == "Warehouse 9"
    assert rec["status"] == "returned"
    assert rec["jobDate"] == "2025-04-02"
    assert rec["items"][0]["category"] == "case"
    assert rec["items"][1]["name"] == "Sub 18"
    assert rec["items"][1]["category"] == "general"


def test_sample_orders_load():
    orders = load_sample_orders()
    assert len(orders) >= 2
    assert orders[1].items[0].name == "Projector"


def test_fetch_orders_falls_back_to_sample_data(tmp_path):
    missing = fetch_orders(tmp_path / "missing.json")
    assert missing["using_sample_data"] is True
    assert missing["error"]

    feed_file = tmp_path / "feed.json"
    feed_file.write_text(json.dumps({"orders": [_record()]}), encoding="utf-8")
    loaded = fetch_orders(feed_file)
    assert loaded["using_sample_data"] is False
    assert [o.id for o in loaded["orders"]] == ["o-1"]
