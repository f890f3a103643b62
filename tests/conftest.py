import pytest

from caselabel.states.rentalOrder import RentalOrder, CaseItem


def make_order(items, **overrides) -> RentalOrder:
    data = {
        "id": "ord-1",
        "orderRef": "RO-1",
        "customerName": "Acme Events",
        "jobName": "Launch",
        "jobDate": "2025-03-01",
        "returnDate": "2025-03-03",
        "venue": "Hall A",
        "assetCode": "RO-1-A",
        "status": "confirmed",
        "items": [CaseItem(**i) if isinstance(i, dict) else i for i in items],
    }
    data.update(overrides)
    return RentalOrder(**data)


@pytest.fixture
def two_case_order() -> RentalOrder:
    # item-0 A, item-1 B are cases; item-2..item-6 are c1..c5
    return make_order([
        {"name": "A", "category": "case", "serialNumber": "SN-A", "weight": 5.0},
        {"name": "B", "category": "case"},
        {"name": "c1", "category": "audio", "weight": 1.0},
        {"name": "c2", "category": "cable", "weight": 1.0, "quantity": 2},
        {"name": "c3", "category": "lighting"},
        {"name": "c4", "category": "general", "weight": 0.5},
        {"name": "c5", "category": "video", "weight": 2.25},
    ])


@pytest.fixture
def no_case_order() -> RentalOrder:
    return make_order([
        {"name": "Mixer", "category": "audio"},
        {"name": "Lamp", "category": "lighting"},
        {"name": "Cable", "category": "cable"},
        {"name": "Speaker", "category": "audio"},
    ])
