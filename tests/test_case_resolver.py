from collections import Counter

import pandas as pd

from caselabel.agents.caseResolverAgent import (
    resolve_order_cases, resolve_assigned_cases, automatic_assignments, UNASSIGNED_CASE_NAME,
)
from caselabel.states.assignmentState import AssignmentState
from caselabel.states.itemCategory import ItemCategory
from caselabel.states.resolvedCase import resolved_cases_to_df

from conftest import make_order


def _names(case):
    return [c.name for c in case.contents]


def test_round_robin_two_containers(two_case_order):
    cases = resolve_order_cases(two_case_order)
    assert [c.caseItem.name for c in cases] == ["A", "B"]
    assert _names(cases[0]) == ["c1", "c3", "c5"]
    assert _names(cases[1]) == ["c2", "c4"]


def test_partition_law_each_content_exactly_once(two_case_order):
    cases = resolve_order_cases(two_case_order)
    emitted = Counter(it.name for c in cases for it in c.contents)
    expected = Counter(it.name for it in two_case_order.items if not it.is_case())
    assert emitted == expected


def test_single_container_receives_everything_in_order():
    order = make_order([
        {"name": "Mic", "category": "audio"},
        {"name": "Peli", "category": "case"},
        {"name": "Cable", "category": "cable"},
        {"name": "Lamp", "category": "lighting"},
    ])
    cases = resolve_order_cases(order)
    assert len(cases) == 1
    assert cases[0].caseItem.name == "Peli"
    assert _names(cases[0]) == ["Mic", "Cable", "Lamp"]


def test_zero_containers_gives_synthetic_unassigned_case():
    order = make_order([
        {"name": "Amp", "category": "audio", "weight": 2.0, "quantity": 3},
        {"name": "Lamp", "category": "lighting", "weight": 1.5, "quantity": 2},
        {"name": "Tape", "category": "general"},
    ])
    cases = resolve_order_cases(order)
    assert len(cases) == 1
    case = cases[0]
    assert case.caseItem.name == UNASSIGNED_CASE_NAME
    assert case.caseItem.quantity == 1
    assert case.caseItem.category == ItemCategory.CASE
    assert case.assetCode == "RO-1-A"
    assert case.totalWeight == 9.0
    assert _names(case) == ["Amp", "Lamp", "Tape"]


def test_asset_code_prefers_container_serial(two_case_order):
    a, b = resolve_order_cases(two_case_order)
    assert a.assetCode == "SN-A"
    assert b.assetCode == "RO-1-A"


def test_total_weight_includes_container_once_and_rounds(two_case_order):
    a, b = resolve_order_cases(two_case_order)
    # A: 5.0 + c1 1.0 + c3 0 + c5 2.25
    assert a.totalWeight == 8.25
    # B: c2 1.0*2 + c4 0.5
    assert b.totalWeight == 2.5


def test_rounding_is_half_up_to_cents():
    order = make_order([
        {"name": "Box", "category": "case", "weight": 0.125},
        {"name": "Thing", "category": "general", "weight": 1.0},
    ])
    assert resolve_order_cases(order)[0].totalWeight == 1.13


def test_order_metadata_is_copied(two_case_order):
    case = resolve_order_cases(two_case_order)[0]
    assert case.orderId == "ord-1"
    assert case.orderRef == "RO-1"
    assert case.customerName == "Acme Events"
    assert case.venue == "Hall A"
    assert case.status == "confirmed"


def test_more_containers_than_contents_leaves_some_empty():
    order = make_order([
        {"name": "A", "category": "case"},
        {"name": "B", "category": "case"},
        {"name": "C", "category": "case"},
        {"name": "x", "category": "general"},
    ])
    cases = resolve_order_cases(order)
    assert [len(c.contents) for c in cases] == [1, 0, 0]


def test_empty_order_yields_empty_unassigned_case():
    cases = resolve_order_cases(make_order([]))
    assert len(cases) == 1
    assert cases[0].contents == []
    assert cases[0].totalWeight == 0.0


def test_automatic_assignments_match_resolver_ids(two_case_order):
    assert automatic_assignments(two_case_order) == {
        "item-0": ["item-2", "item-4", "item-6"],
        "item-1": ["item-3", "item-5"],
    }


def test_resolve_assigned_cases_uses_state_and_collects_leftovers(two_case_order):
    state = AssignmentState(
        electedCaseIds=["item-6"],
        assignments={"item-0": ["item-3"], "item-6": ["item-2"]},
    )
    cases = resolve_assigned_cases(two_case_order, state)
    assert [c.caseItem.name for c in cases] == ["A", "B", "c5", UNASSIGNED_CASE_NAME]
    assert _names(cases[0]) == ["c2"]
    assert _names(cases[1]) == []
    assert _names(cases[2]) == ["c1"]
    assert _names(cases[3]) == ["c3", "c4"]


def test_resolve_assigned_cases_without_containers(no_case_order):
    cases = resolve_assigned_cases(no_case_order, AssignmentState())
    assert len(cases) == 1
    assert _names(cases[0]) == ["Mixer", "Lamp", "Cable", "Speaker"]


def test_manifest_dataframe(two_case_order):
    df = resolved_cases_to_df(resolve_order_cases(two_case_order))
    assert isinstance(df, pd.DataFrame)
    assert len(df) == 5
    assert list(df[df["caseName"] == "A"]["itemName"]) == ["c1", "c3", "c5"]
    assert set(df["assetCode"]) == {"SN-A", "RO-1-A"}
