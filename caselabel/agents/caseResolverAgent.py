from __future__ import annotations
from typing import Dict, List, Iterable
import math

from caselabel.states.itemCategory import ItemCategory
from caselabel.states.rentalOrder import RentalOrder, CaseItem
from caselabel.states.resolvedCase import ResolvedCase
from caselabel.states.assignmentState import AssignmentState

UNASSIGNED_CASE_NAME = "Unassigned"


# ---------------------------- helpers (shared) ---------------------------- #

def _round2(x: float) -> float:
    # half-up to 0.01, not banker's rounding
    return math.floor(x * 100 + 0.5) / 100


def _contents_weight(items: Iterable[CaseItem]) -> float:
    return sum(it.line_weight() for it in items)


def _synthetic_case() -> CaseItem:
    return CaseItem(name=UNASSIGNED_CASE_NAME, quantity=1, category=ItemCategory.CASE)


def _build_case(order: RentalOrder, case_item: CaseItem, contents: List[CaseItem], asset_code: str, total: float) -> ResolvedCase:
    return ResolvedCase(
        orderId=order.id,
        orderRef=order.orderRef,
        customerName=order.customerName,
        jobName=order.jobName,
        jobDate=order.jobDate,
        returnDate=order.returnDate,
        venue=order.venue,
        status=order.status,
        notes=order.notes,
        caseItem=case_item,
        assetCode=asset_code,
        contents=contents,
        totalWeight=_round2(total),
    )


def _container_case(order: RentalOrder, container: CaseItem, contents: List[CaseItem]) -> ResolvedCase:
    # the container counts once, not per quantity
    total = _contents_weight(contents) + (container.weight or 0.0)
    return _build_case(order, container, contents, container.serialNumber or order.assetCode, total)


def _unassigned_case(order: RentalOrder, contents: List[CaseItem]) -> ResolvedCase:
    return _build_case(order, _synthetic_case(), contents, order.assetCode, _contents_weight(contents))


# ---------------------------- automatic partition ---------------------------- #

def resolve_order_cases(order: RentalOrder) -> List[ResolvedCase]:
    """
    Split an order into cases without any user input.

    - no case items: one synthetic "Unassigned" case holding everything
    - one case item: it holds every content item
    - N case items: content j goes to case (j mod N), positional round-robin
    Output follows the order of the case items in the order.
    """
    containers = [it for it in order.items if it.is_case()]
    contents = [it for it in order.items if not it.is_case()]

    if not containers:
        return [_unassigned_case(order, contents)]

    n = len(containers)
    out: List[ResolvedCase] = []
    for i, container in enumerate(containers):
        if n == 1:
            assigned = list(contents)
        else:
            assigned = [c for j, c in enumerate(contents) if j % n == i]
        out.append(_container_case(order, container, assigned))
    return out


def automatic_assignments(order: RentalOrder) -> Dict[str, List[str]]:
    """Same round-robin partition as resolve_order_cases, expressed as item ids."""
    case_ids = order.auto_case_ids()
    if not case_ids:
        return {}
    content_ids = [iid for iid in order.item_ids() if iid not in case_ids]
    n = len(case_ids)
    out: Dict[str, List[str]] = {cid: [] for cid in case_ids}
    for j, iid in enumerate(content_ids):
        out[case_ids[j % n]].append(iid)
    return out


# ---------------------------- manual (assigned) view ---------------------------- #

def resolve_assigned_cases(order: RentalOrder, state: AssignmentState) -> List[ResolvedCase]:
    """
    Resolve cases from an editing session instead of the automatic partition.
    Containers come out in item order; content items nobody placed are collected
    in a trailing "Unassigned" case so nothing drops off the printout.
    """
    elected = set(state.electedCaseIds)
    container_ids = [iid for i, iid in enumerate(order.item_ids())
                     if order.items[i].is_case() or iid in elected]
    content_ids = [iid for iid in order.item_ids() if iid not in container_ids]

    if not container_ids:
        return [_unassigned_case(order, [order.item_by_id(iid) for iid in content_ids])]

    placed = set()
    out: List[ResolvedCase] = []
    for cid in container_ids:
        ids = [iid for iid in state.assignments.get(cid, []) if iid in content_ids and iid not in placed]
        placed.update(ids)
        out.append(_container_case(order, order.item_by_id(cid), [order.item_by_id(iid) for iid in ids]))

    leftovers = [order.item_by_id(iid) for iid in content_ids if iid not in placed]
    if leftovers:
        out.append(_unassigned_case(order, leftovers))
    return out
