"""
Interactive case assignment for one order-editing session.

The engine owns an AssignmentState and applies every edit through one
exclusivity-preserving mutation (`_place`). Two front-end styles sit on top:

  DragRelocator         - drag an item onto a case, the unassigned bucket or another item
  ActiveContainerPicker - pick a case, then tick items in or out of it

Phases: IDLE -> EDITING (open_order) -> COMMITTING (during persist) -> EDITING,
and back to IDLE on close(), which drops uncommitted edits.
"""
from __future__ import annotations
from typing import Callable, Dict, List, Optional
from enum import Enum
import logging
import threading
import uuid

from caselabel.states.rentalOrder import RentalOrder
from caselabel.states.resolvedCase import ResolvedCase
from caselabel.states.assignmentState import (
    AssignmentState, CaseAssignmentRecord, ContentEntry, UNASSIGNED,
)
from caselabel.agents.caseResolverAgent import automatic_assignments, resolve_assigned_cases
from caselabel.data.assignment_store import replace_case_assignments, StaleSessionError

logger = logging.getLogger("CaseLabel.AssignmentEngine")
logger.setLevel(logging.INFO)

# persist(user_id, order_id, records, is_current=...) -> number of rows written
PersistFn = Callable[..., int]


class EditPhase(str, Enum):
    IDLE       = "idle"
    EDITING    = "editing"
    COMMITTING = "committing"


class AssignmentError(ValueError):
    """A rejected edit. State is left exactly as it was."""


class UnknownItemError(AssignmentError):
    pass


class NotEditingError(AssignmentError):
    pass


class AssignmentEngine:

    def __init__(self, persist: Optional[PersistFn] = None):
        self._persist = persist or replace_case_assignments
        self._lock = threading.RLock()
        self._phase = EditPhase.IDLE
        self._order: Optional[RentalOrder] = None
        self._user_id: Optional[str] = None
        self._state = AssignmentState()
        self._token: Optional[str] = None

    # ---------------------------- session ---------------------------- #

    @property
    def phase(self) -> EditPhase:
        return self._phase

    @property
    def order(self) -> Optional[RentalOrder]:
        return self._order

    @property
    def session_token(self) -> Optional[str]:
        return self._token

    def open_order(
        self,
        order: RentalOrder,
        user_id: str,
        *,
        seed_automatic: bool = False,
        saved_records: Optional[List[CaseAssignmentRecord]] = None,
    ) -> None:
        """
        Start editing `order`. Saved records win; with `seed_automatic` the state
        starts from the automatic partition, otherwise every content item starts
        unassigned.
        """
        with self._lock:
            self._order = order
            self._user_id = str(user_id)
            self._token = uuid.uuid4().hex
            self._phase = EditPhase.EDITING
            if saved_records:
                self._state = self._state_from_records(order, saved_records)
            elif seed_automatic:
                self._state = AssignmentState(assignments=automatic_assignments(order))
            else:
                self._state = AssignmentState()
            logger.info(f"[AssignmentEngine] Opened order {order.id} ({len(order.items)} items) for user {self._user_id}")

    def close(self) -> None:
        with self._lock:
            if self._order is not None:
                logger.info(f"[AssignmentEngine] Closed order {self._order.id}, uncommitted edits discarded")
            self._order = None
            self._user_id = None
            self._token = None
            self._state = AssignmentState()
            self._phase = EditPhase.IDLE

    def snapshot(self) -> AssignmentState:
        with self._lock:
            return self._state.model_copy(deep=True)

    # ---------------------------- derived views ---------------------------- #

    def all_container_ids(self) -> List[str]:
        with self._lock:
            order = self._require_order()
            elected = set(self._state.electedCaseIds)
            return [iid for i, iid in enumerate(order.item_ids())
                    if order.items[i].is_case() or iid in elected]

    def all_content_ids(self) -> List[str]:
        with self._lock:
            containers = set(self.all_container_ids())
            return [iid for iid in self._order.item_ids() if iid not in containers]

    def assigned_ids(self) -> List[str]:
        with self._lock:
            out: List[str] = []
            for cid in self.all_container_ids():
                out.extend(self._state.assignments.get(cid, []))
            return out

    def unassigned_ids(self) -> List[str]:
        with self._lock:
            assigned = set(self.assigned_ids())
            return [iid for iid in self.all_content_ids() if iid not in assigned]

    def is_container(self, item_id: str) -> bool:
        return item_id in self.all_container_ids()

    def is_auto_case(self, item_id: str) -> bool:
        with self._lock:
            return item_id in self._require_order().auto_case_ids()

    def contents_of(self, container_id: str) -> List[str]:
        with self._lock:
            if container_id == UNASSIGNED:
                return self.unassigned_ids()
            self._require_container(container_id)
            return list(self._state.assignments.get(container_id, []))

    def container_of(self, item_id: str) -> str:
        """Container holding a content item, or UNASSIGNED."""
        with self._lock:
            self._require_content(item_id)
            return self._state.location_of(item_id) or UNASSIGNED

    def resolved_cases(self) -> List[ResolvedCase]:
        with self._lock:
            return resolve_assigned_cases(self._require_order(), self._state)

    # ---------------------------- mutations ---------------------------- #

    def elect_as_case(self, item_id: str) -> bool:
        """
        Toggle `item_id` as a manually elected case. Returns True when it is now a case.
        Un-electing releases everything that was assigned to it. Auto-detected
        cases are always cases, so toggling one leaves the state unchanged.
        """
        with self._lock:
            self._require_editing()
            order = self._require_order()
            self._require_known(item_id)
            if item_id in order.auto_case_ids():
                logger.info(f"[AssignmentEngine] {item_id} is an auto-detected case, nothing to toggle")
                return True

            if item_id in self._state.electedCaseIds:
                self._state.electedCaseIds.remove(item_id)
                released = self._state.assignments.pop(item_id, [])
                logger.info(f"[AssignmentEngine] Un-elected {item_id}, released {len(released)} item(s)")
                return False

            # a container cannot sit inside another container
            self._state.remove_everywhere(item_id)
            self._state.electedCaseIds.append(item_id)
            logger.info(f"[AssignmentEngine] Elected {item_id} as case")
            return True

    def relocate(self, item_id: str, from_container: str, to_container: str, index: Optional[int] = None) -> bool:
        """Move a content item between two containers (UNASSIGNED counts as one)."""
        with self._lock:
            self._require_editing()
            self._require_content(item_id)
            self._require_target(from_container)
            self._require_target(to_container)
            if from_container == to_container:
                return False
            current = self._state.location_of(item_id) or UNASSIGNED
            if current != from_container:
                raise AssignmentError(f"{item_id} is in {current}, not {from_container}")
            return self._place(item_id, to_container, index)

    def assign_exclusive(self, item_id: str, container_id: str) -> bool:
        """Put `item_id` in `container_id` and nowhere else."""
        with self._lock:
            self._require_editing()
            self._require_content(item_id)
            self._require_target(container_id)
            return self._place(item_id, container_id)

    def _place(self, item_id: str, target: str, index: Optional[int] = None) -> bool:
        current = self._state.location_of(item_id) or UNASSIGNED
        if current == target:
            return False
        self._state.remove_everywhere(item_id)
        if target != UNASSIGNED:
            content_ids = self._state.assignments.setdefault(target, [])
            if index is None:
                content_ids.append(item_id)
            else:
                content_ids.insert(max(0, min(index, len(content_ids))), item_id)
        logger.debug(f"[AssignmentEngine] {item_id}: {current} -> {target}")
        return True

    # ---------------------------- commit ---------------------------- #

    def build_records(self) -> List[CaseAssignmentRecord]:
        with self._lock:
            order = self._require_order()
            records: List[CaseAssignmentRecord] = []
            for cid in self.all_container_ids():
                entries = []
                for iid in self._state.assignments.get(cid, []):
                    it = order.item_by_id(iid)
                    entries.append(ContentEntry(name=it.name, quantity=it.quantity, sourceItemId=iid))
                records.append(CaseAssignmentRecord(
                    containerName=order.item_by_id(cid).name,
                    containerItemId=cid,
                    contentList=entries,
                ))
            return records

    def commit(self, persist: Optional[PersistFn] = None) -> Dict:
        """
        Replace the saved assignments for (user, order) with the current state.
        The persist call runs outside the lock; a failure leaves the in-memory
        state untouched so the user can retry.
        """
        with self._lock:
            self._require_editing()
            if self._phase == EditPhase.COMMITTING:
                return {"success": False, "error": "A save is already in progress", "order_id": self._order.id, "cancelled": False}
            records = self.build_records()
            token = self._token
            user_id = self._user_id
            order_id = self._order.id
            self._phase = EditPhase.COMMITTING

        persist_fn = persist or self._persist
        try:
            inserted = persist_fn(user_id, order_id, records, is_current=lambda: self._token == token)
            result = {"success": True, "inserted_count": inserted, "order_id": order_id}
            logger.info(f"[AssignmentEngine] Saved {inserted} case record(s) for order {order_id}")
        except StaleSessionError as e:
            result = {"success": False, "error": str(e), "order_id": order_id, "cancelled": True}
            logger.warning(f"[AssignmentEngine] Save for order {order_id} cancelled: {e}")
        except Exception as e:
            result = {"success": False, "error": str(e), "order_id": order_id, "cancelled": False}
            logger.error(f"[AssignmentEngine] Save for order {order_id} failed: {e}")
        finally:
            with self._lock:
                if self._token == token:
                    self._phase = EditPhase.EDITING
        return result

    # ---------------------------- validation ---------------------------- #

    def _require_order(self) -> RentalOrder:
        if self._order is None:
            raise NotEditingError("No order is open")
        return self._order

    def _require_editing(self) -> None:
        if self._phase == EditPhase.IDLE:
            raise NotEditingError("No order is open")

    def _require_known(self, item_id: str) -> None:
        if not self._require_order().has_item(item_id):
            raise UnknownItemError(f"Unknown item id: {item_id!r}")

    def _require_content(self, item_id: str) -> None:
        self._require_known(item_id)
        if self.is_container(item_id):
            raise AssignmentError(f"{item_id} is a case; only content items can be moved")

    def _require_container(self, container_id: str) -> None:
        self._require_known(container_id)
        if not self.is_container(container_id):
            raise AssignmentError(f"{container_id} is not a case")

    def _require_target(self, container_id: str) -> None:
        if container_id != UNASSIGNED:
            self._require_container(container_id)

    def _state_from_records(self, order: RentalOrder, records: List[CaseAssignmentRecord]) -> AssignmentState:
        auto = set(order.auto_case_ids())
        state = AssignmentState()
        claimed = set()
        # records without an item id are matched to containers by name
        name_to_ids: Dict[str, List[str]] = {}
        for iid, it in zip(order.item_ids(), order.items):
            name_to_ids.setdefault(it.name, []).append(iid)

        containers: List[tuple[str, CaseAssignmentRecord]] = []
        for rec in records:
            cid = rec.containerItemId
            if not cid:
                candidates = [i for i in name_to_ids.get(rec.containerName, []) if i not in claimed]
                cid = candidates[0] if candidates else None
            if cid is None or not order.has_item(cid) or cid in claimed:
                logger.warning(f"[AssignmentEngine] Dropping saved case {rec.containerName!r}: no matching item")
                continue
            claimed.add(cid)
            if cid not in auto:
                state.electedCaseIds.append(cid)
            containers.append((cid, rec))

        container_ids = auto | set(state.electedCaseIds)
        placed = set()
        for cid, rec in containers:
            content_ids = []
            for entry in rec.contentList:
                iid = entry.sourceItemId
                if not order.has_item(iid) or iid in container_ids or iid in placed:
                    logger.warning(f"[AssignmentEngine] Dropping saved entry {iid!r} from {cid}")
                    continue
                placed.add(iid)
                content_ids.append(iid)
            state.assignments[cid] = content_ids
        return state


# ---------------------------- front-end adapters ---------------------------- #

class DragRelocator:
    """Continuous mode: items are dragged and dropped onto targets."""

    def __init__(self, engine: AssignmentEngine):
        self.engine = engine

    def drop(self, item_id: str, over_id: Optional[str]) -> bool:
        """
        `over_id` is a case, UNASSIGNED, or another content item (the item is
        then placed in that item's container at that item's position).
        Dropping outside any target (None) does nothing.
        """
        if over_id is None or over_id == item_id:
            return False
        eng = self.engine
        with eng._lock:
            source = eng.container_of(item_id)
            index = None
            if over_id == UNASSIGNED or eng.is_container(over_id):
                target = over_id
            else:
                target = eng.container_of(over_id)
                if target != UNASSIGNED:
                    index = eng.contents_of(target).index(over_id)
            return eng.relocate(item_id, source, target, index)


class ActiveContainerPicker:
    """Discrete mode: select one case, then tick items in or out of it."""

    def __init__(self, engine: AssignmentEngine):
        self.engine = engine
        self._active: Optional[str] = None

    @property
    def active(self) -> Optional[str]:
        # an un-elected case stops being selectable
        if self._active is not None and (self.engine.order is None or not self.engine.is_container(self._active)):
            self._active = None
        return self._active

    def select(self, container_id: Optional[str]) -> None:
        if container_id is not None:
            self.engine._require_container(container_id)
        self._active = container_id

    def is_checked(self, item_id: str) -> bool:
        active = self.active
        return active is not None and self.engine.container_of(item_id) == active

    def toggle(self, item_id: str) -> bool:
        """Tick moves the item here (out of any other case); untick sends it to the unassigned pool."""
        active = self.active
        if active is None:
            return False
        with self.engine._lock:
            if self.is_checked(item_id):
                return self.engine.assign_exclusive(item_id, UNASSIGNED)
            return self.engine.assign_exclusive(item_id, active)
