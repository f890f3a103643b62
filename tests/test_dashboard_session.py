from ui.app import leave_job_view
from caselabel.agents.assignmentEngine import AssignmentEngine, ActiveContainerPicker, EditPhase
from caselabel.states.assignmentState import UNASSIGNED


def test_returning_to_dashboard_drops_unsaved_edits(two_case_order):
    engine = AssignmentEngine(persist=lambda *a, **k: 0)
    engine.open_order(two_case_order, "user-1")
    engine.assign_exclusive("item-2", "item-0")
    session_state = {"engine": engine, "picker": ActiveContainerPicker(engine)}

    leave_job_view(session_state)
    assert engine.phase == EditPhase.IDLE
    assert engine.order is None
    assert "picker" not in session_state

    # the Job View reopens the order from scratch
    engine.open_order(two_case_order, "user-1")
    assert engine.container_of("item-2") == UNASSIGNED


def test_dashboard_without_job_view_session():
    session_state = {}
    leave_job_view(session_state)
    assert session_state == {}
