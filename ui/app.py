"""
Case Label Dashboard
Pick a rental order and preview how its items fall into cases.
"""
import sys
from pathlib import Path

import pandas as pd
import streamlit as st

# Add parent directory to path to import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from caselabel.data.order_feed import fetch_orders
from caselabel.agents.caseResolverAgent import resolve_order_cases
from caselabel.states.resolvedCase import ResolvedCase, resolved_cases_to_df


STATUS_LABELS = {
    "confirmed": "Confirmed",
    "in_progress": "In Progress",
    "returned": "Returned",
}


# ----------------- helpers ----------------- #

def _order_summary_df(orders) -> pd.DataFrame:
    rows = []
    for o in orders:
        cases = [it for it in o.items if it.is_case()]
        rows.append({
            "orderRef": o.orderRef,
            "job": o.jobName,
            "customer": o.customerName,
            "jobDate": o.jobDate,
            "status": STATUS_LABELS.get(o.status, o.status),
            "items": len(o.items),
            "cases": len(cases),
            "first_case": cases[0].name if cases else "No case",
        })
    return pd.DataFrame(rows)


def _render_case(case: ResolvedCase) -> None:
    with st.container(border=True):
        st.markdown(f"**{case.caseItem.name}** · `{case.assetCode}`")
        st.caption(f"{case.jobName} · {case.customerName} · {case.venue or 'no venue'}")
        col1, col2 = st.columns(2)
        col1.metric("Items", case.item_count())
        col2.metric("Total weight (kg)", f"{case.totalWeight:.2f}")
        if case.contents:
            st.dataframe(
                case.to_df()[["position", "itemName", "quantity", "category"]],
                hide_index=True,
                use_container_width=True,
            )
        if case.notes:
            st.caption(case.notes)


def leave_job_view(session_state) -> None:
    """Returning to the dashboard ends any Job View session and drops its unsaved edits."""
    engine = session_state.get("engine")
    if engine is not None:
        engine.close()
    session_state.pop("picker", None)


def main():
    st.set_page_config(page_title="Case Labels", page_icon="📦", layout="wide")
    st.title("📦 Case Labels")
    leave_job_view(st.session_state)

    with st.spinner("Loading orders..."):
        feed = fetch_orders()

    if feed["error"]:
        st.warning(feed["error"])
    if feed["using_sample_data"]:
        st.info("Showing sample orders. Set CASELABEL_ORDER_FEED to load a real feed.")

    orders = feed["orders"]
    if not orders:
        st.error("No orders available.")
        return

    st.markdown("### Orders")
    st.dataframe(_order_summary_df(orders), hide_index=True, use_container_width=True)

    by_ref = {o.orderRef: o for o in orders}
    selected_ref = st.sidebar.selectbox("Select Order", options=list(by_ref.keys()))
    order = by_ref[selected_ref]
    st.session_state["selected_order_id"] = order.id

    st.markdown(f"### Automatic cases for {order.orderRef}")
    cases = resolve_order_cases(order)
    cols = st.columns(min(3, len(cases)))
    for i, case in enumerate(cases):
        with cols[i % len(cols)]:
            _render_case(case)

    st.download_button(
        "Download manifest (CSV)",
        data=resolved_cases_to_df(cases).to_csv(index=False).encode("utf-8"),
        file_name=f"{order.orderRef}_cases.csv",
        mime="text/csv",
    )

    if st.button("🚀 View & assign cases", use_container_width=True):
        st.switch_page("pages/1_📦_Job_View.py")


if __name__ == "__main__":
    main()
