"""
Export case manifests for the orders in the feed.

Each order is resolved into cases (automatic partition, or the saved
assignments of --user when present) and written as one CSV per order and/or
to a SQLite table, which is replaced on every run.

Usage:
    python scripts/export_case_manifest.py --out manifests/
    python scripts/export_case_manifest.py --user local-user --table case_manifest
"""

import argparse
import sys
from pathlib import Path

import pandas as pd

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from caselabel.data.order_feed import fetch_orders
from caselabel.data.assignment_store import load_case_assignments
from caselabel.data import sql_lite_store
from caselabel.agents.caseResolverAgent import resolve_order_cases
from caselabel.agents.assignmentEngine import AssignmentEngine
from caselabel.states.resolvedCase import resolved_cases_to_df


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export per-order case manifests.")
    parser.add_argument("--feed", help="Order feed JSON file. Defaults to CASELABEL_ORDER_FEED or the sample orders.")
    parser.add_argument("--format", default=None, choices=["normalized", "odoo", "currentrms"])
    parser.add_argument("--user", help="Use this user's saved assignments where they exist.")
    parser.add_argument("--out", help="Directory for <orderRef>_cases.csv files.")
    parser.add_argument("--table", help="SQLite table to replace with the combined manifest.")
    return parser.parse_args()


def build_manifest(order, user_id=None) -> pd.DataFrame:
    saved = load_case_assignments(user_id, order.id) if user_id else []
    if not saved:
        return resolved_cases_to_df(resolve_order_cases(order))

    engine = AssignmentEngine()
    engine.open_order(order, user_id, saved_records=saved)
    try:
        return resolved_cases_to_df(engine.resolved_cases())
    finally:
        engine.close()


def main():
    args = parse_args()
    feed = fetch_orders(args.feed, args.format)
    if feed["error"]:
        print(f"WARNING: {feed['error']}")

    frames = []
    for order in feed["orders"]:
        df = build_manifest(order, args.user)
        frames.append(df)
        print(f"{order.orderRef}: {df['caseName'].nunique() if not df.empty else 0} case(s), {len(df)} line(s)")
        if args.out:
            out_dir = Path(args.out)
            out_dir.mkdir(parents=True, exist_ok=True)
            df.to_csv(out_dir / f"{order.orderRef}_cases.csv", index=False)

    if args.table and frames:
        ok, n = sql_lite_store.save_table(pd.concat(frames, ignore_index=True), args.table)
        print(f"Saved {n} row(s) to table {args.table}" if ok else f"Nothing saved to {args.table}")


if __name__ == "__main__":
    main()
