from __future__ import annotations
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict
import pandas as pd

from caselabel.states.rentalOrder import CaseItem, OrderStatus

MANIFEST_COLUMNS = [
    "orderRef", "assetCode", "caseName", "caseSerial", "position",
    "itemName", "quantity", "serialNumber", "unitWeight", "category", "caseTotalWeight",
]


# ---- Read-only pairing of one container with its contents ----
class ResolvedCase(BaseModel):
    model_config = ConfigDict(frozen=True)

    # order-level metadata copied for the label
    orderId: str
    orderRef: str
    customerName: str = ""
    jobName: str = ""
    jobDate: str = ""
    returnDate: str = ""
    venue: str = ""
    status: OrderStatus = "confirmed"
    notes: Optional[str] = None

    caseItem: CaseItem
    assetCode: str = ""
    contents: List[CaseItem] = Field(default_factory=list)
    totalWeight: float = 0.0  # kg, 2 decimals

    def item_count(self) -> int:
        return len(self.contents)

    def to_df(self) -> pd.DataFrame:
        """One row per content item; an empty case still yields its header columns."""
        records = []
        for pos, it in enumerate(self.contents, start=1):
            records.append({
                "orderRef": self.orderRef,
                "assetCode": self.assetCode,
                "caseName": self.caseItem.name,
                "caseSerial": self.caseItem.serialNumber,
                "position": pos,
                "itemName": it.name,
                "quantity": it.quantity,
                "serialNumber": it.serialNumber,
                "unitWeight": it.weight,
                "category": it.category.value if it.category else None,
                "caseTotalWeight": self.totalWeight,
            })
        if not records:
            return pd.DataFrame(columns=MANIFEST_COLUMNS)
        return pd.DataFrame.from_records(records, columns=MANIFEST_COLUMNS)


def resolved_cases_to_df(cases: List[ResolvedCase]) -> pd.DataFrame:
    frames = [c.to_df() for c in cases]
    frames = [f for f in frames if not f.empty]
    if not frames:
        return pd.DataFrame(columns=MANIFEST_COLUMNS)
    return pd.concat(frames, ignore_index=True)
