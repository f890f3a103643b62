from __future__ import annotations
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, ConfigDict, field_validator

from caselabel.states.itemCategory import ItemCategory, to_category

OrderStatus = Literal["confirmed", "in_progress", "returned"]

ITEM_ID_PREFIX = "item-"


def item_id_for(index: int) -> str:
    return f"{ITEM_ID_PREFIX}{index}"


class CaseItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    quantity: int = Field(1, ge=1)
    serialNumber: Optional[str] = None
    weight: Optional[float] = Field(None, ge=0, description="kg per unit")
    category: Optional[ItemCategory] = None

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, v):
        return to_category(v)

    def is_case(self) -> bool:
        return self.category == ItemCategory.CASE

    def line_weight(self) -> float:
        # missing weight counts as 0
        return (self.weight or 0.0) * self.quantity


class RentalOrder(BaseModel):
    """
    One normalized order from the feed. Item order matters: it drives the
    positional distribution of contents and the item ids ("item-<index>").
    """
    model_config = ConfigDict(frozen=True)

    id: str
    orderRef: str
    customerName: str = ""
    jobName: str = ""
    jobDate: str = ""
    returnDate: str = ""
    venue: str = ""
    assetCode: str = ""
    status: OrderStatus = "confirmed"
    items: List[CaseItem] = Field(default_factory=list)
    notes: Optional[str] = None

    def item_ids(self) -> List[str]:
        return [item_id_for(i) for i in range(len(self.items))]

    def has_item(self, item_id: str) -> bool:
        return self._index_of(item_id) is not None

    def item_by_id(self, item_id: str) -> CaseItem:
        idx = self._index_of(item_id)
        if idx is None:
            raise KeyError(f"Unknown item id for order {self.id}: {item_id!r}")
        return self.items[idx]

    def index_of(self, item_id: str) -> int:
        idx = self._index_of(item_id)
        if idx is None:
            raise KeyError(f"Unknown item id for order {self.id}: {item_id!r}")
        return idx

    def auto_case_ids(self) -> List[str]:
        """Ids of items the classifier tagged as cases, in item order."""
        return [item_id_for(i) for i, it in enumerate(self.items) if it.is_case()]

    def _index_of(self, item_id: str) -> Optional[int]:
        if not isinstance(item_id, str) or not item_id.startswith(ITEM_ID_PREFIX):
            return None
        suffix = item_id[len(ITEM_ID_PREFIX):]
        if not suffix.isdigit():
            return None
        idx = int(suffix)
        # reject non-canonical forms like "item-01"
        if item_id_for(idx) != item_id or idx >= len(self.items):
            return None
        return idx
