from __future__ import annotations
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

UNASSIGNED = "unassigned"  # synthetic bucket, never a key in `assignments`


# ---- Session-scoped editing state (mutable, serializable) ----
class AssignmentState(BaseModel):
    # items manually designated as containers, on top of the auto-detected ones
    electedCaseIds: List[str] = Field(default_factory=list)
    # container id -> ordered content ids
    assignments: Dict[str, List[str]] = Field(default_factory=dict)

    def location_of(self, item_id: str) -> Optional[str]:
        for container_id, content_ids in self.assignments.items():
            if item_id in content_ids:
                return container_id
        return None

    def assigned_ids(self) -> List[str]:
        out: List[str] = []
        for content_ids in self.assignments.values():
            out.extend(content_ids)
        return out

    def remove_everywhere(self, item_id: str) -> None:
        for content_ids in self.assignments.values():
            while item_id in content_ids:
                content_ids.remove(item_id)


class ContentEntry(BaseModel):
    name: str
    quantity: int
    sourceItemId: str


class CaseAssignmentRecord(BaseModel):
    """One container and its contents, as handed to the persistence store."""
    containerName: str
    containerItemId: Optional[str] = None
    contentList: List[ContentEntry] = Field(default_factory=list)
