# uniform_workflow/schemas/support/activity_schemas.py

from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from fastapi import Query


class ActivityFilters(BaseModel):
    actor_id: Optional[str] = Query(None)
    actor_name: Optional[str] = Query(None)
    search: Optional[str] = Query(None)

    page: int = Query(1, ge=1)
    page_size: int = Query(20, ge=1, le=100)

    sort_by: str = Query("created_at")
    sort_order: str = Query("desc")


class ActivityOut(BaseModel):
    id: int
    actor_id: Optional[str]
    actor_name_snapshot: str
    message: str
    created_at: datetime

    class Config:
        from_attributes = True


class ActivityListData(BaseModel):
    total: int
    items: List[ActivityOut]
