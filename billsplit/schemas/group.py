# billsplit/schemas/group.py
# -----------------------------------------------------------------------------
# Pydantic SCHEMAS: Group
# -----------------------------------------------------------------------------

from __future__ import annotations

from enum import Enum
from typing import Optional, List, Dict
from datetime import datetime

from pydantic import BaseModel, Field, validator

from .group_member import GroupMemberOut
from .contribution import ContributionOut


class GroupTypeEnum(str, Enum):
    friends = "Friends"
    trip = "Trip"
    home = "Home"
    work = "Work"
    other = "Other"


class GroupCreate(BaseModel):
    name: str = Field(..., description="Group name")
    description: Optional[str] = Field(default=None, description="Optional description")
    type: GroupTypeEnum = Field(GroupTypeEnum.friends, description="Friends|Trip|Home|Work|Other")
    owner_id: int = Field(..., description="Creator; becomes the first member")
    member_ids: List[int] = Field(default_factory=list, description="Other members to enrol")

    @validator("name")
    def _name_not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Group name must not be empty")
        return v


class GroupUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    completed: Optional[bool] = None


class GroupOut(BaseModel):
    id: int = Field(..., description="Group ID")
    name: str = Field(..., description="Group name")
    description: Optional[str] = Field(None, description="Group description")
    type: GroupTypeEnum = Field(GroupTypeEnum.friends)
    owner_id: int = Field(..., description="Group owner")
    completed: bool = Field(False, description="Completed groups are read-only")
    created_at: datetime
    deleted_at: Optional[datetime] = Field(None, description="Soft-delete marker")

    members: List[GroupMemberOut] = Field(default_factory=list, description="Active members")

    class Config:
        from_attributes = True


class GroupSummaryOut(BaseModel):
    group_id: int
    total_spent: float
    contributions_count: int
    by_category: Dict[str, float]
    recent: List[ContributionOut]
