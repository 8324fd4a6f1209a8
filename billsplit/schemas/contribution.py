# billsplit/schemas/contribution.py
# -----------------------------------------------------------------------------
# Pydantic SCHEMAS: Contribution
# -----------------------------------------------------------------------------
# Amounts are validated here (non-negative, finite); rounding for display is
# done in the router, the settle-up engine works on raw Decimal values.
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, validator, condecimal

Money = condecimal(max_digits=18, ge=0)


class ContributionBase(BaseModel):
    group_id: int
    member_id: int
    amount: Money
    category: Optional[str] = None
    date: datetime = Field(default_factory=datetime.utcnow)
    comment: Optional[str] = None

    @validator("category")
    def _normalize_category(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class ContributionCreate(ContributionBase):
    pass


class ContributionOut(ContributionBase):
    id: int
    amount: float
    created_at: datetime

    class Config:
        from_attributes = True
