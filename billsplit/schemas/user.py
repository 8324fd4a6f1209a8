# billsplit/schemas/user.py

from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class UserCreate(BaseModel):
    name: str
    email: Optional[str] = None

class UserOut(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
