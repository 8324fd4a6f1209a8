# billsplit/schemas/payment.py

from __future__ import annotations

from enum import Enum
from typing import Optional
from datetime import datetime

from pydantic import BaseModel, Field, condecimal, validator


class PaymentStatusEnum(str, Enum):
    pending = "Pending"
    success = "Success"
    failed = "Failed"


class PaymentModeEnum(str, Enum):
    upi = "UPI"
    paypal = "PayPal"
    stripe = "Stripe"


class PaymentCreate(BaseModel):
    group_id: int
    sender_id: int
    receiver_id: int
    amount: condecimal(max_digits=18, gt=0)

    @validator("receiver_id")
    def _distinct_parties(cls, v: int, values):
        if values.get("sender_id") == v:
            raise ValueError("Sender and receiver must be different members")
        return v


class PaymentSettle(BaseModel):
    """
    Closes a pending payment. Only Success/Failed are accepted here.
    """
    status: PaymentStatusEnum
    mode: PaymentModeEnum

    @validator("status")
    def _final_status(cls, v: PaymentStatusEnum) -> PaymentStatusEnum:
        if v == PaymentStatusEnum.pending:
            raise ValueError("status must be 'Success' or 'Failed'")
        return v


class PaymentOut(BaseModel):
    id: int
    group_id: int
    sender_id: int
    receiver_id: int
    amount: float
    mode: Optional[PaymentModeEnum] = None
    status: PaymentStatusEnum = Field(PaymentStatusEnum.pending)
    created_at: datetime
    settled_at: Optional[datetime] = None

    class Config:
        from_attributes = True
