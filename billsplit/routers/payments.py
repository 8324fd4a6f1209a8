# billsplit/routers/payments.py
# -----------------------------------------------------------------------------
# ROUTER: Payments (money actually sent between members; pending -> settled)
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette import status
from sqlalchemy import select, or_
from sqlalchemy.orm import Session

from billsplit.db import get_db
from billsplit.models.payment import Payment, PaymentMode, PaymentStatus
from billsplit.schemas.payment import PaymentCreate, PaymentOut, PaymentSettle
from billsplit.utils.groups import (
    get_group_or_404,
    ensure_group_open,
    guard_mutation_for_member,
    is_member,
)

log = logging.getLogger(__name__)

router = APIRouter()


def _user_payments(db: Session, user_id: int, statuses) -> List[Payment]:
    return list(db.scalars(
        select(Payment)
        .where(
            or_(Payment.sender_id == user_id, Payment.receiver_id == user_id),
            Payment.status.in_(statuses),
        )
        .order_by(Payment.created_at.desc(), Payment.id.desc())
    ).all())


@router.post("/", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def create_payment(payload: PaymentCreate, db: Session = Depends(get_db)):
    guard_mutation_for_member(db, payload.group_id, payload.sender_id)
    if not is_member(db, payload.group_id, payload.receiver_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Receiver is not a group member")

    payment = Payment(
        group_id=payload.group_id,
        sender_id=payload.sender_id,
        receiver_id=payload.receiver_id,
        amount=Decimal(payload.amount),
        status=PaymentStatus.pending,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    log.info("payment %s created: %s -> %s", payment.id, payment.sender_id, payment.receiver_id)
    return payment


@router.get("/pending", response_model=List[PaymentOut])
def get_pending_payments(user_id: int = Query(...), db: Session = Depends(get_db)):
    return _user_payments(db, user_id, [PaymentStatus.pending])


@router.get("/history", response_model=List[PaymentOut])
def get_payment_history(user_id: int = Query(...), db: Session = Depends(get_db)):
    return _user_payments(db, user_id, [PaymentStatus.success, PaymentStatus.failed])


@router.put("/{payment_id}/settle", response_model=PaymentOut)
def settle_payment(payment_id: int, payload: PaymentSettle, db: Session = Depends(get_db)):
    """
    Close a pending payment. Success payments are applied to the group's
    balances on the next settle-up; Failed ones are ignored.
    """
    payment = db.get(Payment, payment_id)
    if not payment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")
    if payment.status != PaymentStatus.pending:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Payment is already settled")
    # no balance moves once the group is completed or deleted
    ensure_group_open(get_group_or_404(db, payment.group_id, include_deleted=True))

    payment.status = PaymentStatus(payload.status.value)
    payment.mode = PaymentMode(payload.mode.value)
    payment.settled_at = datetime.now(timezone.utc)
    db.add(payment)
    db.commit()
    db.refresh(payment)
    log.info("payment %s settled: %s via %s", payment.id, payment.status.value, payment.mode.value)
    return payment
