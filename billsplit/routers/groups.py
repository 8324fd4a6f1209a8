# billsplit/routers/groups.py
# -----------------------------------------------------------------------------
# ROUTER: Groups (+ members, balances, settle-up, summary)
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette import status
from sqlalchemy import select
from sqlalchemy.orm import Session

from billsplit.db import get_db
from billsplit.models.group import Group, GroupType
from billsplit.models.group_member import GroupMember
from billsplit.schemas.group import GroupCreate, GroupOut, GroupUpdate, GroupSummaryOut
from billsplit.schemas.group_member import GroupMemberCreate, GroupMemberOut
from billsplit.schemas.settlement import MemberBalanceOut, SettlePlanOut
from billsplit.utils.balance import round_money
from billsplit.utils.groups import (
    MONEY_DECIMALS,
    get_group_or_404,
    get_user_or_404,
    ensure_group_open,
    get_group_contributions,
    build_group_settle_plan,
    plan_to_dict,
    has_group_debts,
    has_pending_payments,
    ensure_member_can_be_removed,
    ensure_group_can_be_deleted,
)

log = logging.getLogger(__name__)

router = APIRouter()

RECENT_LIMIT = 5

# ===== Helpers ================================================================

def add_member_to_group(db: Session, group_id: int, user_id: int) -> GroupMember:
    """
    Idempotent add:
      - already active: nothing to do;
      - soft-deleted row exists: reactivate it (deleted_at=NULL);
      - otherwise create a new row.
    Does not commit.
    """
    exists = db.scalar(
        select(GroupMember).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id,
        )
    )
    if exists:
        if exists.deleted_at is not None:
            exists.deleted_at = None
            db.add(exists)
        return exists

    member = GroupMember(group_id=group_id, user_id=user_id)
    db.add(member)
    return member


# ===== Create / list / detail =================================================

@router.post("/", response_model=GroupOut, status_code=status.HTTP_201_CREATED)
def create_group(payload: GroupCreate, db: Session = Depends(get_db)):
    get_user_or_404(db, payload.owner_id)
    member_ids = [uid for uid in dict.fromkeys(payload.member_ids) if uid != payload.owner_id]
    for uid in member_ids:
        get_user_or_404(db, uid)

    group = Group(
        name=payload.name,
        description=payload.description or "",
        type=GroupType(payload.type.value),
        owner_id=payload.owner_id,
    )
    db.add(group)
    db.flush()

    # owner is always the first member
    add_member_to_group(db, group.id, payload.owner_id)
    for uid in member_ids:
        add_member_to_group(db, group.id, uid)

    db.commit()
    db.refresh(group)
    log.info("group %s created by user %s with %d members", group.id, group.owner_id, len(member_ids) + 1)
    return group


@router.get("/", response_model=List[GroupOut])
def list_groups(
    user_id: Optional[int] = Query(None, description="Only groups where this user is an active member"),
    db: Session = Depends(get_db),
):
    stmt = select(Group).where(Group.deleted_at.is_(None))
    if user_id is not None:
        stmt = stmt.join(GroupMember, GroupMember.group_id == Group.id).where(
            GroupMember.user_id == user_id,
            GroupMember.deleted_at.is_(None),
        )
    return list(db.scalars(stmt.order_by(Group.id.asc())).all())


@router.get("/{group_id}", response_model=GroupOut)
def group_detail(group_id: int, db: Session = Depends(get_db)):
    return get_group_or_404(db, group_id)


@router.patch("/{group_id}", response_model=GroupOut)
def update_group(group_id: int, payload: GroupUpdate, db: Session = Depends(get_db)):
    """
    Edit name/description and the completed flag.
    A group can only be completed once its settle-up plan is empty and no
    payment is still Pending.
    """
    group = get_group_or_404(db, group_id)

    if payload.name is not None:
        name = payload.name.strip()
        if not name:
            raise HTTPException(status_code=422, detail="Group name must not be empty")
        group.name = name
    if payload.description is not None:
        group.description = payload.description
    if payload.completed is not None and payload.completed != group.completed:
        if payload.completed and has_group_debts(db, group_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Group has outstanding debts and cannot be completed",
            )
        if payload.completed and has_pending_payments(db, group_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Group has pending payments and cannot be completed",
            )
        group.completed = payload.completed

    db.add(group)
    db.commit()
    db.refresh(group)
    return group


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def soft_delete_group(group_id: int, db: Session = Depends(get_db)):
    group = get_group_or_404(db, group_id)
    ensure_group_can_be_deleted(db, group_id)
    group.deleted_at = datetime.now(timezone.utc)
    db.add(group)
    db.commit()
    log.info("group %s soft-deleted", group_id)


# ===== Members ================================================================

@router.post("/{group_id}/members", response_model=GroupMemberOut, status_code=status.HTTP_201_CREATED)
def add_member(group_id: int, payload: GroupMemberCreate, db: Session = Depends(get_db)):
    group = get_group_or_404(db, group_id)
    ensure_group_open(group)
    get_user_or_404(db, payload.user_id)

    member = add_member_to_group(db, group_id, payload.user_id)
    db.commit()
    db.refresh(member)
    return member


@router.delete("/{group_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(group_id: int, user_id: int, db: Session = Depends(get_db)):
    group = get_group_or_404(db, group_id)
    ensure_group_open(group)
    if user_id == group.owner_id:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Owner cannot leave the group")

    member = db.scalar(
        select(GroupMember).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id,
            GroupMember.deleted_at.is_(None),
        )
    )
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    ensure_member_can_be_removed(db, group_id, user_id)

    member.deleted_at = datetime.now(timezone.utc)
    db.add(member)
    db.commit()


# ===== Balances / Settle-up ===================================================

@router.get("/{group_id}/balances", response_model=List[MemberBalanceOut])
def get_group_balances(
    group_id: int,
    include_idle: bool = Query(True, description="Count members who paid nothing as owing their fair share"),
    include_payments: bool = Query(True, description="Apply successful payments to the balances"),
    db: Session = Depends(get_db),
):
    get_group_or_404(db, group_id, include_deleted=True)
    plan = build_group_settle_plan(db, group_id, include_idle=include_idle, include_payments=include_payments)
    return plan_to_dict(db, group_id, plan)["balances"]


@router.get("/{group_id}/settle-up", response_model=SettlePlanOut)
def get_group_settle_up(
    group_id: int,
    include_idle: bool = Query(True, description="Count members who paid nothing as owing their fair share"),
    include_payments: bool = Query(True, description="Apply successful payments before planning"),
    db: Session = Depends(get_db),
):
    """
    "Who owes whom": balances plus the greedy transfer plan that settles them.
    """
    get_group_or_404(db, group_id, include_deleted=True)
    plan = build_group_settle_plan(db, group_id, include_idle=include_idle, include_payments=include_payments)
    return plan_to_dict(db, group_id, plan)


@router.get("/{group_id}/summary", response_model=GroupSummaryOut)
def get_group_summary(group_id: int, db: Session = Depends(get_db)):
    get_group_or_404(db, group_id, include_deleted=True)
    contributions = get_group_contributions(db, group_id)

    total = Decimal("0")
    by_category = defaultdict(Decimal)
    for c in contributions:
        amount = Decimal(c.amount)
        total += amount
        by_category[c.category or "Uncategorized"] += amount

    recent = sorted(contributions, key=lambda c: (c.date, c.id), reverse=True)[:RECENT_LIMIT]
    return {
        "group_id": group_id,
        "total_spent": float(round_money(total, MONEY_DECIMALS)),
        "contributions_count": len(contributions),
        "by_category": {k: float(round_money(v, MONEY_DECIMALS)) for k, v in sorted(by_category.items())},
        "recent": recent,
    }
