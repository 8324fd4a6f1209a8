# billsplit/utils/groups.py
# SHARED GROUP HELPERS: guards, loaders and the bridge to the settle-up engine.

from __future__ import annotations

import os
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import HTTPException
from starlette import status
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from ..models.group import Group
from ..models.group_member import GroupMember
from ..models.contribution import Contribution
from ..models.payment import Payment, PaymentStatus
from ..models.user import User
from .balance import (
    Contribution as ContributionRecord,
    Payment as PaymentRecord,
    SettlePlan,
    build_settle_plan,
    round_money,
)

MONEY_DECIMALS = int(os.getenv("MONEY_DECIMALS", "2"))

# =========================
# BASIC GUARDS / LOADERS
# =========================

def get_group_or_404(db: Session, group_id: int, *, include_deleted: bool = False) -> Group:
    stmt = select(Group).where(Group.id == group_id)
    if not include_deleted:
        stmt = stmt.where(Group.deleted_at.is_(None))
    group = db.scalar(stmt)
    if not group:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")
    return group


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def is_member(db: Session, group_id: int, user_id: int) -> bool:
    return bool(db.scalar(
        select(func.count())
        .select_from(GroupMember)
        .where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id,
            GroupMember.deleted_at.is_(None),
        )
    ))


def require_membership(db: Session, group_id: int, user_id: int, *, include_deleted: bool = False) -> Group:
    """
    Checks active membership (deleted_at IS NULL).
    """
    group = get_group_or_404(db, group_id, include_deleted=include_deleted)
    if not is_member(db, group_id, user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is not a group member")
    return group


def ensure_group_open(group: Group) -> None:
    if group.deleted_at is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Group is deleted")
    if group.completed:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Group is completed")


def guard_mutation_for_member(db: Session, group_id: int, user_id: int) -> Group:
    # deleted groups answer 409 below rather than 404
    group = require_membership(db, group_id, user_id, include_deleted=True)
    ensure_group_open(group)
    return group


# =========================
# MEMBERS / CONTRIBUTIONS
# =========================

def get_group_member_ids(db: Session, group_id: int) -> List[int]:
    rows = db.execute(
        select(GroupMember.user_id)
        .where(
            GroupMember.group_id == group_id,
            GroupMember.deleted_at.is_(None),
        )
        .order_by(GroupMember.id.asc())
    ).all()
    return [uid for (uid,) in rows]


def get_group_contributions(db: Session, group_id: int) -> List[Contribution]:
    return list(db.scalars(
        select(Contribution)
        .where(Contribution.group_id == group_id, Contribution.is_deleted.is_(False))
        .order_by(Contribution.date.asc(), Contribution.id.asc())
    ).all())


def get_successful_payments(db: Session, group_id: int) -> List[Payment]:
    return list(db.scalars(
        select(Payment)
        .where(Payment.group_id == group_id, Payment.status == PaymentStatus.success)
        .order_by(Payment.id.asc())
    ).all())


def get_user_names(db: Session, user_ids) -> Dict[int, str]:
    ids = set(user_ids)
    if not ids:
        return {}
    return {u.id: u.name for u in db.scalars(select(User).where(User.id.in_(ids))).all()}


# =========================
# SETTLE-UP BRIDGE
# =========================

def build_group_settle_plan(
    db: Session,
    group_id: int,
    *,
    include_idle: bool = True,
    include_payments: bool = True,
    exclude_member: Optional[int] = None,
) -> SettlePlan:
    """
    Loads a group's contributions (and, optionally, its successful payments)
    and runs the settle-up engine on them.

    include_idle=True enrols every active member, so members who paid nothing
    owe their full fair share. exclude_member drops one user from that
    roster, which previews the plan after the user leaves.
    """
    records = [
        ContributionRecord(member=c.member_id, amount=Decimal(c.amount), category=c.category)
        for c in get_group_contributions(db, group_id)
    ]
    members = None
    if include_idle:
        members = [uid for uid in get_group_member_ids(db, group_id) if uid != exclude_member]
    payments = []
    if include_payments:
        payments = [
            PaymentRecord(sender=p.sender_id, receiver=p.receiver_id, amount=Decimal(p.amount))
            for p in get_successful_payments(db, group_id)
        ]
    return build_settle_plan(records, members=members, payments=payments)


def plan_to_dict(db: Session, group_id: int, plan: SettlePlan) -> Dict:
    names = get_user_names(db, [b.member for b in plan.balances])
    d = MONEY_DECIMALS
    balances = [
        {
            "user_id": b.member,
            "name": names.get(b.member),
            "total_paid": float(round_money(b.total_paid, d)),
            "fair_share": float(round_money(b.fair_share, d)),
            "balance": float(round_money(b.balance, d)),
        }
        for b in plan.balances
    ]
    transfers = []
    for t in plan.transfers:
        amount = round_money(t.amount, d)
        if amount <= 0:
            # sub-cent residue, nothing to pay
            continue
        transfers.append({
            "from_user_id": t.from_member,
            "to_user_id": t.to_member,
            "from_name": names.get(t.from_member),
            "to_name": names.get(t.to_member),
            "amount": float(amount),
        })
    return {"group_id": group_id, "balances": balances, "transfers": transfers}


def has_group_debts(db: Session, group_id: int) -> bool:
    """
    True if the settle-up plan still has at least one payable transfer.
    """
    plan = build_group_settle_plan(db, group_id)
    threshold = Decimal("1").scaleb(-MONEY_DECIMALS)
    return any(t.amount >= threshold / 2 for t in plan.transfers)


def has_pending_payments(db: Session, group_id: int) -> bool:
    return bool(db.scalar(
        select(func.count())
        .select_from(Payment)
        .where(Payment.group_id == group_id, Payment.status == PaymentStatus.pending)
    ))


def _rounded_balances(plan: SettlePlan) -> Dict[int, Decimal]:
    return {b.member: round_money(b.balance, MONEY_DECIMALS) for b in plan.balances}


def ensure_member_can_be_removed(db: Session, group_id: int, user_id: int) -> None:
    """
    A member may leave only with a settled balance, and only if dropping them
    from the roster leaves everyone else's balance where it was (the roster
    size drives the fair share).
    """
    before = _rounded_balances(build_group_settle_plan(db, group_id))
    after = _rounded_balances(build_group_settle_plan(db, group_id, exclude_member=user_id))
    zero = Decimal("0")
    if before.get(user_id, zero) != zero or any(
        before.get(m, zero) != after.get(m, zero) for m in set(before) | set(after)
    ):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Member has unsettled balance and cannot be removed.",
        )


def ensure_group_can_be_deleted(db: Session, group_id: int) -> None:
    if has_group_debts(db, group_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Group has unsettled balances and cannot be deleted.",
        )
