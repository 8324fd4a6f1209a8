# billsplit/routers/contributions.py
# -----------------------------------------------------------------------------
# ROUTER: Contributions (who paid how much into a group)
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from starlette import status
from sqlalchemy.orm import Session

from billsplit.db import get_db
from billsplit.models.contribution import Contribution
from billsplit.schemas.contribution import ContributionCreate, ContributionOut
from billsplit.utils.groups import (
    get_group_or_404,
    guard_mutation_for_member,
    get_group_contributions,
    ensure_group_open,
)

log = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=ContributionOut, status_code=status.HTTP_201_CREATED)
def create_contribution(payload: ContributionCreate, db: Session = Depends(get_db)):
    """
    Only active members of an open group can contribute.
    """
    guard_mutation_for_member(db, payload.group_id, payload.member_id)

    contribution = Contribution(
        group_id=payload.group_id,
        member_id=payload.member_id,
        amount=Decimal(payload.amount),
        category=payload.category,
        date=payload.date,
        comment=payload.comment,
    )
    db.add(contribution)
    db.commit()
    db.refresh(contribution)
    log.info(
        "contribution %s: user %s paid %s in group %s",
        contribution.id, contribution.member_id, contribution.amount, contribution.group_id,
    )
    return contribution


@router.get("/group/{group_id}", response_model=List[ContributionOut])
def list_group_contributions(group_id: int, db: Session = Depends(get_db)):
    get_group_or_404(db, group_id, include_deleted=True)
    return get_group_contributions(db, group_id)


@router.delete("/{contribution_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contribution(contribution_id: int, db: Session = Depends(get_db)):
    contribution = db.get(Contribution, contribution_id)
    if not contribution or contribution.is_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contribution not found")

    ensure_group_open(get_group_or_404(db, contribution.group_id, include_deleted=True))

    contribution.is_deleted = True
    db.add(contribution)
    db.commit()
    log.info("contribution %s soft-deleted", contribution_id)
