# billsplit/models/contribution.py
# -----------------------------------------------------------------------------
# MODEL: Contribution (SQLAlchemy): one member paying into a group's spend
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    Numeric,
    DateTime,
    Boolean,
    Index,
)
from sqlalchemy.orm import relationship

from billsplit.db import Base


class Contribution(Base):
    __tablename__ = "contributions"

    id = Column(Integer, primary_key=True, index=True)

    group_id = Column(
        Integer,
        ForeignKey("groups.id"),
        nullable=False,
        comment="Group the contribution belongs to",
    )

    member_id = Column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        comment="Who paid",
    )

    amount = Column(
        Numeric(18, 6),
        nullable=False,
        comment="Amount paid (NUMERIC(18,6)), single implicit currency",
    )

    category = Column(
        String,
        nullable=True,
        comment="Free-form category (Food, Transport, ...); ignored by settle-up",
    )

    date = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        comment="When the expense happened",
    )

    comment = Column(String, nullable=True)

    is_deleted = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="Soft-delete flag",
    )

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_contributions_group_date", "group_id", "date"),
    )

    group = relationship("Group")
    member = relationship("User", lazy="joined")
