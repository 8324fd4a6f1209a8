# billsplit/models/group.py
# -----------------------------------------------------------------------------
# MODEL: Group (SQLAlchemy)
# -----------------------------------------------------------------------------

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    Enum,
    DateTime,
    Boolean,
    Index,
    text,
)
from sqlalchemy.orm import relationship

from billsplit.db import Base


class GroupType(str, enum.Enum):
    friends = "Friends"
    trip = "Trip"
    home = "Home"
    work = "Work"
    other = "Other"


class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    description = Column(String, default="")

    type = Column(
        Enum(GroupType, name="group_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=GroupType.friends,
        server_default=text("'Friends'"),
        comment="Group kind shown in the UI: Friends|Trip|Home|Work|Other",
    )

    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    owner = relationship("User")

    completed = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
        comment="Completed groups accept no new contributions or payments",
    )

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    deleted_at = Column(
        DateTime(timezone=True),
        nullable=True,
        comment="Soft-delete marker; group is hidden when not NULL",
    )

    members = relationship(
        "GroupMember",
        primaryjoin="and_(Group.id == GroupMember.group_id, GroupMember.deleted_at.is_(None))",
        viewonly=True,
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_groups_deleted_at", "deleted_at"),
        Index("ix_groups_owner_id", "owner_id"),
    )
