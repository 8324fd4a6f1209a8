# billsplit/models/payment.py
# -----------------------------------------------------------------------------
# MODEL: Payment (SQLAlchemy): money actually sent between two group members
# -----------------------------------------------------------------------------
# Lifecycle: Pending -> Success | Failed. Only Success payments move balances.
# -----------------------------------------------------------------------------

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    ForeignKey,
    Numeric,
    DateTime,
    Enum,
    Index,
    text,
)
from sqlalchemy.orm import relationship

from billsplit.db import Base


class PaymentStatus(str, enum.Enum):
    pending = "Pending"
    success = "Success"
    failed = "Failed"


class PaymentMode(str, enum.Enum):
    upi = "UPI"
    paypal = "PayPal"
    stripe = "Stripe"


def _values(e):
    return [m.value for m in e]


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)

    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False, comment="Debtor paying")
    receiver_id = Column(Integer, ForeignKey("users.id"), nullable=False, comment="Creditor being paid")

    amount = Column(Numeric(18, 6), nullable=False)

    mode = Column(
        Enum(PaymentMode, name="payment_mode", values_callable=_values),
        nullable=True,
        comment="How it was paid: UPI|PayPal|Stripe (set on settle)",
    )

    status = Column(
        Enum(PaymentStatus, name="payment_status", values_callable=_values),
        nullable=False,
        default=PaymentStatus.pending,
        server_default=text("'Pending'"),
    )

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    settled_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_payments_group_status", "group_id", "status"),
        Index("ix_payments_sender", "sender_id"),
        Index("ix_payments_receiver", "receiver_id"),
    )

    sender = relationship("User", foreign_keys=[sender_id], lazy="joined")
    receiver = relationship("User", foreign_keys=[receiver_id], lazy="joined")
