"""initial schema: users, groups, group_members, contributions, payments

Creates the tables the settle-up endpoints read from.
"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


GROUP_TYPE = sa.Enum("Friends", "Trip", "Home", "Work", "Other", name="group_type")
PAYMENT_MODE = sa.Enum("UPI", "PayPal", "Stripe", name="payment_mode")
PAYMENT_STATUS = sa.Enum("Pending", "Success", "Failed", name="payment_status")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_name", "users", ["name"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "groups",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("type", GROUP_TYPE, nullable=False, server_default=sa.text("'Friends'")),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_groups_id", "groups", ["id"])
    op.create_index("ix_groups_name", "groups", ["name"])
    op.create_index("ix_groups_deleted_at", "groups", ["deleted_at"])
    op.create_index("ix_groups_owner_id", "groups", ["owner_id"])

    op.create_table(
        "group_members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("group_id", sa.Integer(), sa.ForeignKey("groups.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
    )
    op.create_index("ix_group_members_id", "group_members", ["id"])
    op.create_index("ix_group_members_group_id", "group_members", ["group_id"])
    op.create_index("ix_group_members_user_id", "group_members", ["user_id"])
    op.create_index("ix_group_members_deleted_at", "group_members", ["deleted_at"])
    op.create_index("ix_group_members_group_active", "group_members", ["group_id", "deleted_at"])

    op.create_table(
        "contributions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("group_id", sa.Integer(), sa.ForeignKey("groups.id"), nullable=False),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("amount", sa.Numeric(18, 6), nullable=False),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("date", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("comment", sa.String(), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_contributions_id", "contributions", ["id"])
    op.create_index("ix_contributions_group_date", "contributions", ["group_id", "date"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("group_id", sa.Integer(), sa.ForeignKey("groups.id"), nullable=False),
        sa.Column("sender_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("receiver_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("amount", sa.Numeric(18, 6), nullable=False),
        sa.Column("mode", PAYMENT_MODE, nullable=True),
        sa.Column("status", PAYMENT_STATUS, nullable=False, server_default=sa.text("'Pending'")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("settled_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_payments_id", "payments", ["id"])
    op.create_index("ix_payments_group_status", "payments", ["group_id", "status"])
    op.create_index("ix_payments_sender", "payments", ["sender_id"])
    op.create_index("ix_payments_receiver", "payments", ["receiver_id"])


def downgrade() -> None:
    op.drop_table("payments")
    op.drop_table("contributions")
    op.drop_table("group_members")
    op.drop_table("groups")
    op.drop_table("users")

    bind = op.get_bind()
    PAYMENT_STATUS.drop(bind, checkfirst=True)
    PAYMENT_MODE.drop(bind, checkfirst=True)
    GROUP_TYPE.drop(bind, checkfirst=True)
