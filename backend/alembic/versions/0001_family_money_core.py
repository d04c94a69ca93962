"""create users, transactions and push subscriptions

Revision ID: 0001_family_money_core
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_family_money_core"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("Name", sa.String(length=120), nullable=False),
        sa.Column("PasswordHash", sa.String(length=255), nullable=False),
        sa.Column("Role", sa.String(length=20), nullable=False),
        sa.Column(
            "CreatedAt",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("Name", name="uq_users_name"),
    )
    op.create_index("ix_users_name", "users", ["Name"])

    op.create_table(
        "transactions",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("Description", sa.String(length=255), nullable=False),
        sa.Column("Amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("Type", sa.String(length=20), nullable=False),
        sa.Column("ChildName", sa.String(length=120), nullable=False),
        sa.Column("Status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("ApprovedBy", sa.String(length=120), nullable=True),
        sa.Column(
            "CreatedAt",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("Amount > 0", name="ck_transactions_amount_positive"),
    )
    op.create_index("ix_transactions_child_created", "transactions", ["ChildName", "CreatedAt"])

    op.create_table(
        "push_subscriptions",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("UserId", sa.Integer(), nullable=False),
        sa.Column("Endpoint", sa.String(length=500), nullable=False),
        sa.Column("SubscriptionJson", sa.Text(), nullable=False),
        sa.Column("LastError", sa.String(length=255), nullable=True),
        sa.Column("LastDeliveredAt", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "CreatedAt",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "UpdatedAt",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("Endpoint", name="uq_push_subscriptions_endpoint"),
    )
    op.create_index("ix_push_subscriptions_user_id", "push_subscriptions", ["UserId"])


def downgrade() -> None:
    op.drop_index("ix_push_subscriptions_user_id", table_name="push_subscriptions")
    op.drop_table("push_subscriptions")

    op.drop_index("ix_transactions_child_created", table_name="transactions")
    op.drop_table("transactions")

    op.drop_index("ix_users_name", table_name="users")
    op.drop_table("users")
