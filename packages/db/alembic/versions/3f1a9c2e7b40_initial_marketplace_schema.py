# This project was developed with assistance from AI tools.
"""initial marketplace schema

Revision ID: 3f1a9c2e7b40
Revises:
Create Date: 2026-10-18 09:12:41.508311

"""

import sqlalchemy as sa
from alembic import op

revision = "3f1a9c2e7b40"
down_revision = None
branch_labels = None
depends_on = None

TRIGGER_FUNCTION = """
CREATE OR REPLACE FUNCTION audit_events_prevent_mutation()
RETURNS TRIGGER AS $$
BEGIN
    RAISE EXCEPTION 'audit_events is append-only: % denied for row %', TG_OP, OLD.id;
    RETURN NULL;
END;
$$ LANGUAGE plpgsql;
"""

TRIGGER_UPDATE = """
CREATE TRIGGER audit_events_no_update
    BEFORE UPDATE ON audit_events
    FOR EACH ROW
    EXECUTE FUNCTION audit_events_prevent_mutation();
"""

TRIGGER_DELETE = """
CREATE TRIGGER audit_events_no_delete
    BEFORE DELETE ON audit_events
    FOR EACH ROW
    EXECUTE FUNCTION audit_events_prevent_mutation();
"""


def _timestamps(*, updated: bool = True) -> list[sa.Column]:
    cols = [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]
    if updated:
        cols.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                server_default=sa.func.now(),
                nullable=False,
            )
        )
    return cols


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("udyam_id", sa.String(64), nullable=False),
        sa.Column("phone_number", sa.String(32), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("udyam_id"),
    )
    op.create_index("ix_users_udyam_id", "users", ["udyam_id"])

    op.create_table(
        "borrower_profiles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("udyam_id", sa.String(64), nullable=False),
        sa.Column("profile", sa.JSON(), nullable=True),
        sa.Column("finance", sa.JSON(), nullable=True),
        sa.Column("loan", sa.JSON(), nullable=True),
        sa.Column("assessment", sa.JSON(), nullable=True),
        sa.Column("credit_score", sa.Integer(), nullable=True),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("udyam_id"),
    )
    op.create_index("ix_borrower_profiles_udyam_id", "borrower_profiles", ["udyam_id"])

    op.create_table(
        "lender_profiles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("udyam_id", sa.String(64), nullable=False),
        sa.Column("preferences", sa.JSON(), nullable=True),
        sa.Column("wallet_address", sa.String(128), nullable=True),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("udyam_id"),
    )
    op.create_index("ix_lender_profiles_udyam_id", "lender_profiles", ["udyam_id"])

    op.create_table(
        "pools",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("borrower_id", sa.String(64), nullable=False),
        sa.Column("borrower_name", sa.String(255), nullable=False),
        sa.Column("profile", sa.JSON(), nullable=False),
        sa.Column("finance", sa.JSON(), nullable=False),
        sa.Column("industry", sa.String(32), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("purpose", sa.String(32), nullable=False),
        sa.Column("tenure_months", sa.Integer(), nullable=False),
        sa.Column("interest_min", sa.Numeric(5, 2), nullable=True),
        sa.Column("interest_max", sa.Numeric(5, 2), nullable=True),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("default_probability", sa.Float(), nullable=False),
        sa.Column("risk_category", sa.String(32), nullable=False),
        sa.Column("suggested_interest_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("eligible_pool_size", sa.Numeric(14, 2), nullable=False),
        sa.Column("reasoning", sa.Text(), nullable=True),
        sa.Column("total_funded", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_repaid", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("funded_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_pools_borrower_id", "pools", ["borrower_id"])
    op.create_index("ix_pools_status", "pools", ["status"])
    op.create_index("ix_pools_created_at", "pools", ["created_at"])
    op.create_index(
        "uq_pools_borrower_live",
        "pools",
        ["borrower_id"],
        unique=True,
        postgresql_where=sa.text("status NOT IN ('REPAID', 'CLOSED')"),
    )

    op.create_table(
        "pool_commitments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("pool_id", sa.String(32), nullable=False),
        sa.Column("lender_id", sa.String(64), nullable=False),
        sa.Column("lender_name", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("repayment_duration", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["pool_id"], ["pools.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_pool_commitments_pool_id", "pool_commitments", ["pool_id"])
    op.create_index("ix_pool_commitments_lender_id", "pool_commitments", ["lender_id"])

    op.create_table(
        "repayments",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("pool_id", sa.String(32), nullable=False),
        sa.Column("borrower_id", sa.String(64), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["pool_id"], ["pools.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_repayments_pool_id", "repayments", ["pool_id"])
    op.create_index("ix_repayments_borrower_id", "repayments", ["borrower_id"])
    op.create_index("ix_repayments_paid_at", "repayments", ["paid_at"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("user_email", sa.String(255), nullable=True),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("loan_id", sa.String(32), nullable=False),
        sa.Column("kind", sa.String(32), nullable=False),
        sa.Column("order_id", sa.String(64), nullable=False, server_default=""),
        sa.Column("payment_status", sa.String(32), nullable=False),
        sa.Column("payment_method", sa.String(32), nullable=False, server_default="Sandbox"),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_transactions_user_id", "transactions", ["user_id"])
    op.create_index("ix_transactions_loan_id", "transactions", ["loan_id"])
    op.create_index("ix_transactions_created_at", "transactions", ["created_at"])

    op.create_table(
        "sandbox_accounts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("balance", sa.Numeric(14, 2), nullable=False, server_default="0"),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_sandbox_accounts_email", "sandbox_accounts", ["email"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "timestamp", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("prev_hash", sa.String(64), nullable=True),
        sa.Column("user_id", sa.String(255), nullable=True),
        sa.Column("user_role", sa.String(50), nullable=True),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("pool_id", sa.String(32), nullable=True),
        sa.Column("event_data", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_events_event_type", "audit_events", ["event_type"])
    op.create_index("ix_audit_events_pool_id", "audit_events", ["pool_id"])

    op.execute(TRIGGER_FUNCTION)
    op.execute(TRIGGER_UPDATE)
    op.execute(TRIGGER_DELETE)

    op.create_table(
        "demo_data_manifest",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "seeded_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("config_hash", sa.String(64), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("demo_data_manifest")
    op.execute("DROP TRIGGER IF EXISTS audit_events_no_delete ON audit_events")
    op.execute("DROP TRIGGER IF EXISTS audit_events_no_update ON audit_events")
    op.execute("DROP FUNCTION IF EXISTS audit_events_prevent_mutation()")
    op.drop_table("audit_events")
    op.drop_table("notifications")
    op.drop_table("sandbox_accounts")
    op.drop_table("transactions")
    op.drop_table("repayments")
    op.drop_table("pool_commitments")
    op.drop_table("pools")
    op.drop_table("lender_profiles")
    op.drop_table("borrower_profiles")
    op.drop_table("users")
