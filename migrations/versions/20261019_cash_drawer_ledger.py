"""Cash drawer ledger and transfer requests

Revision ID: 20261019_cash_ledger
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_cash_ledger"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "cash_drawers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("owner_id", sa.String(length=64), nullable=False),
        sa.Column("drawer_name", sa.String(length=128), nullable=False),
        sa.Column("location_name", sa.String(length=128), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("suspended_from_status", sa.String(length=16), nullable=True),
        sa.Column("suspension_reason", sa.Text(), nullable=True),
        sa.Column("opening_balance_cents", sa.Integer(), nullable=False),
        sa.Column("current_balance_cents", sa.Integer(), nullable=False),
        sa.Column("last_sequence_number", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("opened_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_cash_drawers_tenant_id", "cash_drawers", ["tenant_id"])
    op.create_index("ix_cash_drawers_owner_id", "cash_drawers", ["owner_id"])
    op.create_index("ix_cash_drawers_status", "cash_drawers", ["status"])
    op.create_index("ix_cash_drawers_is_active", "cash_drawers", ["is_active"])
    op.create_index("ix_cash_drawers_tenant_owner", "cash_drawers", ["tenant_id", "owner_id"])
    op.create_index(
        "uq_cash_drawers_active_owner",
        "cash_drawers",
        ["tenant_id", "owner_id"],
        unique=True,
        sqlite_where=sa.text("is_active = 1"),
        postgresql_where=sa.text("is_active"),
    )

    op.create_table(
        "transfer_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("transfer_type", sa.String(length=16), nullable=False),
        sa.Column("reference_number", sa.String(length=32), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("rejection_reason", sa.String(length=64), nullable=True),
        sa.Column("from_actor_id", sa.String(length=64), nullable=False),
        sa.Column("to_actor_id", sa.String(length=64), nullable=True),
        sa.Column("created_by_actor_id", sa.String(length=64), nullable=False),
        sa.Column("from_drawer_id", sa.Integer(), sa.ForeignKey("cash_drawers.id"), nullable=False),
        sa.Column("to_drawer_id", sa.Integer(), sa.ForeignKey("cash_drawers.id"), nullable=True),
        sa.Column("to_external_account_id", sa.String(length=128), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("responded_by_actor_id", sa.String(length=64), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("tenant_id", "reference_number", name="uq_transfer_requests_tenant_ref"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_transfer_requests_tenant_id", "transfer_requests", ["tenant_id"])
    op.create_index("ix_transfer_requests_transfer_type", "transfer_requests", ["transfer_type"])
    op.create_index("ix_transfer_requests_status", "transfer_requests", ["status"])
    op.create_index("ix_transfer_requests_from_actor_id", "transfer_requests", ["from_actor_id"])
    op.create_index("ix_transfer_requests_to_actor_id", "transfer_requests", ["to_actor_id"])
    op.create_index("ix_transfer_requests_from_drawer_id", "transfer_requests", ["from_drawer_id"])
    op.create_index("ix_transfer_requests_to_drawer_id", "transfer_requests", ["to_drawer_id"])
    op.create_index("ix_transfer_requests_created_at", "transfer_requests", ["created_at"])
    op.create_index("ix_transfer_requests_tenant_status", "transfer_requests", ["tenant_id", "status"])
    op.create_index("ix_transfer_requests_tenant_created", "transfer_requests", ["tenant_id", "created_at"])

    op.create_table(
        "cash_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("drawer_id", sa.Integer(), sa.ForeignKey("cash_drawers.id"), nullable=False),
        sa.Column("sequence_number", sa.Integer(), nullable=False),
        sa.Column("kind", sa.String(length=32), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("balance_after_cents", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("reference_type", sa.String(length=64), nullable=True),
        sa.Column("reference_id", sa.String(length=64), nullable=True),
        sa.Column("related_transfer_id", sa.Integer(), sa.ForeignKey("transfer_requests.id"), nullable=True),
        sa.Column("performed_by_actor_id", sa.String(length=64), nullable=False),
        sa.Column("approved_by_actor_id", sa.String(length=64), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("drawer_id", "sequence_number", name="uq_cash_transactions_drawer_seq"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_cash_transactions_tenant_id", "cash_transactions", ["tenant_id"])
    op.create_index("ix_cash_transactions_drawer_id", "cash_transactions", ["drawer_id"])
    op.create_index("ix_cash_transactions_kind", "cash_transactions", ["kind"])
    op.create_index("ix_cash_transactions_related_transfer_id", "cash_transactions", ["related_transfer_id"])
    op.create_index("ix_cash_transactions_occurred_at", "cash_transactions", ["occurred_at"])
    op.create_index("ix_cash_transactions_drawer_occurred", "cash_transactions", ["drawer_id", "occurred_at"])

    op.create_table(
        "reference_sequences",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("sequence_type", sa.String(length=32), nullable=False),
        sa.Column("next_number", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("tenant_id", "sequence_type", name="uq_reference_sequences_tenant_type"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_reference_sequences_tenant_id", "reference_sequences", ["tenant_id"])


def downgrade():
    op.drop_table("reference_sequences")
    op.drop_table("cash_transactions")
    op.drop_table("transfer_requests")
    op.drop_table("cash_drawers")
