from __future__ import annotations

from ..extensions import db
from cashdesk.time_utils import to_utc_z

# Drawer status
DRAWER_STATUS_CLOSED = "CLOSED"
DRAWER_STATUS_OPEN = "OPEN"
DRAWER_STATUS_SUSPENDED = "SUSPENDED"
DRAWER_STATUSES = (DRAWER_STATUS_CLOSED, DRAWER_STATUS_OPEN, DRAWER_STATUS_SUSPENDED)

# Journal entry kinds
ENTRY_SALE_PAYMENT = "SALE_PAYMENT"
ENTRY_CHANGE_ISSUED = "CHANGE_ISSUED"
ENTRY_TRANSFER_IN = "TRANSFER_IN"
ENTRY_TRANSFER_OUT = "TRANSFER_OUT"
ENTRY_BANK_DEPOSIT = "BANK_DEPOSIT"
ENTRY_EXPENSE_PAYMENT = "EXPENSE_PAYMENT"
ENTRY_ADJUSTMENT = "ADJUSTMENT"
ENTRY_OPENING_BALANCE = "OPENING_BALANCE"
ENTRY_CLOSING_BALANCE = "CLOSING_BALANCE"
ENTRY_KINDS = (
    ENTRY_SALE_PAYMENT,
    ENTRY_CHANGE_ISSUED,
    ENTRY_TRANSFER_IN,
    ENTRY_TRANSFER_OUT,
    ENTRY_BANK_DEPOSIT,
    ENTRY_EXPENSE_PAYMENT,
    ENTRY_ADJUSTMENT,
    ENTRY_OPENING_BALANCE,
    ENTRY_CLOSING_BALANCE,
)


class CashDrawer(db.Model):
    """
    Physical cash balance owned by one operator/location inside a tenant.

    LIFECYCLE:
    - CLOSED: no journal writes accepted (initial state)
    - OPEN: accepts sales, payouts, transfers
    - SUSPENDED: administrative hold, blocks every mutation

    INVARIANT: current_balance_cents equals opening_balance_cents plus the sum
    of journal amounts written after the latest OPENING_BALANCE entry.

    CONCURRENCY: version_id is an optimistic-locking column; every balance
    change bumps it, so two writers that read the same version cannot both
    commit (the loser gets StaleDataError and is retried).
    At most one active drawer per (tenant_id, owner_id) is enforced by a
    partial unique index.
    """
    __tablename__ = "cash_drawers"
    __table_args__ = (
        db.Index("ix_cash_drawers_tenant_owner", "tenant_id", "owner_id"),
        db.Index(
            "uq_cash_drawers_active_owner",
            "tenant_id",
            "owner_id",
            unique=True,
            sqlite_where=db.text("is_active = 1"),
            postgresql_where=db.text("is_active"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.String(64), nullable=False, index=True)
    owner_id = db.Column(db.String(64), nullable=False, index=True)

    drawer_name = db.Column(db.String(128), nullable=False, default="Main Cash Drawer")
    location_name = db.Column(db.String(128), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=DRAWER_STATUS_CLOSED, index=True)
    # Status to restore when a suspension is lifted
    suspended_from_status = db.Column(db.String(16), nullable=True)
    suspension_reason = db.Column(db.Text, nullable=True)

    # All amounts in cents
    opening_balance_cents = db.Column(db.Integer, nullable=False, default=0)
    current_balance_cents = db.Column(db.Integer, nullable=False, default=0)

    # Highest journal sequence number written for this drawer
    last_sequence_number = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    opened_at = db.Column(db.DateTime(timezone=True), nullable=True)
    closed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    version_id = db.Column(db.Integer, nullable=False, default=1)
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<CashDrawer id={self.id} owner={self.owner_id!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "owner_id": self.owner_id,
            "drawer_name": self.drawer_name,
            "location_name": self.location_name,
            "status": self.status,
            "suspension_reason": self.suspension_reason,
            "opening_balance_cents": self.opening_balance_cents,
            "current_balance_cents": self.current_balance_cents,
            "last_sequence_number": self.last_sequence_number,
            "is_active": self.is_active,
            "opened_at": to_utc_z(self.opened_at),
            "closed_at": to_utc_z(self.closed_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


class CashTransaction(db.Model):
    """
    Append-only journal entry for one drawer.

    IMMUTABLE: rows are inserted once and never updated or deleted.

    ORDERING: sequence_number is dense and strictly increasing per drawer;
    the unique constraint rejects a duplicate even if two writers race.

    CHAIN: balance_after(n) == balance_after(n-1) + amount_cents(n).
    """
    __tablename__ = "cash_transactions"
    __table_args__ = (
        db.UniqueConstraint("drawer_id", "sequence_number", name="uq_cash_transactions_drawer_seq"),
        db.Index("ix_cash_transactions_drawer_occurred", "drawer_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.String(64), nullable=False, index=True)
    drawer_id = db.Column(db.Integer, db.ForeignKey("cash_drawers.id"), nullable=False, index=True)
    sequence_number = db.Column(db.Integer, nullable=False)

    kind = db.Column(db.String(32), nullable=False, index=True)

    # Signed: positive adds cash to the drawer, negative removes it
    amount_cents = db.Column(db.Integer, nullable=False)
    balance_after_cents = db.Column(db.Integer, nullable=False)

    description = db.Column(db.Text, nullable=False, default="")

    # Free-form pointer to the originating document (sale, expense, bank slip...)
    reference_type = db.Column(db.String(64), nullable=True)
    reference_id = db.Column(db.String(64), nullable=True)

    related_transfer_id = db.Column(db.Integer, db.ForeignKey("transfer_requests.id"), nullable=True, index=True)

    performed_by_actor_id = db.Column(db.String(64), nullable=False)
    approved_by_actor_id = db.Column(db.String(64), nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    drawer = db.relationship("CashDrawer")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "drawer_id": self.drawer_id,
            "sequence_number": self.sequence_number,
            "kind": self.kind,
            "amount_cents": self.amount_cents,
            "balance_after_cents": self.balance_after_cents,
            "description": self.description,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "related_transfer_id": self.related_transfer_id,
            "performed_by_actor_id": self.performed_by_actor_id,
            "approved_by_actor_id": self.approved_by_actor_id,
            "occurred_at": to_utc_z(self.occurred_at),
            "created_at": to_utc_z(self.created_at),
        }
