from __future__ import annotations

from ..extensions import db
from cashdesk.time_utils import to_utc_z

# Transfer kinds (tag of the request variant)
TRANSFER_TYPE_DRAWER = "DRAWER"
TRANSFER_TYPE_ACCOUNT = "ACCOUNT"
TRANSFER_TYPES = (TRANSFER_TYPE_DRAWER, TRANSFER_TYPE_ACCOUNT)

# Transfer status
TRANSFER_STATUS_PENDING = "PENDING"
TRANSFER_STATUS_APPROVED = "APPROVED"
TRANSFER_STATUS_REJECTED = "REJECTED"
TRANSFER_STATUS_CANCELLED = "CANCELLED"
TRANSFER_STATUSES = (
    TRANSFER_STATUS_PENDING,
    TRANSFER_STATUS_APPROVED,
    TRANSFER_STATUS_REJECTED,
    TRANSFER_STATUS_CANCELLED,
)
TERMINAL_TRANSFER_STATUSES = frozenset(TRANSFER_STATUSES) - {TRANSFER_STATUS_PENDING}

# Why a request ended REJECTED without an explicit reject decision
REJECTION_INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
REJECTION_SOURCE_UNAVAILABLE = "SOURCE_DRAWER_UNAVAILABLE"
REJECTION_DESTINATION_UNAVAILABLE = "DESTINATION_DRAWER_UNAVAILABLE"


class TransferRequest(db.Model):
    """
    Request to move cash out of a drawer, pending approval.

    VARIANTS (transfer_type tag):
    - DRAWER: drawer -> drawer; approval writes TRANSFER_OUT and TRANSFER_IN
      journal entries in one transaction.
    - ACCOUNT: drawer -> external bank/payment account; approval only updates
      this envelope, settlement happens outside the ledger.

    LIFECYCLE:
    PENDING -> APPROVED | REJECTED | CANCELLED (all terminal)

    CONCURRENCY: the PENDING -> terminal step is a conditional UPDATE keyed on
    status = 'PENDING'; exactly one caller can win it.
    """
    __tablename__ = "transfer_requests"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "reference_number", name="uq_transfer_requests_tenant_ref"),
        db.Index("ix_transfer_requests_tenant_status", "tenant_id", "status"),
        db.Index("ix_transfer_requests_tenant_created", "tenant_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.String(64), nullable=False, index=True)
    transfer_type = db.Column(db.String(16), nullable=False, index=True)

    # e.g. "CT-000001" / "AT-000001", unique per tenant
    reference_number = db.Column(db.String(32), nullable=False)

    amount_cents = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=TRANSFER_STATUS_PENDING, index=True)
    rejection_reason = db.Column(db.String(64), nullable=True)

    from_actor_id = db.Column(db.String(64), nullable=False, index=True)
    to_actor_id = db.Column(db.String(64), nullable=True, index=True)
    created_by_actor_id = db.Column(db.String(64), nullable=False)

    from_drawer_id = db.Column(db.Integer, db.ForeignKey("cash_drawers.id"), nullable=False, index=True)
    # DRAWER variant only
    to_drawer_id = db.Column(db.Integer, db.ForeignKey("cash_drawers.id"), nullable=True, index=True)
    # ACCOUNT variant only; opaque foreign key into the bank/payment-method registry
    to_external_account_id = db.Column(db.String(128), nullable=True)

    reason = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    responded_at = db.Column(db.DateTime(timezone=True), nullable=True)
    responded_by_actor_id = db.Column(db.String(64), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    from_drawer = db.relationship("CashDrawer", foreign_keys=[from_drawer_id])
    to_drawer = db.relationship("CashDrawer", foreign_keys=[to_drawer_id])

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TRANSFER_STATUSES

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "transfer_type": self.transfer_type,
            "reference_number": self.reference_number,
            "amount_cents": self.amount_cents,
            "status": self.status,
            "rejection_reason": self.rejection_reason,
            "from_actor_id": self.from_actor_id,
            "to_actor_id": self.to_actor_id,
            "created_by_actor_id": self.created_by_actor_id,
            "from_drawer_id": self.from_drawer_id,
            "reason": self.reason,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "responded_at": to_utc_z(self.responded_at),
            "responded_by_actor_id": self.responded_by_actor_id,
            "updated_at": to_utc_z(self.updated_at),
        }
        if self.transfer_type == TRANSFER_TYPE_DRAWER:
            data["to_drawer_id"] = self.to_drawer_id
        else:
            data["to_external_account_id"] = self.to_external_account_id
        return data


class ReferenceSequence(db.Model):
    """
    Atomic per-tenant reference-number sequences.

    WHY: Prevent race conditions when numbering transfer requests.
    """
    __tablename__ = "reference_sequences"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "sequence_type", name="uq_reference_sequences_tenant_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.String(64), nullable=False, index=True)
    sequence_type = db.Column(db.String(32), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
