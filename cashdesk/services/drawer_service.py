"""
Drawer lifecycle: create, open, close, suspend, and the journal writer.

WHY: A drawer is the physical cash an operator is accountable for. Every
change to its balance goes through append_entry, which is the only code
that writes CashTransaction rows or touches current_balance_cents.

DESIGN PRINCIPLES:
- One active drawer per (tenant, owner)
- Journal is append-only; balance_after chains entry to entry
- Closing does not touch pending transfer requests; the Arbiter re-checks
  drawer state when it resolves them
- Each public operation is one unit of work (run_with_retry): it either
  commits completely or leaves no trace
"""

from __future__ import annotations

from ..errors import InsufficientFundsError, InvalidStateError, NotFoundError, ValidationError
from ..extensions import db
from ..models import CashDrawer, CashTransaction
from ..models.drawers import (
    DRAWER_STATUS_CLOSED,
    DRAWER_STATUS_OPEN,
    DRAWER_STATUS_SUSPENDED,
    ENTRY_ADJUSTMENT,
    ENTRY_BANK_DEPOSIT,
    ENTRY_CHANGE_ISSUED,
    ENTRY_CLOSING_BALANCE,
    ENTRY_EXPENSE_PAYMENT,
    ENTRY_KINDS,
    ENTRY_OPENING_BALANCE,
    ENTRY_SALE_PAYMENT,
)
from ..time_utils import utcnow
from ..validation import clean_text, parse_amount_cents
from .concurrency import lock_for_update, run_with_retry
from .permission_service import (
    ActorContext,
    require_elevated,
    require_owner_or_elevated,
)


# Kinds callers may post directly; the rest belong to open/close/transfers
INFLOW_KINDS = frozenset({ENTRY_SALE_PAYMENT})
OUTFLOW_KINDS = frozenset({ENTRY_CHANGE_ISSUED, ENTRY_BANK_DEPOSIT, ENTRY_EXPENSE_PAYMENT})
SIGNED_KINDS = frozenset({ENTRY_ADJUSTMENT})
RECORDABLE_KINDS = INFLOW_KINDS | OUTFLOW_KINDS | SIGNED_KINDS


# =============================================================================
# LOOKUPS
# =============================================================================

def load_drawer(tenant_id: str, drawer_id: int, *, lock: bool = False) -> CashDrawer:
    """Tenant-scoped drawer lookup; a drawer in another tenant does not exist."""
    query = db.session.query(CashDrawer).filter_by(id=drawer_id, tenant_id=tenant_id)
    if lock:
        query = lock_for_update(query)
    drawer = query.first()
    if not drawer:
        raise NotFoundError(f"Drawer {drawer_id} not found")
    return drawer


def get_active_drawer_for_owner(tenant_id: str, owner_id: str) -> CashDrawer | None:
    return db.session.query(CashDrawer).filter_by(
        tenant_id=tenant_id,
        owner_id=owner_id,
        is_active=True,
    ).first()


# =============================================================================
# JOURNAL WRITER
# =============================================================================

def append_entry(
    drawer: CashDrawer,
    *,
    kind: str,
    amount_cents: int,
    description: str,
    actor_id: str,
    related_transfer_id: int | None = None,
    approved_by_actor_id: str | None = None,
    reference_type: str | None = None,
    reference_id: str | None = None,
) -> CashTransaction:
    """
    Append one journal entry and move the drawer balance with it.

    Runs inside the caller's transaction and does not commit. The drawer row
    carries a version column, so the flush fails with StaleDataError if
    another writer changed the drawer since it was read.
    """
    new_balance = drawer.current_balance_cents + amount_cents
    drawer.current_balance_cents = new_balance
    drawer.last_sequence_number = (drawer.last_sequence_number or 0) + 1

    entry = CashTransaction(
        tenant_id=drawer.tenant_id,
        drawer_id=drawer.id,
        sequence_number=drawer.last_sequence_number,
        kind=kind,
        amount_cents=amount_cents,
        balance_after_cents=new_balance,
        description=description,
        reference_type=reference_type,
        reference_id=reference_id,
        related_transfer_id=related_transfer_id,
        performed_by_actor_id=actor_id,
        approved_by_actor_id=approved_by_actor_id,
        occurred_at=utcnow(),
    )
    db.session.add(entry)
    return entry


# =============================================================================
# LIFECYCLE
# =============================================================================

def create_drawer(
    actor: ActorContext,
    *,
    owner_id: str | None = None,
    drawer_name: str | None = None,
    location_name: str | None = None,
) -> CashDrawer:
    """
    Create a CLOSED drawer with zero balance.

    Operators create their own drawer; managers may create one for someone
    else by passing owner_id. A concurrent create for the same owner trips
    the active-owner unique index, is retried, and then sees the winner's
    drawer (InvalidStateError).
    """
    owner_id = clean_text(owner_id, field="owner_id", max_length=64) or actor.actor_id
    if owner_id != actor.actor_id:
        require_elevated(actor, "create a drawer for another operator")
    drawer_name = clean_text(drawer_name, field="drawer_name", max_length=128) or "Main Cash Drawer"
    location_name = clean_text(location_name, field="location_name", max_length=128)

    def _op():
        if get_active_drawer_for_owner(actor.tenant_id, owner_id):
            raise InvalidStateError(f"Operator '{owner_id}' already has an active drawer")

        drawer = CashDrawer(
            tenant_id=actor.tenant_id,
            owner_id=owner_id,
            drawer_name=drawer_name,
            location_name=location_name,
            status=DRAWER_STATUS_CLOSED,
            opening_balance_cents=0,
            current_balance_cents=0,
            last_sequence_number=0,
            is_active=True,
        )
        db.session.add(drawer)
        db.session.flush()
        return drawer

    return run_with_retry(_op)


def open_drawer(actor: ActorContext, drawer_id: int, opening_balance_cents) -> CashDrawer:
    """
    CLOSED -> OPEN with a counted opening balance.

    The OPENING_BALANCE entry carries the difference between the counted
    float and the previous closing balance, so the balance_after chain stays
    unbroken across shifts.
    """
    opening = parse_amount_cents(opening_balance_cents, field="opening_balance_cents", allow_zero=True)

    def _op():
        drawer = load_drawer(actor.tenant_id, drawer_id, lock=True)
        require_owner_or_elevated(actor, drawer, "open this drawer")

        if drawer.status != DRAWER_STATUS_CLOSED:
            raise InvalidStateError(f"Cannot open drawer in {drawer.status} status")
        if not drawer.is_active:
            raise InvalidStateError("Cannot open an inactive drawer")

        append_entry(
            drawer,
            kind=ENTRY_OPENING_BALANCE,
            amount_cents=opening - drawer.current_balance_cents,
            description="Cash drawer opened",
            actor_id=actor.actor_id,
        )
        drawer.status = DRAWER_STATUS_OPEN
        drawer.opening_balance_cents = opening
        drawer.opened_at = utcnow()
        drawer.closed_at = None
        return drawer

    return run_with_retry(_op)


def close_drawer(actor: ActorContext, drawer_id: int, notes: str | None = None) -> CashDrawer:
    """
    OPEN -> CLOSED, snapshotting the balance in a CLOSING_BALANCE entry.

    Pending transfer requests from this drawer stay PENDING; approving one
    later resolves it to REJECTED because the source is no longer open.
    """
    notes = clean_text(notes, field="notes")

    def _op():
        drawer = load_drawer(actor.tenant_id, drawer_id, lock=True)
        require_owner_or_elevated(actor, drawer, "close this drawer")

        if drawer.status != DRAWER_STATUS_OPEN:
            raise InvalidStateError(f"Cannot close drawer in {drawer.status} status")

        append_entry(
            drawer,
            kind=ENTRY_CLOSING_BALANCE,
            amount_cents=0,
            description=notes or "Cash drawer closed",
            actor_id=actor.actor_id,
        )
        drawer.status = DRAWER_STATUS_CLOSED
        drawer.closed_at = utcnow()
        return drawer

    return run_with_retry(_op)


def suspend_drawer(actor: ActorContext, drawer_id: int, reason: str | None = None) -> CashDrawer:
    """Administrative hold: blocks every mutation until resumed."""
    reason = clean_text(reason, field="reason")
    require_elevated(actor, "suspend a drawer")

    def _op():
        drawer = load_drawer(actor.tenant_id, drawer_id, lock=True)
        if drawer.status == DRAWER_STATUS_SUSPENDED:
            raise InvalidStateError("Drawer is already suspended")
        drawer.suspended_from_status = drawer.status
        drawer.suspension_reason = reason
        drawer.status = DRAWER_STATUS_SUSPENDED
        return drawer

    return run_with_retry(_op)


def resume_drawer(actor: ActorContext, drawer_id: int) -> CashDrawer:
    """Lift a suspension, restoring the status the drawer had before it."""
    require_elevated(actor, "resume a drawer")

    def _op():
        drawer = load_drawer(actor.tenant_id, drawer_id, lock=True)
        if drawer.status != DRAWER_STATUS_SUSPENDED:
            raise InvalidStateError(f"Cannot resume drawer in {drawer.status} status")
        drawer.status = drawer.suspended_from_status or DRAWER_STATUS_CLOSED
        drawer.suspended_from_status = None
        drawer.suspension_reason = None
        return drawer

    return run_with_retry(_op)


# =============================================================================
# CASH MOVEMENTS
# =============================================================================

def _signed_amount(kind: str, amount_cents) -> int:
    if kind in SIGNED_KINDS:
        return parse_amount_cents(amount_cents, allow_negative=True)
    amount = parse_amount_cents(amount_cents)
    return -amount if kind in OUTFLOW_KINDS else amount


def record_cash_transaction(
    actor: ActorContext,
    drawer_id: int,
    *,
    kind: str,
    amount_cents,
    description: str | None = None,
    reference_type: str | None = None,
    reference_id: str | None = None,
) -> CashTransaction:
    """
    Post a sale payment, change, bank deposit, expense or adjustment.

    Outflow kinds take the positive magnitude and are written negative;
    ADJUSTMENT takes a signed, non-zero amount. A movement that would take
    the balance below zero is refused with InsufficientFundsError.
    """
    kind = (kind or "").strip().upper()
    if kind not in ENTRY_KINDS:
        raise ValidationError(f"Unknown entry kind '{kind}'")
    if kind not in RECORDABLE_KINDS:
        raise ValidationError(f"Entry kind {kind} is written by the ledger itself and cannot be posted")
    amount = _signed_amount(kind, amount_cents)
    description = clean_text(description, field="description") or kind.replace("_", " ").title()
    reference_type = clean_text(reference_type, field="reference_type", max_length=64)
    reference_id = clean_text(reference_id, field="reference_id", max_length=64)

    def _op():
        drawer = load_drawer(actor.tenant_id, drawer_id, lock=True)
        require_owner_or_elevated(actor, drawer, "post to this drawer")

        if drawer.status != DRAWER_STATUS_OPEN:
            raise InvalidStateError(f"Cannot post to drawer in {drawer.status} status")
        if drawer.current_balance_cents + amount < 0:
            raise InsufficientFundsError(
                f"Insufficient funds. Available: {drawer.current_balance_cents}, requested: {-amount}"
            )

        entry = append_entry(
            drawer,
            kind=kind,
            amount_cents=amount,
            description=description,
            actor_id=actor.actor_id,
            reference_type=reference_type,
            reference_id=reference_id,
        )
        db.session.flush()
        return entry

    return run_with_retry(_op)


def get_balance(actor: ActorContext, drawer_id: int) -> int:
    """Current balance in cents. Pure read, visible tenant-wide."""
    balance = (
        db.session.query(CashDrawer.current_balance_cents)
        .filter_by(id=drawer_id, tenant_id=actor.tenant_id)
        .scalar()
    )
    if balance is None:
        raise NotFoundError(f"Drawer {drawer_id} not found")
    return balance
