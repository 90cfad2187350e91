# cashdesk/services/transfer_service.py
"""
Transfer request manager: create, read, list and cancel requests.

WHY: Moving cash between drawers (or out to a bank account) needs a second
person's approval. This module records the request; approval_service
decides it.

LIFECYCLE:
1. PENDING: request created, awaiting the recipient or a manager
2. APPROVED / REJECTED: decided by approval_service.resolve_transfer
3. CANCELLED: withdrawn by the requester before a decision

The balance check at creation is best-effort; the Arbiter re-checks it
atomically when the request is approved.
"""
from __future__ import annotations

from sqlalchemy import or_

from ..errors import (
    AlreadyResolvedError,
    InsufficientFundsError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from ..extensions import db
from ..models import TransferRequest
from ..models.drawers import DRAWER_STATUS_OPEN
from ..models.transfers import (
    TRANSFER_STATUS_CANCELLED,
    TRANSFER_STATUS_PENDING,
    TRANSFER_STATUSES,
    TRANSFER_TYPE_ACCOUNT,
    TRANSFER_TYPE_DRAWER,
    TRANSFER_TYPES,
)
from ..signals import publish_transfer_resolved
from ..time_utils import utcnow
from ..validation import clean_text, parse_amount_cents, require_text
from .concurrency import compare_and_set, run_with_retry
from .drawer_service import load_drawer
from .permission_service import ActorContext
from .sequence_service import next_reference_number


def _require_open_source(actor: ActorContext, from_drawer_id: int, amount: int):
    source = load_drawer(actor.tenant_id, from_drawer_id)
    if source.owner_id != actor.actor_id:
        raise UnauthorizedError("Only the owner of the source drawer can request a transfer from it")
    if source.status != DRAWER_STATUS_OPEN:
        raise InvalidStateError(f"Source drawer is {source.status}; it must be OPEN")
    if amount > source.current_balance_cents:
        raise InsufficientFundsError(
            f"Insufficient funds. Available: {source.current_balance_cents}, requested: {amount}"
        )
    return source


def create_drawer_transfer(
    actor: ActorContext,
    *,
    from_drawer_id: int,
    to_drawer_id: int,
    amount_cents,
    reason: str | None = None,
) -> TransferRequest:
    """
    Request a drawer -> drawer transfer (status PENDING).

    The destination drawer's owner becomes to_actor_id, the party who can
    approve besides managers.

    Raises:
        InvalidAmountError: amount is not a positive number of cents
        InvalidStateError: same drawer, or either drawer not OPEN
        InsufficientFundsError: source balance below amount right now
        UnauthorizedError: actor does not own the source drawer
        NotFoundError: unknown drawer in this tenant
    """
    amount = parse_amount_cents(amount_cents)
    reason = clean_text(reason, field="reason")

    def _op():
        if from_drawer_id == to_drawer_id:
            raise InvalidStateError("Cannot transfer to the same drawer")

        source = _require_open_source(actor, from_drawer_id, amount)
        destination = load_drawer(actor.tenant_id, to_drawer_id)
        if destination.status != DRAWER_STATUS_OPEN:
            raise InvalidStateError(f"Destination drawer is {destination.status}; it must be OPEN")

        transfer = TransferRequest(
            tenant_id=actor.tenant_id,
            transfer_type=TRANSFER_TYPE_DRAWER,
            reference_number=next_reference_number(
                tenant_id=actor.tenant_id,
                sequence_type=TRANSFER_TYPE_DRAWER,
            ),
            amount_cents=amount,
            status=TRANSFER_STATUS_PENDING,
            from_actor_id=source.owner_id,
            to_actor_id=destination.owner_id,
            created_by_actor_id=actor.actor_id,
            from_drawer_id=source.id,
            to_drawer_id=destination.id,
            reason=reason,
            created_at=utcnow(),
        )
        db.session.add(transfer)
        db.session.flush()
        return transfer

    return run_with_retry(_op)


def create_account_transfer(
    actor: ActorContext,
    *,
    from_drawer_id: int,
    to_external_account_id: str,
    amount_cents,
    reason: str | None = None,
    approver_actor_id: str | None = None,
) -> TransferRequest:
    """
    Request a drawer -> external account transfer (status PENDING).

    to_external_account_id is an opaque key into the bank/payment-method
    registry and is not validated here. approver_actor_id, when given, is
    recorded as to_actor_id; otherwise only managers can decide.
    """
    amount = parse_amount_cents(amount_cents)
    account_id = require_text(to_external_account_id, field="to_external_account_id", max_length=128)
    reason = clean_text(reason, field="reason")
    approver_actor_id = clean_text(approver_actor_id, field="approver_actor_id", max_length=64)

    def _op():
        source = _require_open_source(actor, from_drawer_id, amount)

        transfer = TransferRequest(
            tenant_id=actor.tenant_id,
            transfer_type=TRANSFER_TYPE_ACCOUNT,
            reference_number=next_reference_number(
                tenant_id=actor.tenant_id,
                sequence_type=TRANSFER_TYPE_ACCOUNT,
            ),
            amount_cents=amount,
            status=TRANSFER_STATUS_PENDING,
            from_actor_id=source.owner_id,
            to_actor_id=approver_actor_id,
            created_by_actor_id=actor.actor_id,
            from_drawer_id=source.id,
            to_external_account_id=account_id,
            reason=reason,
            created_at=utcnow(),
        )
        db.session.add(transfer)
        db.session.flush()
        return transfer

    return run_with_retry(_op)


def load_transfer(tenant_id: str, transfer_id: int) -> TransferRequest:
    transfer = db.session.query(TransferRequest).filter_by(id=transfer_id, tenant_id=tenant_id).first()
    if not transfer:
        raise NotFoundError(f"Transfer request {transfer_id} not found")
    return transfer


def get_transfer(actor: ActorContext, transfer_id: int) -> TransferRequest:
    return load_transfer(actor.tenant_id, transfer_id)


def list_transfers(
    tenant_id: str,
    *,
    actor_id: str | None = None,
    status: str | None = None,
    transfer_type: str | None = None,
    drawer_id: int | None = None,
    limit: int | None = None,
) -> list[TransferRequest]:
    """
    Tenant-scoped listing, newest first.

    Filters:
        actor_id: requests where the actor is the sender or the recipient
        status / transfer_type: exact match (case-insensitive)
        drawer_id: requests touching the drawer on either side
    """
    query = db.session.query(TransferRequest).filter(TransferRequest.tenant_id == tenant_id)

    if actor_id:
        query = query.filter(or_(
            TransferRequest.from_actor_id == actor_id,
            TransferRequest.to_actor_id == actor_id,
        ))
    if status:
        status = status.strip().upper()
        if status not in TRANSFER_STATUSES:
            raise ValidationError(f"Unknown status '{status}'")
        query = query.filter(TransferRequest.status == status)
    if transfer_type:
        transfer_type = transfer_type.strip().upper()
        if transfer_type not in TRANSFER_TYPES:
            raise ValidationError(f"Unknown transfer type '{transfer_type}'")
        query = query.filter(TransferRequest.transfer_type == transfer_type)
    if drawer_id is not None:
        query = query.filter(or_(
            TransferRequest.from_drawer_id == drawer_id,
            TransferRequest.to_drawer_id == drawer_id,
        ))

    query = query.order_by(TransferRequest.created_at.desc(), TransferRequest.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def cancel_transfer(actor: ActorContext, transfer_id: int, notes: str | None = None) -> TransferRequest:
    """
    Withdraw a PENDING request (requester only).

    Uses the same conditional status update as the Arbiter, so a cancel that
    races an approval can only win if it gets there first.
    """
    notes = clean_text(notes, field="notes")

    def _op():
        transfer = load_transfer(actor.tenant_id, transfer_id)
        if transfer.from_actor_id != actor.actor_id:
            raise UnauthorizedError("Only the requester can cancel a transfer request")

        values = {
            "status": TRANSFER_STATUS_CANCELLED,
            "responded_at": utcnow(),
            "responded_by_actor_id": actor.actor_id,
        }
        if notes:
            values["notes"] = notes
        claimed = compare_and_set(
            TransferRequest,
            key=transfer.id,
            expected={"status": TRANSFER_STATUS_PENDING},
            values=values,
        )
        db.session.refresh(transfer)
        if not claimed:
            raise AlreadyResolvedError(
                f"Transfer request {transfer.reference_number} is already {transfer.status}",
                current_status=transfer.status,
            )
        return transfer

    transfer = run_with_retry(_op)
    publish_transfer_resolved(transfer)
    return transfer
