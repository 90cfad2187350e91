# Overview: Approval Arbiter; the only path from PENDING to APPROVED/REJECTED.

"""
Transfer approval arbiter.

STATE MACHINE (per request):
    PENDING --approve--> APPROVED   (terminal)
    PENDING --reject---> REJECTED   (terminal)
    PENDING --cancel---> CANCELLED  (terminal, requester only, transfer_service)

ORDER OF CHECKS in resolve_transfer:
1. Request exists in the actor's tenant            -> NotFoundError
2. Actor is the recipient or holds an elevated role -> UnauthorizedError
3. Conditional UPDATE ... WHERE status = 'PENDING'  -> AlreadyResolvedError
   (the claim; exactly one concurrent caller wins it)
4. Kind-specific settlement inside the same transaction:
   - DRAWER + APPROVE: re-check both drawers and the source balance, then
     write TRANSFER_OUT / TRANSFER_IN. If a check fails the request is
     REJECTED with a rejection_reason instead (a business outcome, not an
     error).
   - ACCOUNT + APPROVE: envelope only, no journal entries.
   - REJECT (either kind): envelope only.
5. Commit, then publish TransferResolved.

A failure anywhere before the commit rolls everything back, including the
claim, so the request is still PENDING and the call can be retried.
"""

from __future__ import annotations

from ..errors import AlreadyResolvedError, UnauthorizedError, ValidationError
from ..extensions import db
from ..models import TransferRequest
from ..models.drawers import DRAWER_STATUS_OPEN, ENTRY_TRANSFER_IN, ENTRY_TRANSFER_OUT
from ..models.transfers import (
    REJECTION_DESTINATION_UNAVAILABLE,
    REJECTION_INSUFFICIENT_FUNDS,
    REJECTION_SOURCE_UNAVAILABLE,
    TRANSFER_STATUS_APPROVED,
    TRANSFER_STATUS_PENDING,
    TRANSFER_STATUS_REJECTED,
    TRANSFER_TYPE_ACCOUNT,
    TRANSFER_TYPE_DRAWER,
)
from ..signals import publish_transfer_resolved
from ..time_utils import utcnow
from ..validation import clean_text
from .concurrency import compare_and_set, run_with_retry
from .drawer_service import append_entry, load_drawer
from .permission_service import ActorContext, is_recipient_or_elevated
from .transfer_service import load_transfer

DECISION_APPROVE = "APPROVE"
DECISION_REJECT = "REJECT"

_DECISION_STATUS = {
    DECISION_APPROVE: TRANSFER_STATUS_APPROVED,
    DECISION_REJECT: TRANSFER_STATUS_REJECTED,
}


def normalize_decision(decision: str) -> str:
    value = (decision or "").strip().upper()
    # Accept the past-tense forms the UI sends ("approved"/"rejected")
    value = {"APPROVED": DECISION_APPROVE, "REJECTED": DECISION_REJECT}.get(value, value)
    if value not in _DECISION_STATUS:
        raise ValidationError("decision must be APPROVE or REJECT")
    return value


def _settle_drawer_transfer(transfer: TransferRequest, actor: ActorContext) -> None:
    """
    Move the cash for a claimed DRAWER request, or downgrade it to REJECTED.

    Drawers are loaded in id order so two approvals touching the same pair
    always lock them in the same order.
    """
    drawer_ids = sorted({transfer.from_drawer_id, transfer.to_drawer_id})
    drawers = {d_id: load_drawer(transfer.tenant_id, d_id, lock=True) for d_id in drawer_ids}
    source = drawers[transfer.from_drawer_id]
    destination = drawers[transfer.to_drawer_id]

    if source.status != DRAWER_STATUS_OPEN:
        _downgrade_to_rejected(transfer, REJECTION_SOURCE_UNAVAILABLE)
        return
    if destination.status != DRAWER_STATUS_OPEN:
        _downgrade_to_rejected(transfer, REJECTION_DESTINATION_UNAVAILABLE)
        return
    if source.current_balance_cents < transfer.amount_cents:
        _downgrade_to_rejected(transfer, REJECTION_INSUFFICIENT_FUNDS)
        return

    append_entry(
        source,
        kind=ENTRY_TRANSFER_OUT,
        amount_cents=-transfer.amount_cents,
        description=f"Transfer {transfer.reference_number} to drawer {destination.id}",
        actor_id=transfer.from_actor_id,
        related_transfer_id=transfer.id,
        approved_by_actor_id=actor.actor_id,
    )
    append_entry(
        destination,
        kind=ENTRY_TRANSFER_IN,
        amount_cents=transfer.amount_cents,
        description=f"Transfer {transfer.reference_number} from drawer {source.id}",
        actor_id=transfer.from_actor_id,
        related_transfer_id=transfer.id,
        approved_by_actor_id=actor.actor_id,
    )
    db.session.flush()


def _downgrade_to_rejected(transfer: TransferRequest, reason: str) -> None:
    transfer.status = TRANSFER_STATUS_REJECTED
    transfer.rejection_reason = reason
    db.session.flush()


def resolve_transfer(
    actor: ActorContext,
    transfer_id: int,
    decision: str,
    notes: str | None = None,
) -> TransferRequest:
    """
    Approve or reject a PENDING transfer request exactly once.

    Returns the request in its terminal state. An approval that could not
    be honoured (insufficient funds, drawer closed or suspended) comes back
    with status REJECTED and rejection_reason set, not as an exception.

    Raises:
        ValidationError: decision is not APPROVE/REJECT
        NotFoundError: unknown request in the actor's tenant
        UnauthorizedError: actor is neither the recipient nor elevated
        AlreadyResolvedError: request is not PENDING (lost a race, or retried)
        StorageConflictError: transient conflict, safe to call again
    """
    decision = normalize_decision(decision)
    notes = clean_text(notes, field="notes")

    def _op():
        transfer = load_transfer(actor.tenant_id, transfer_id)

        if not is_recipient_or_elevated(actor, transfer):
            raise UnauthorizedError("Only the recipient or a manager can resolve this transfer request")

        values = {
            "status": _DECISION_STATUS[decision],
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

        if decision == DECISION_APPROVE:
            if transfer.transfer_type == TRANSFER_TYPE_DRAWER:
                _settle_drawer_transfer(transfer, actor)
            elif transfer.transfer_type == TRANSFER_TYPE_ACCOUNT:
                # Settlement happens in the external bank/payment system
                pass
            else:
                raise ValidationError(f"Unknown transfer type '{transfer.transfer_type}'")
        return transfer

    transfer = run_with_retry(_op)
    publish_transfer_resolved(transfer)
    return transfer
