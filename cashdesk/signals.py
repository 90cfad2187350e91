# Overview: Outbound domain events (blinker signals) for notification/audit subscribers.

from __future__ import annotations

from dataclasses import asdict, dataclass

from blinker import Namespace
from flask import current_app

_signals = Namespace()

#: Sent once per transfer request that leaves PENDING (approve, reject,
#: cancel), after the transaction has committed. Receivers get
#: ``event=TransferResolved``.
transfer_resolved = _signals.signal("transfer-resolved")


@dataclass(frozen=True)
class TransferResolved:
    request_id: int
    tenant_id: str
    reference_number: str
    transfer_type: str
    status: str
    rejection_reason: str | None
    from_actor_id: str
    to_actor_id: str | None
    responded_by_actor_id: str | None
    amount_cents: int

    @classmethod
    def from_transfer(cls, transfer) -> "TransferResolved":
        return cls(
            request_id=transfer.id,
            tenant_id=transfer.tenant_id,
            reference_number=transfer.reference_number,
            transfer_type=transfer.transfer_type,
            status=transfer.status,
            rejection_reason=transfer.rejection_reason,
            from_actor_id=transfer.from_actor_id,
            to_actor_id=transfer.to_actor_id,
            responded_by_actor_id=transfer.responded_by_actor_id,
            amount_cents=transfer.amount_cents,
        )

    def to_dict(self) -> dict:
        return asdict(self)


def publish_transfer_resolved(transfer) -> TransferResolved:
    """
    Emit TransferResolved for a committed transfer.

    Delivery is fire-and-forget and per receiver: one that raises is logged,
    the remaining receivers still run, and the committed outcome stands.
    """
    event = TransferResolved.from_transfer(transfer)
    app = current_app._get_current_object()
    for receiver in transfer_resolved.receivers_for(app):
        try:
            receiver(app, event=event)
        except Exception:
            app.logger.exception(
                "transfer_resolved receiver %r failed for request %s", receiver, event.request_id
            )
    return event


def log_transfer_resolved(sender, event: TransferResolved, **extra):
    """Default receiver: one audit line per resolution."""
    sender.logger.info(
        "Transfer %s (%s %s) %s by %s%s",
        event.reference_number,
        event.transfer_type,
        event.amount_cents,
        event.status,
        event.responded_by_actor_id,
        f" [{event.rejection_reason}]" if event.rejection_reason else "",
    )
