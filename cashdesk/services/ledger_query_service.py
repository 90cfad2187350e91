# Overview: Read-only ledger queries consumed by reporting and the UI.

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

from ..errors import ValidationError
from ..extensions import db
from ..models import CashDrawer, CashTransaction, TransferRequest
from ..models.drawers import DRAWER_STATUSES
from ..models.transfers import TRANSFER_STATUS_PENDING
from .drawer_service import load_drawer
from .permission_service import ActorContext, is_elevated, is_recipient_or_elevated


@dataclass(frozen=True)
class JournalSummary:
    drawer_id: int
    start: Optional[datetime]
    end: Optional[datetime]
    entry_count: int
    total_in_cents: int
    total_out_cents: int
    net_change_cents: int
    opening_balance_cents: int
    closing_balance_cents: int

    def to_dict(self) -> dict:
        data = asdict(self)
        data["start"] = self.start.isoformat() if self.start else None
        data["end"] = self.end.isoformat() if self.end else None
        return data


def _check_range(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start and end and end < start:
        raise ValidationError("end must not be before start")


def get_drawer(actor: ActorContext, drawer_id: int) -> CashDrawer:
    return load_drawer(actor.tenant_id, drawer_id)


def list_drawers(tenant_id: str, *, status: str | None = None, include_inactive: bool = False) -> list[CashDrawer]:
    """All drawers of a tenant with their current balances (reporting view)."""
    query = db.session.query(CashDrawer).filter(CashDrawer.tenant_id == tenant_id)
    if status:
        status = status.strip().upper()
        if status not in DRAWER_STATUSES:
            raise ValidationError(f"Unknown drawer status '{status}'")
        query = query.filter(CashDrawer.status == status)
    if not include_inactive:
        query = query.filter(CashDrawer.is_active.is_(True))
    return query.order_by(CashDrawer.id).all()


def get_journal(
    actor: ActorContext,
    drawer_id: int,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> list[CashTransaction]:
    """Journal entries for one drawer in sequence order, optionally date-bounded (inclusive)."""
    _check_range(start, end)
    load_drawer(actor.tenant_id, drawer_id)

    query = db.session.query(CashTransaction).filter(CashTransaction.drawer_id == drawer_id)
    if start:
        query = query.filter(CashTransaction.occurred_at >= start)
    if end:
        query = query.filter(CashTransaction.occurred_at <= end)
    return query.order_by(CashTransaction.sequence_number).all()


def _balance_before(drawer_id: int, start: Optional[datetime]) -> int:
    """balance_after of the last entry strictly before ``start`` (0 if none)."""
    if start is None:
        return 0
    balance = (
        db.session.query(CashTransaction.balance_after_cents)
        .filter(CashTransaction.drawer_id == drawer_id, CashTransaction.occurred_at < start)
        .order_by(CashTransaction.sequence_number.desc())
        .limit(1)
        .scalar()
    )
    return balance or 0


def summarize_journal(
    actor: ActorContext,
    drawer_id: int,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> JournalSummary:
    """
    Period totals for a drawer.

    total_in = sum of positive amounts, total_out = sum of |negative amounts|,
    net_change = total_in - total_out, which equals closing - opening because
    every entry's balance_after is the previous one plus its amount.
    """
    entries = get_journal(actor, drawer_id, start=start, end=end)

    total_in = sum(e.amount_cents for e in entries if e.amount_cents > 0)
    total_out = sum(-e.amount_cents for e in entries if e.amount_cents < 0)
    opening = _balance_before(drawer_id, start)
    closing = entries[-1].balance_after_cents if entries else opening

    return JournalSummary(
        drawer_id=drawer_id,
        start=start,
        end=end,
        entry_count=len(entries),
        total_in_cents=total_in,
        total_out_cents=total_out,
        net_change_cents=total_in - total_out,
        opening_balance_cents=opening,
        closing_balance_cents=closing,
    )


def list_pending_approvals(actor: ActorContext) -> list[TransferRequest]:
    """
    PENDING requests this actor could resolve right now.

    Filters with the same predicate the Arbiter enforces
    (is_recipient_or_elevated) so the list never offers a request the
    Arbiter would refuse.
    """
    query = db.session.query(TransferRequest).filter(
        TransferRequest.tenant_id == actor.tenant_id,
        TransferRequest.status == TRANSFER_STATUS_PENDING,
    )
    if not is_elevated(actor):
        # Narrow in SQL; the predicate below still has the final word
        query = query.filter(TransferRequest.to_actor_id == actor.actor_id)
    pending = query.order_by(TransferRequest.created_at.desc(), TransferRequest.id.desc()).all()
    return [t for t in pending if is_recipient_or_elevated(actor, t)]
