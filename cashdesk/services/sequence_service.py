# Overview: Per-tenant reference numbers for transfer requests.

from __future__ import annotations

from sqlalchemy import update

from ..extensions import db
from ..models import ReferenceSequence
from ..models.transfers import TRANSFER_TYPE_ACCOUNT, TRANSFER_TYPE_DRAWER

REFERENCE_PREFIXES = {
    TRANSFER_TYPE_DRAWER: "CT",
    TRANSFER_TYPE_ACCOUNT: "AT",
}


def next_reference_number(*, tenant_id: str, sequence_type: str, pad: int = 6) -> str:
    """
    Allocate the next reference number for a tenant/kind inside the caller's
    transaction.

    The increment is a single UPDATE, so two writers can never read the same
    value. If the sequence row does not exist yet and two writers race to
    create it, the loser's flush raises IntegrityError and the enclosing
    run_with_retry re-runs the whole unit, which then takes the UPDATE path.
    """
    prefix = REFERENCE_PREFIXES.get(sequence_type)
    if prefix is None:
        raise ValueError(f"Unknown sequence type {sequence_type!r}")

    stmt = (
        update(ReferenceSequence)
        .where(
            ReferenceSequence.tenant_id == tenant_id,
            ReferenceSequence.sequence_type == sequence_type,
        )
        .values(next_number=ReferenceSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if result.rowcount:
        current = (
            db.session.query(ReferenceSequence.next_number)
            .filter_by(tenant_id=tenant_id, sequence_type=sequence_type)
            .scalar()
        )
        number = current - 1
    else:
        db.session.add(ReferenceSequence(tenant_id=tenant_id, sequence_type=sequence_type, next_number=2))
        db.session.flush()
        number = 1

    return f"{prefix}-{number:0{pad}d}"
