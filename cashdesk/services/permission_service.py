# Overview: Actor context and the authorization predicates shared by every service.

"""
Authorization decisions for the ledger.

Authentication and tenant resolution happen upstream; every call arrives
with an opaque (actor_id, tenant_id, role) triple. This module turns that
triple into decisions.

DESIGN PRINCIPLES:
- Fail closed: anything not explicitly allowed raises UnauthorizedError
- One predicate per rule: the Arbiter and the pending-approvals query both
  call is_recipient_or_elevated, so they cannot drift apart
- Elevated roles act tenant-wide, never across tenants
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..errors import UnauthorizedError

DEFAULT_ELEVATED_ROLES = frozenset({"admin", "manager", "superadmin"})


@dataclass(frozen=True)
class ActorContext:
    actor_id: str
    tenant_id: str
    role: str = ""

    def __post_init__(self):
        if not self.actor_id or not self.tenant_id:
            raise UnauthorizedError("actor_id and tenant_id are required")


def elevated_roles() -> frozenset[str]:
    return frozenset(current_app.config.get("ELEVATED_ROLES", DEFAULT_ELEVATED_ROLES))


def is_elevated(actor: ActorContext) -> bool:
    return (actor.role or "").strip().lower() in elevated_roles()


def is_recipient_or_elevated(actor: ActorContext, transfer) -> bool:
    """
    Who may resolve (approve/reject) a transfer request.

    True when the actor is in the request's tenant and is either the
    addressed recipient (to_actor_id) or holds an elevated role.
    """
    if transfer.tenant_id != actor.tenant_id:
        return False
    if transfer.to_actor_id and transfer.to_actor_id == actor.actor_id:
        return True
    return is_elevated(actor)


def require_elevated(actor: ActorContext, action: str) -> None:
    if not is_elevated(actor):
        raise UnauthorizedError(f"Role '{actor.role or 'none'}' may not {action}")


def require_owner_or_elevated(actor: ActorContext, drawer, action: str) -> None:
    """Drawer mutations belong to the owner; elevated roles may override."""
    if drawer.owner_id == actor.actor_id or is_elevated(actor):
        return
    raise UnauthorizedError(f"Only the drawer owner or a manager may {action}")
