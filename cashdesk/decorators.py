# Overview: Request decorators and error translation for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request

from .errors import LedgerError
from .extensions import db
from .services.permission_service import ActorContext

ACTOR_HEADER = "X-Actor-Id"
TENANT_HEADER = "X-Tenant-Id"
ROLE_HEADER = "X-Actor-Role"


def require_actor(f):
    """
    Require an upstream-authenticated actor and establish tenant context.

    Authentication happens in front of this service; the gateway forwards the
    result as headers. Sets:
    - g.actor: ActorContext(actor_id, tenant_id, role)

    Returns 401 if the actor or tenant header is missing.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        actor_id = (request.headers.get(ACTOR_HEADER) or "").strip()
        tenant_id = (request.headers.get(TENANT_HEADER) or "").strip()
        role = (request.headers.get(ROLE_HEADER) or "").strip().lower()

        if not actor_id or not tenant_id:
            return jsonify({"error": "Authentication required", "code": "UNAUTHENTICATED"}), 401

        g.actor = ActorContext(actor_id=actor_id, tenant_id=tenant_id, role=role)
        return f(*args, **kwargs)

    return decorated_function


def error_response(exc: Exception, action: str):
    """
    Translate an exception raised by a service into a JSON response.

    LedgerError subclasses carry their own status and code; anything else is
    logged and reported as a generic 500.
    """
    db.session.rollback()
    if isinstance(exc, LedgerError):
        return jsonify(exc.to_dict()), exc.status_code
    current_app.logger.exception("Failed to %s", action)
    return jsonify({"error": "Internal server error"}), 500


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
