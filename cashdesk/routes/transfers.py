# cashdesk/routes/transfers.py
"""
Transfer request API routes.

An approval that could not be honoured (e.g. insufficient funds at approval
time) is a 200 with status REJECTED and a rejection_reason; a caller who may
not decide gets 403, a request that was already decided gets 409.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import error_response, json_body, require_actor
from ..errors import ValidationError
from ..services import approval_service, ledger_query_service, transfer_service


transfers_bp = Blueprint("transfers", __name__, url_prefix="/api/transfers")


def _required(data: dict, field: str):
    if data.get(field) in (None, ""):
        raise ValidationError(f"Missing required field: {field}")
    return data[field]


def _required_int(data: dict, field: str) -> int:
    value = _required(data, field)
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")


@transfers_bp.route("/drawer", methods=["POST"])
@require_actor
def create_drawer_transfer():
    """
    Request a drawer-to-drawer transfer.

    Request body:
    {
        "from_drawer_id": int,
        "to_drawer_id": int,
        "amount_cents": int,
        "reason": str (optional)
    }

    Returns:
        201: Request created (PENDING)
        400/409: Invalid amount, state or insufficient funds
        403: Actor does not own the source drawer
        404: Drawer not found
    """
    data = json_body()
    try:
        transfer = transfer_service.create_drawer_transfer(
            g.actor,
            from_drawer_id=_required_int(data, "from_drawer_id"),
            to_drawer_id=_required_int(data, "to_drawer_id"),
            amount_cents=data.get("amount_cents"),
            reason=data.get("reason"),
        )
        return jsonify({"transfer": transfer.to_dict()}), 201
    except Exception as e:
        return error_response(e, "create drawer transfer")


@transfers_bp.route("/account", methods=["POST"])
@require_actor
def create_account_transfer():
    """
    Request a drawer-to-bank/payment-account transfer.

    Request body:
    {
        "from_drawer_id": int,
        "to_external_account_id": str,
        "amount_cents": int,
        "reason": str (optional),
        "approver_actor_id": str (optional)
    }
    """
    data = json_body()
    try:
        transfer = transfer_service.create_account_transfer(
            g.actor,
            from_drawer_id=_required_int(data, "from_drawer_id"),
            to_external_account_id=data.get("to_external_account_id"),
            amount_cents=data.get("amount_cents"),
            reason=data.get("reason"),
            approver_actor_id=data.get("approver_actor_id"),
        )
        return jsonify({"transfer": transfer.to_dict()}), 201
    except Exception as e:
        return error_response(e, "create account transfer")


@transfers_bp.route("", methods=["GET"])
@require_actor
def list_transfers():
    """
    List transfer requests in the actor's tenant, newest first.

    Query: actor_id, status, type, drawer_id, limit
    """
    try:
        limit = request.args.get("limit", type=int) or current_app.config.get("TRANSFER_LIST_LIMIT", 100)
        transfers = transfer_service.list_transfers(
            g.actor.tenant_id,
            actor_id=request.args.get("actor_id"),
            status=request.args.get("status"),
            transfer_type=request.args.get("type"),
            drawer_id=request.args.get("drawer_id", type=int),
            limit=limit,
        )
        return jsonify({"transfers": [t.to_dict() for t in transfers]}), 200
    except Exception as e:
        return error_response(e, "list transfers")


@transfers_bp.route("/pending", methods=["GET"])
@require_actor
def list_pending_approvals():
    """PENDING requests the current actor is allowed to resolve."""
    try:
        transfers = ledger_query_service.list_pending_approvals(g.actor)
        return jsonify({"transfers": [t.to_dict() for t in transfers]}), 200
    except Exception as e:
        return error_response(e, "list pending approvals")


@transfers_bp.route("/<int:transfer_id>", methods=["GET"])
@require_actor
def get_transfer(transfer_id: int):
    try:
        transfer = transfer_service.get_transfer(g.actor, transfer_id)
        return jsonify({"transfer": transfer.to_dict()}), 200
    except Exception as e:
        return error_response(e, "load transfer")


@transfers_bp.route("/<int:transfer_id>/resolve", methods=["POST"])
@require_actor
def resolve_transfer(transfer_id: int):
    """
    Approve or reject a PENDING request.

    Request body:
    {
        "decision": "APPROVE" | "REJECT",
        "notes": str (optional)
    }

    Returns:
        200: Request resolved (check status / rejection_reason)
        403: Actor is neither the recipient nor a manager
        404: Request not found
        409: Request already resolved
        503: Storage conflict, retry
    """
    data = json_body()
    try:
        transfer = approval_service.resolve_transfer(
            g.actor,
            transfer_id,
            _required(data, "decision"),
            notes=data.get("notes"),
        )
        return jsonify({"transfer": transfer.to_dict()}), 200
    except Exception as e:
        return error_response(e, "resolve transfer")


@transfers_bp.route("/<int:transfer_id>/cancel", methods=["POST"])
@require_actor
def cancel_transfer(transfer_id: int):
    data = json_body()
    try:
        transfer = transfer_service.cancel_transfer(g.actor, transfer_id, notes=data.get("notes"))
        return jsonify({"transfer": transfer.to_dict()}), 200
    except Exception as e:
        return error_response(e, "cancel transfer")
