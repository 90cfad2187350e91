# Overview: Flask API routes for cash drawers; parses input and returns JSON responses.

"""
Cash Drawer API Routes

DESIGN:
- Drawer lifecycle: create -> open -> close (repeatable), suspend/resume by managers
- Cash movements posted to an OPEN drawer become journal entries
- Journal and balances are visible tenant-wide for reporting

SECURITY:
- Actor context comes from upstream headers (require_actor)
- Owners mutate their own drawer; elevated roles may act on any drawer
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import error_response, json_body, require_actor
from ..errors import ValidationError
from ..services import drawer_service, ledger_query_service
from ..time_utils import parse_range_bound


drawers_bp = Blueprint("drawers", __name__, url_prefix="/api/drawers")


def _date_range():
    try:
        start = parse_range_bound(request.args.get("start"))
        end = parse_range_bound(request.args.get("end"), end=True)
    except ValueError:
        raise ValidationError("start and end must be ISO-8601 dates or datetimes")
    return start, end


@drawers_bp.post("")
@require_actor
def create_drawer_route():
    """
    Create a drawer (status CLOSED).

    Request body:
    {
        "owner_id": "u-42",          (optional, managers only when not self)
        "drawer_name": "Front till",  (optional)
        "location_name": "Main floor" (optional)
    }
    """
    data = json_body()
    try:
        drawer = drawer_service.create_drawer(
            g.actor,
            owner_id=data.get("owner_id"),
            drawer_name=data.get("drawer_name"),
            location_name=data.get("location_name"),
        )
        return jsonify({"drawer": drawer.to_dict()}), 201
    except Exception as e:
        return error_response(e, "create drawer")


@drawers_bp.get("")
@require_actor
def list_drawers_route():
    """List the tenant's drawers. Query: status, include_inactive=true."""
    try:
        drawers = ledger_query_service.list_drawers(
            g.actor.tenant_id,
            status=request.args.get("status"),
            include_inactive=request.args.get("include_inactive", "").lower() == "true",
        )
        return jsonify({"drawers": [d.to_dict() for d in drawers]}), 200
    except Exception as e:
        return error_response(e, "list drawers")


@drawers_bp.get("/<int:drawer_id>")
@require_actor
def get_drawer_route(drawer_id: int):
    try:
        drawer = ledger_query_service.get_drawer(g.actor, drawer_id)
        return jsonify({"drawer": drawer.to_dict()}), 200
    except Exception as e:
        return error_response(e, "load drawer")


@drawers_bp.post("/<int:drawer_id>/open")
@require_actor
def open_drawer_route(drawer_id: int):
    """
    Open a CLOSED drawer.

    Request body:
    {
        "opening_balance_cents": 100000
    }
    """
    data = json_body()
    try:
        drawer = drawer_service.open_drawer(g.actor, drawer_id, data.get("opening_balance_cents"))
        return jsonify({"drawer": drawer.to_dict()}), 200
    except Exception as e:
        return error_response(e, "open drawer")


@drawers_bp.post("/<int:drawer_id>/close")
@require_actor
def close_drawer_route(drawer_id: int):
    data = json_body()
    try:
        drawer = drawer_service.close_drawer(g.actor, drawer_id, notes=data.get("notes"))
        return jsonify({"drawer": drawer.to_dict()}), 200
    except Exception as e:
        return error_response(e, "close drawer")


@drawers_bp.post("/<int:drawer_id>/suspend")
@require_actor
def suspend_drawer_route(drawer_id: int):
    data = json_body()
    try:
        drawer = drawer_service.suspend_drawer(g.actor, drawer_id, reason=data.get("reason"))
        current_app.logger.info("Drawer %s suspended by %s", drawer_id, g.actor.actor_id)
        return jsonify({"drawer": drawer.to_dict()}), 200
    except Exception as e:
        return error_response(e, "suspend drawer")


@drawers_bp.post("/<int:drawer_id>/resume")
@require_actor
def resume_drawer_route(drawer_id: int):
    try:
        drawer = drawer_service.resume_drawer(g.actor, drawer_id)
        current_app.logger.info("Drawer %s resumed by %s", drawer_id, g.actor.actor_id)
        return jsonify({"drawer": drawer.to_dict()}), 200
    except Exception as e:
        return error_response(e, "resume drawer")


@drawers_bp.post("/<int:drawer_id>/transactions")
@require_actor
def record_transaction_route(drawer_id: int):
    """
    Post a cash movement to an OPEN drawer.

    Request body:
    {
        "kind": "SALE_PAYMENT" | "CHANGE_ISSUED" | "BANK_DEPOSIT" | "EXPENSE_PAYMENT" | "ADJUSTMENT",
        "amount_cents": 2500,      (positive; ADJUSTMENT may be negative)
        "description": "...",      (optional)
        "reference_type": "sale",  (optional)
        "reference_id": "S-1001"   (optional)
    }
    """
    data = json_body()
    try:
        entry = drawer_service.record_cash_transaction(
            g.actor,
            drawer_id,
            kind=data.get("kind"),
            amount_cents=data.get("amount_cents"),
            description=data.get("description"),
            reference_type=data.get("reference_type"),
            reference_id=data.get("reference_id"),
        )
        return jsonify({"entry": entry.to_dict()}), 201
    except Exception as e:
        return error_response(e, "record cash transaction")


@drawers_bp.get("/<int:drawer_id>/balance")
@require_actor
def balance_route(drawer_id: int):
    try:
        balance = drawer_service.get_balance(g.actor, drawer_id)
        return jsonify({"drawer_id": drawer_id, "current_balance_cents": balance}), 200
    except Exception as e:
        return error_response(e, "load balance")


@drawers_bp.get("/<int:drawer_id>/journal")
@require_actor
def journal_route(drawer_id: int):
    """Journal entries in sequence order. Query: start, end (ISO-8601, inclusive)."""
    try:
        start, end = _date_range()
        entries = ledger_query_service.get_journal(g.actor, drawer_id, start=start, end=end)
        return jsonify({"entries": [e.to_dict() for e in entries]}), 200
    except Exception as e:
        return error_response(e, "load journal")


@drawers_bp.get("/<int:drawer_id>/journal/summary")
@require_actor
def journal_summary_route(drawer_id: int):
    try:
        start, end = _date_range()
        summary = ledger_query_service.summarize_journal(g.actor, drawer_id, start=start, end=end)
        return jsonify({"summary": summary.to_dict()}), 200
    except Exception as e:
        return error_response(e, "summarize journal")
