# Overview: Flask API routes for management alerts.

from flask import Blueprint, request, jsonify, g

from ..services import alert_service
from ..validation import NotFoundError
from ..decorators import require_staff, require_role


alerts_bp = Blueprint("alerts", __name__, url_prefix="/api/alerts")


@alerts_bp.get("")
@alerts_bp.get("/")
@require_staff
@require_role("owner", "manager")
def list_alerts_route():
    """
    Alerts for the current business unit, newest first.

    Query params:
    - unread: "true" to show unread alerts only
    - limit: Max number of alerts (default: 100)
    """
    unread_only = request.args.get("unread", "false").lower() == "true"
    limit = request.args.get("limit", 100, type=int)

    alerts = alert_service.list_alerts(g.business_unit_id, unread_only=unread_only, limit=limit)
    return jsonify({"alerts": [a.to_dict() for a in alerts]}), 200


@alerts_bp.post("/<int:alert_id>/read")
@require_staff
@require_role("owner", "manager")
def mark_read_route(alert_id: int):
    try:
        # Owners see every unit; managers only their own
        scope = None if g.current_staff.role == "owner" else g.business_unit_id
        alert = alert_service.mark_alert_read(alert_id, scope)
        return jsonify({"alert": alert.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
