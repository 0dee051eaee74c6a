# Overview: Flask API routes for shift operations; parses input and returns JSON responses.

# backend/tillcore/routes/shifts.py
"""
Shift (Till) API Routes

DESIGN:
- Shift lifecycle: open -> close (immutable once closed)
- "Current shift" is always read from the database
- Closing reconciles counted cash; discrepancy never blocks the close

SECURITY:
- Any staff member can open/close their own shift
- Owners and managers can close other staff members' shifts and read history
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import shift_service
from ..validation import (
    AccessDeniedError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..decorators import require_staff, require_role


shifts_bp = Blueprint("shifts", __name__, url_prefix="/api/shifts")


def _ensure_unit_scope(business_unit_id: int | None):
    if g.current_staff.role == "owner":
        return None
    if business_unit_id and g.business_unit_id != business_unit_id:
        return jsonify({"error": "Business unit access denied"}), 403
    return None


@shifts_bp.post("/open")
@require_staff
def open_shift_route():
    """
    Open a shift for the current staff member.

    Request body:
    {
        "opening_cash_cents": 10000  // Starting float (e.g., 100.00)
    }

    Returns 409 if the staff member already has an open shift.
    """
    try:
        data = request.get_json(silent=True) or {}

        if "opening_cash_cents" not in data:
            return jsonify({"error": "opening_cash_cents required"}), 400

        shift = shift_service.open_shift(
            staff_id=g.current_staff.id,
            business_unit_id=g.business_unit_id,
            opening_cash_cents=data.get("opening_cash_cents"),
        )

        return jsonify({"shift": shift.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to open shift")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.get("/current")
@require_staff
def current_shift_route():
    """Current open shift for the calling staff member, or null."""
    shift = shift_service.get_current_shift(g.current_staff.id, g.business_unit_id)
    return jsonify({"shift": shift.to_dict() if shift else None}), 200


@shifts_bp.post("/<int:shift_id>/close")
@require_staff
def close_shift_route(shift_id: int):
    """
    Close a shift and reconcile the cash count.

    Request body:
    {
        "actual_cash_cents": 12500,  // Cash counted in drawer
        "notes": "Busy lunch"  (optional)
    }

    Returns the shift summary: expected cash, counted cash and discrepancy.
    """
    try:
        data = request.get_json(silent=True) or {}
        actual_cash_cents = data.get("actual_cash_cents")

        if actual_cash_cents is None:
            return jsonify({"error": "Enter the counted cash amount (actual_cash_cents) to close the shift"}), 400

        shift = shift_service.get_shift(shift_id)
        scope_error = _ensure_unit_scope(shift.business_unit_id)
        if scope_error:
            return scope_error

        summary = shift_service.close_shift(
            shift_id,
            actual_cash_cents,
            notes=data.get("notes"),
            current_staff_id=g.current_staff.id,
            manager_override=g.current_staff.is_manager,
        )

        return jsonify({
            "summary": summary.to_dict(),
            "shift": shift_service.get_shift(shift_id).to_dict(),
        }), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to close shift")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.get("/history")
@require_staff
@require_role("owner", "manager")
def shift_history_route():
    """
    Shift history for the current business unit, newest first.

    Query params:
    - status: open or closed
    - staff_id: Filter by staff member
    - limit: Max number of shifts (default: 50)
    """
    try:
        shifts = shift_service.list_shift_history(
            g.business_unit_id,
            status=request.args.get("status"),
            staff_id=request.args.get("staff_id", type=int),
            limit=request.args.get("limit", 50, type=int),
        )
        return jsonify({"shifts": [s.to_dict() for s in shifts]}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@shifts_bp.get("/active")
@require_staff
@require_role("owner", "manager")
def active_shifts_route():
    shifts = shift_service.list_open_shifts(g.business_unit_id)
    return jsonify({"shifts": [s.to_dict() for s in shifts]}), 200


@shifts_bp.get("/<int:shift_id>")
@require_staff
def get_shift_route(shift_id: int):
    """Shift details with attributed sales and reconciliation summary."""
    try:
        shift = shift_service.get_shift(shift_id)
        scope_error = _ensure_unit_scope(shift.business_unit_id)
        if scope_error:
            return scope_error
        if shift.staff_id != g.current_staff.id and not g.current_staff.is_manager:
            return jsonify({"error": "You can only view your own shifts"}), 403

        return jsonify(shift_service.get_shift_detail(shift_id)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
