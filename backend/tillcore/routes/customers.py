# Overview: Flask API routes for customer credit ledger operations.

# backend/tillcore/routes/customers.py
"""
Customer Credit Ledger API Routes

DESIGN:
- Ledger is read-only over HTTP except for repayments
- Sale entries are only posted through till attribution
- Verification replays the ledger and reports, never repairs
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import alert_service, credit_ledger_service
from ..validation import (
    ConflictError,
    ConsistencyError,
    NotFoundError,
    ValidationError,
)
from ..decorators import require_staff, require_role


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


def _load_scoped_customer(customer_id: int):
    customer = credit_ledger_service.get_customer(customer_id)
    if g.current_staff.role != "owner" and customer.business_unit_id != g.business_unit_id:
        raise NotFoundError(f"Customer {customer_id} not found")
    return customer


@customers_bp.get("/<int:customer_id>/ledger")
@require_staff
def get_ledger_route(customer_id: int):
    """Chronological credit ledger for a customer."""
    try:
        customer = _load_scoped_customer(customer_id)
        entries = credit_ledger_service.get_customer_ledger(customer_id)

        return jsonify({
            "customer": customer.to_dict(),
            "entries": [e.to_dict() for e in entries],
        }), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@customers_bp.post("/<int:customer_id>/repayments")
@require_staff
def post_repayment_route(customer_id: int):
    """
    Record a repayment against a customer's credit balance.

    Request body:
    {
        "amount_cents": 2000,
        "description": "Paid at counter"  (optional)
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        _load_scoped_customer(customer_id)

        entry = credit_ledger_service.record_repayment(
            customer_id,
            data.get("amount_cents"),
            created_by_staff_id=g.current_staff.id,
            description=data.get("description"),
        )

        return jsonify({
            "entry": entry.to_dict(),
            "customer": credit_ledger_service.get_customer(customer_id).to_dict(),
        }), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to record repayment")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.get("/<int:customer_id>/ledger/verify")
@require_staff
@require_role("owner", "manager")
def verify_ledger_route(customer_id: int):
    """
    Replay a customer's ledger against the stored balance.

    Returns 500 with the mismatches when the ledger is inconsistent.
    The balance is left untouched for an operator to investigate.
    """
    try:
        customer = _load_scoped_customer(customer_id)
        result = credit_ledger_service.verify_customer_ledger(customer_id)
        return jsonify({"verification": result.to_dict()}), 200

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConsistencyError as e:
        current_app.logger.error("%s: %s", e, e.details)
        alert_service.on_consistency_failure(customer_id, customer.business_unit_id, str(e))
        return jsonify({
            "error": "Ledger consistency check failed",
            "message": str(e),
            "details": e.details,
        }), 500


@customers_bp.get("/receivables")
@require_staff
@require_role("owner", "manager")
def receivables_route():
    """Total outstanding credit for the current business unit."""
    total = credit_ledger_service.get_total_receivables(g.business_unit_id)
    return jsonify({
        "business_unit_id": g.business_unit_id,
        "total_receivables_cents": total,
    }), 200
