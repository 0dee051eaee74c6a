# Overview: Flask API route used by checkout to post completed sales to the till.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import till_service
from ..validation import ConflictError, NotFoundError, ValidationError
from ..decorators import require_staff


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("/attribute")
@require_staff
def attribute_sale_route():
    """
    Attribute a completed sale to the caller's open shift.

    Called by checkout once the sale has committed. Safe to retry:
    repeating the same sale_id returns the original posting.

    Request body:
    {
        "sale_id": "S-000123",
        "payment_method": "credit",  // cash, mobile, credit
        "total_cents": 2000,
        "customer_id": 7,            // required for credit
        "occurred_at": "2026-10-17T12:00:00Z"  (optional)
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        sale = till_service.attribute_sale(
            sale_id=data.get("sale_id"),
            staff_id=g.current_staff.id,
            payment_method=data.get("payment_method"),
            total_cents=data.get("total_cents"),
            customer_id=data.get("customer_id"),
            business_unit_id=g.business_unit_id,
            occurred_at=data.get("occurred_at"),
        )

        return jsonify({"sale": sale.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to attribute sale")
        return jsonify({"error": "Internal server error"}), 500
