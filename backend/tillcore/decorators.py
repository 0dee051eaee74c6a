# Overview: Request decorators that consume upstream staff identity for API routes.

from functools import wraps
from flask import request, jsonify, g

from .extensions import db
from .models import Staff


def _is_authenticated() -> bool:
    return hasattr(g, 'current_staff') and hasattr(g, 'business_unit_id')


def require_staff(f):
    """
    Require a resolved staff identity and establish business-unit context.

    Authentication happens upstream; the gateway forwards the verified
    identity in headers:
    - X-Staff-Id: the authenticated staff member (required)
    - X-Business-Unit-Id: active store front (defaults to the staff's own)

    Sets the following Flask g attributes:
    - g.current_staff: the Staff record
    - g.business_unit_id: the business unit scope for this request
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        staff_header = request.headers.get("X-Staff-Id", "").strip()
        if not staff_header.isdigit():
            return jsonify({"error": "Authentication required"}), 401

        staff = db.session.get(Staff, int(staff_header))
        if not staff or not staff.is_active:
            return jsonify({"error": "Unknown or inactive staff member"}), 401

        unit_header = request.headers.get("X-Business-Unit-Id", "").strip()
        if unit_header:
            if not unit_header.isdigit():
                return jsonify({"error": "X-Business-Unit-Id must be an integer"}), 400
            business_unit_id = int(unit_header)
        else:
            business_unit_id = staff.business_unit_id

        if business_unit_id is None:
            return jsonify({"error": "Business unit is required"}), 400

        g.current_staff = staff
        g.business_unit_id = business_unit_id

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require the current staff member to hold one of the given roles."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_staff was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if g.current_staff.role not in roles:
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator
