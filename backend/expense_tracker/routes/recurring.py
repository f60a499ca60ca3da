# Overview: Flask API routes for recurring expense definitions; parses input and returns JSON responses.

"""
Recurring Expense Routes

Definitions are materialized into expenses by the background scheduler
(see scheduler.py); these routes only manage the definitions.
"""

from flask import Blueprint, jsonify

from ..decorators import require_auth
from ..services import recurring_service
from .common import clock, read_json, store


recurring_bp = Blueprint("recurring_expenses", __name__, url_prefix="/recurring-expenses")


@recurring_bp.get("")
@require_auth
def list_recurring_route(user_id: int):
    items = recurring_service.list_recurring_expenses(store(), user_id)
    return jsonify([r.to_dict() for r in items])


@recurring_bp.post("")
@require_auth
def create_recurring_route(user_id: int):
    """
    Request body:
    {
        "amount": 12.99,                 // required, > 0
        "category": "Subscriptions",     // required
        "note": "music",                 // optional
        "frequency": "monthly",          // daily | weekly | monthly | yearly
        "next_due_date": "2024-01-31"    // optional, defaults to now
    }
    """
    recurring = recurring_service.create_recurring_expense(store(), user_id, read_json(), clock=clock())
    return jsonify(recurring.to_dict()), 201


@recurring_bp.get("/<int:recurring_id>")
@require_auth
def get_recurring_route(recurring_id: int, user_id: int):
    return jsonify(recurring_service.get_recurring_expense(store(), user_id, recurring_id).to_dict())


@recurring_bp.put("/<int:recurring_id>")
@require_auth
def update_recurring_route(recurring_id: int, user_id: int):
    recurring = recurring_service.update_recurring_expense(
        store(), user_id, recurring_id, read_json(), clock=clock()
    )
    return jsonify(recurring.to_dict())


@recurring_bp.delete("/<int:recurring_id>")
@require_auth
def delete_recurring_route(recurring_id: int, user_id: int):
    recurring_service.delete_recurring_expense(store(), user_id, recurring_id)
    return "", 204
