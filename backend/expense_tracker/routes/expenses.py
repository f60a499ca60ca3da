# Overview: Flask API routes for expense operations; parses input and returns JSON responses.

"""
Expense Routes

SECURITY: All routes require authentication and only ever touch the
caller's own expenses; another user's expense id is a 404.
"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth
from ..services import expense_service
from .common import clock, read_json, store


expenses_bp = Blueprint("expenses", __name__, url_prefix="/expenses")


@expenses_bp.get("")
@require_auth
def list_expenses_route(user_id: int):
    """
    List expenses.

    Query parameters:
    - date_from / date_to: inclusive timestamp bounds
    - category: exact match
    - amount_min / amount_max: inclusive amount bounds
    - q: substring match on note
    - limit: default 10, max 100
    - offset: default 0
    """
    filters = expense_service.parse_filters(
        request.args,
        default_limit=current_app.config["EXPENSE_PAGE_DEFAULT"],
        max_limit=current_app.config["EXPENSE_PAGE_MAX"],
    )
    expenses = expense_service.list_expenses(store(), user_id, filters)
    return jsonify([e.to_dict() for e in expenses])


@expenses_bp.post("")
@require_auth
def create_expense_route(user_id: int):
    """
    Create an expense and debit its account.

    Request body:
    {
        "amount": 50.5,          // required, > 0
        "category": "Food",      // required
        "note": "lunch",         // optional
        "date": "2024-01-15",    // optional, defaults to now
        "account_id": 1          // required
    }
    """
    expense = expense_service.create_expense(store(), user_id, read_json(), clock=clock())
    return jsonify(expense.to_dict()), 201


@expenses_bp.get("/aggregates")
@require_auth
def aggregates_route(user_id: int):
    """?query=totals_by_month | totals_by_category"""
    totals = expense_service.aggregate(store(), user_id, request.args.get("query"))
    return jsonify(totals)


@expenses_bp.get("/<int:expense_id>")
@require_auth
def get_expense_route(expense_id: int, user_id: int):
    return jsonify(expense_service.get_expense(store(), user_id, expense_id).to_dict())


@expenses_bp.put("/<int:expense_id>")
@require_auth
def update_expense_route(expense_id: int, user_id: int):
    expense = expense_service.update_expense(store(), user_id, expense_id, read_json(), clock=clock())
    return jsonify(expense.to_dict())


@expenses_bp.delete("/<int:expense_id>")
@require_auth
def delete_expense_route(expense_id: int, user_id: int):
    expense_service.delete_expense(store(), user_id, expense_id)
    return "", 204
