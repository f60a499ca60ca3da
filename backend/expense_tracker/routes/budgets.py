# Overview: Flask API routes for budget operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..decorators import require_auth
from ..services import budget_service
from .common import clock, read_json, store


budgets_bp = Blueprint("budgets", __name__, url_prefix="/budgets")


@budgets_bp.get("")
@require_auth
def list_budgets_route(user_id: int):
    return jsonify([b.to_dict() for b in budget_service.list_budgets(store(), user_id)])


@budgets_bp.post("")
@require_auth
def create_budget_route(user_id: int):
    """
    Create a budget.

    start_date defaults to now; end_date defaults to start_date.
    """
    budget = budget_service.create_budget(store(), user_id, read_json(), clock=clock())
    return jsonify(budget.to_dict()), 201


@budgets_bp.get("/<int:budget_id>")
@require_auth
def get_budget_route(budget_id: int, user_id: int):
    return jsonify(budget_service.get_budget(store(), user_id, budget_id).to_dict())


@budgets_bp.put("/<int:budget_id>")
@require_auth
def update_budget_route(budget_id: int, user_id: int):
    budget = budget_service.update_budget(store(), user_id, budget_id, read_json(), clock=clock())
    return jsonify(budget.to_dict())


@budgets_bp.delete("/<int:budget_id>")
@require_auth
def delete_budget_route(budget_id: int, user_id: int):
    budget_service.delete_budget(store(), user_id, budget_id)
    return "", 204
