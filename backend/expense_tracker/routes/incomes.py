# Overview: Flask API routes for income operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..decorators import require_auth
from ..services import income_service
from .common import clock, read_json, store


incomes_bp = Blueprint("incomes", __name__, url_prefix="/incomes")


@incomes_bp.get("")
@require_auth
def list_incomes_route(user_id: int):
    return jsonify([i.to_dict() for i in income_service.list_incomes(store(), user_id)])


@incomes_bp.post("")
@require_auth
def create_income_route(user_id: int):
    """Create an income and credit its account. Body: {amount, source, note?, date?, account_id}."""
    income = income_service.create_income(store(), user_id, read_json(), clock=clock())
    return jsonify(income.to_dict()), 201


@incomes_bp.get("/<int:income_id>")
@require_auth
def get_income_route(income_id: int, user_id: int):
    return jsonify(income_service.get_income(store(), user_id, income_id).to_dict())


@incomes_bp.put("/<int:income_id>")
@require_auth
def update_income_route(income_id: int, user_id: int):
    income = income_service.update_income(store(), user_id, income_id, read_json(), clock=clock())
    return jsonify(income.to_dict())


@incomes_bp.delete("/<int:income_id>")
@require_auth
def delete_income_route(income_id: int, user_id: int):
    income_service.delete_income(store(), user_id, income_id)
    return "", 204
