# Overview: Flask API routes for account operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..decorators import require_auth
from ..services import account_service
from .common import read_json, store


accounts_bp = Blueprint("accounts", __name__, url_prefix="/accounts")


@accounts_bp.get("")
@require_auth
def list_accounts_route(user_id: int):
    return jsonify([a.to_dict() for a in account_service.list_accounts(store(), user_id)])


@accounts_bp.post("")
@require_auth
def create_account_route(user_id: int):
    """Body: {name, type, balance?}. Balance defaults to 0."""
    account = account_service.create_account(store(), user_id, read_json())
    return jsonify(account.to_dict()), 201


@accounts_bp.get("/<int:account_id>")
@require_auth
def get_account_route(account_id: int, user_id: int):
    return jsonify(account_service.get_account(store(), user_id, account_id).to_dict())


@accounts_bp.put("/<int:account_id>")
@require_auth
def update_account_route(account_id: int, user_id: int):
    account = account_service.update_account(store(), user_id, account_id, read_json())
    return jsonify(account.to_dict())


@accounts_bp.delete("/<int:account_id>")
@require_auth
def delete_account_route(account_id: int, user_id: int):
    account_service.delete_account(store(), user_id, account_id)
    return "", 204
