from flask import Blueprint, jsonify

from ..decorators import require_auth
from ..services import reporting_service
from .common import store


reports_bp = Blueprint("reports", __name__, url_prefix="/reports")


@reports_bp.get("/income-vs-expense")
@require_auth
def income_vs_expense_report(user_id: int):
    """[{month: "YYYY-MM", income, expense}, ...] ordered by month."""
    return jsonify(reporting_service.income_vs_expense(store(), user_id))
