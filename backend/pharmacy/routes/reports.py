# backend/pharmacy/routes/reports.py
"""Reporting routes: daily sales, revenue and expiration alerts (data only)."""

from flask import Blueprint, request, current_app

from ..services import reporting_service
from ..services.reporting_service import ReportError
from ..time_utils import local_today, parse_iso_date

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _date_arg(name: str):
    raw = request.args.get(name)
    if not raw:
        return local_today()
    return parse_iso_date(raw)


@reports_bp.get("/daily-sales")
def daily_sales_route():
    try:
        day = _date_arg("day")
    except ValueError:
        return {"error": "day must be an ISO-8601 date (YYYY-MM-DD)"}, 400
    return reporting_service.daily_sales_report(day)


@reports_bp.get("/revenue")
def revenue_route():
    return reporting_service.revenue_summary()


@reports_bp.get("/expiration-alerts")
def expiration_alerts_route():
    try:
        today = _date_arg("today")
    except ValueError:
        return {"error": "today must be an ISO-8601 date (YYYY-MM-DD)"}, 400

    threshold = request.args.get(
        "threshold_days",
        default=current_app.config.get("NEAR_EXPIRY_THRESHOLD_DAYS", 30),
        type=int,
    )
    try:
        return reporting_service.expiration_alerts(today, threshold)
    except ReportError as e:
        return {"error": str(e)}, 400
