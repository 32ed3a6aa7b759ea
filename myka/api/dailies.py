"""Routes for the daily check-in under ``/api/dailies``."""
from flask import Blueprint, g, jsonify, request

from myka.errors import ValidationError
from myka.services import dailies

from .common import json_body, login_required

bp = Blueprint("dailies", __name__, url_prefix="/api/dailies")


@bp.get("/entry")
@bp.get("/today")
@login_required
def today_entry():
    return jsonify({"entry": dailies.get_entry(g.user_id)})


@bp.post("/entry")
@login_required
def save_entry():
    return jsonify({"entry": dailies.save_today_entry(g.user_id, json_body()), "success": True})


@bp.get("/date/<date>")
@login_required
def entry_for_date(date):
    return jsonify({"entry": dailies.get_entry(g.user_id, date)})


@bp.get("/stats/<date>")
@login_required
def stats_for_date(date):
    return jsonify({"stats": dailies.daily_stats(g.user_id, date)})


@bp.get("/history")
@login_required
def history():
    limit = request.args.get("limit", default=30, type=int)
    if limit is None:
        raise ValidationError("Limit must be a number between 1 and 100")
    return jsonify({"entries": dailies.recent_entries(g.user_id, limit)})


@bp.get("/trends")
@login_required
def trends():
    start, end = request.args.get("startDate"), request.args.get("endDate")
    if not start or not end:
        raise ValidationError("startDate and endDate parameters are required")
    return jsonify({"trends": dailies.daily_trends(g.user_id, start, end)})
