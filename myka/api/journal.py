from flask import Blueprint, g, jsonify, request

from myka.errors import ValidationError
from myka.services import journal

from .common import json_body, login_required

bp = Blueprint("journal", __name__, url_prefix="/api/journal")


def _int_arg(name: str, default: int) -> int:
    value = request.args.get(name, default=default, type=int)
    if value is None:
        raise ValidationError(f"{name} must be an integer")
    return value


@bp.get("/entry")
@login_required
def today_entry():
    return jsonify({"entry": journal.get_entry(g.user_id)})


@bp.post("/entry")
@login_required
def save_today_entry():
    entry = journal.save_entry(g.user_id, json_body())
    return jsonify({"id": entry["id"], "entry": entry, "success": True})


@bp.get("/entry/<date>")
@login_required
def entry_for_date(date):
    return jsonify({"entry": journal.get_entry(g.user_id, date)})


@bp.put("/entry/<date>")
@login_required
def update_entry(date):
    return jsonify({"success": True, "entry": journal.update_entry(g.user_id, date, json_body())})


@bp.delete("/entry/<date>")
@login_required
def delete_entry(date):
    journal.delete_entry(g.user_id, date)
    return jsonify({"success": True})


@bp.get("/history")
@login_required
def history():
    """``?limit&offset&startDate&endDate&q``; newest first."""
    result = journal.journal_history(
        g.user_id,
        start_date=request.args.get("startDate"),
        end_date=request.args.get("endDate"),
        search=request.args.get("q"),
        limit=_int_arg("limit", 30),
        offset=_int_arg("offset", 0),
    )
    return jsonify(result)


@bp.get("/stats")
@login_required
def stats():
    return jsonify({"stats": journal.journal_stats(g.user_id)})


@bp.get("/calendar/<int:year>/<int:month>")
@login_required
def calendar(year, month):
    return jsonify({"calendarData": journal.calendar_data(g.user_id, year, month)})
