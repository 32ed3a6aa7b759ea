"""
Blueprints for the daily tracking resources: todos, priorities, meals,
weight, water and the morning routine.
"""
from flask import Blueprint, g, jsonify, request

from myka.errors import ValidationError
from myka.services import meals, morning_routine, priorities, todos, tracking
from myka.services.timeparse import parse_date

from .common import get_runtime, json_body, login_required

todos_bp = Blueprint("todos", __name__, url_prefix="/api/todos")
priorities_bp = Blueprint("priorities", __name__, url_prefix="/api/priorities")
meals_bp = Blueprint("meals", __name__, url_prefix="/api/meals")
weight_bp = Blueprint("weight", __name__, url_prefix="/api/weight")
water_bp = Blueprint("water", __name__, url_prefix="/api/water")
routine_bp = Blueprint("morning_routine", __name__, url_prefix="/api/morning-routine")


# --- todos -------------------------------------------------------------------


@todos_bp.get("")
@login_required
def list_todos():
    return jsonify({"todos": todos.list_todos(g.user_id, request.args.get("date"))})


@todos_bp.post("")
@login_required
def create_todo():
    todo = todos.create_todo(g.user_id, json_body())
    return jsonify({"id": todo["id"], "todo": todo}), 201


@todos_bp.put("/<todo_id>")
@login_required
def update_todo(todo_id):
    return jsonify({"todo": todos.update_todo(g.user_id, todo_id, json_body())})


@todos_bp.delete("/<todo_id>")
@login_required
def delete_todo(todo_id):
    todos.delete_todo(g.user_id, todo_id)
    return jsonify({"success": True})


@todos_bp.post("/<todo_id>/toggle")
@login_required
def toggle_todo(todo_id):
    return jsonify({"todo": todos.toggle_todo(g.user_id, todo_id)})


@todos_bp.get("/stats/<date>")
@login_required
def todo_stats(date):
    return jsonify({"stats": todos.todo_stats(g.user_id, date)})


# --- priorities --------------------------------------------------------------


@priorities_bp.get("")
@login_required
def list_priorities():
    args = request.args
    items = priorities.list_priorities(g.user_id, args.get("date"), args.get("startDate"), args.get("endDate"))
    return jsonify({"priorities": items})


@priorities_bp.post("")
@login_required
def create_priority():
    priority = priorities.create_priority(g.user_id, json_body())
    return jsonify({"id": priority["id"], "priority": priority}), 201


@priorities_bp.put("/<priority_id>")
@login_required
def update_priority(priority_id):
    return jsonify({"priority": priorities.update_priority(g.user_id, priority_id, json_body())})


@priorities_bp.delete("/<priority_id>")
@login_required
def delete_priority(priority_id):
    priorities.delete_priority(g.user_id, priority_id)
    return jsonify({"success": True})


@priorities_bp.post("/<priority_id>/toggle")
@login_required
def toggle_priority(priority_id):
    return jsonify({"priority": priorities.toggle_priority(g.user_id, priority_id)})


# --- meals -------------------------------------------------------------------


@meals_bp.get("")
@login_required
def list_meals():
    date = request.args.get("date")
    if not date:
        raise ValidationError("Date parameter is required")
    return jsonify({"meals": meals.list_meals(g.user_id, date, request.args.get("mealType"))})


@meals_bp.post("")
@login_required
def create_meal():
    meal = meals.create_meal(g.user_id, json_body())
    return jsonify({"id": meal["id"], "meal": meal}), 201


@meals_bp.get("/summary")
@login_required
def meal_summary():
    date = request.args.get("date")
    if not date:
        raise ValidationError("Date parameter is required")
    return jsonify({"summary": meals.meal_summary(g.user_id, date)})


@meals_bp.get("/search")
@login_required
def search_foods():
    return jsonify({"foods": meals.search_foods(request.args.get("q", ""))})


@meals_bp.put("/<meal_id>")
@login_required
def update_meal(meal_id):
    return jsonify({"meal": meals.update_meal(g.user_id, meal_id, json_body())})


@meals_bp.delete("/<meal_id>")
@login_required
def delete_meal(meal_id):
    meals.delete_meal(g.user_id, meal_id)
    return jsonify({"success": True})


# --- weight ------------------------------------------------------------------


@weight_bp.post("/entry")
@login_required
def log_weight():
    entry = tracking.log_weight(g.user_id, json_body())
    return jsonify({"id": entry["id"], "entry": entry}), 201


@weight_bp.get("/history")
@login_required
def weight_history():
    limit = request.args.get("limit", default=30, type=int)
    if limit is None or limit <= 0:
        raise ValidationError("limit must be a positive integer")
    return jsonify({"history": tracking.weight_history(g.user_id, min(limit, 365))})


@weight_bp.get("/today")
@login_required
def weight_today():
    stats = tracking.weight_stats(g.user_id)
    return jsonify({"weight": stats["todayWeight"], "stats": stats})


@weight_bp.get("/date/<date>")
@login_required
def weight_for_date(date):
    return jsonify({"entry": tracking.weight_for_date(g.user_id, date)})


@weight_bp.get("/stats")
@login_required
def weight_stats():
    return jsonify({"stats": tracking.weight_stats(g.user_id)})


@weight_bp.get("/stats/enhanced")
@login_required
def enhanced_weight_stats():
    return jsonify({"success": True, "data": tracking.enhanced_weight_stats(g.user_id)})


@weight_bp.get("/daily-summary")
@login_required
def daily_weight_summary():
    start = request.args.get("startDate")
    end = request.args.get("endDate")
    if not start or not end:
        raise ValidationError("Missing startDate or endDate parameters")
    start, end = parse_date(start, "startDate"), parse_date(end, "endDate")
    summary = tracking.daily_weight_summary(g.user_id, start, end)
    return jsonify({"success": True, "data": {"period": f"{(end - start).days}d", "summary": summary}})


@weight_bp.get("/trend")
@login_required
def weight_trend():
    return jsonify({"success": True, "data": tracking.weight_trend(g.user_id, request.args.get("period"))})


# --- water -------------------------------------------------------------------


@water_bp.post("/entry")
@login_required
def log_water():
    entry = tracking.log_water(g.user_id, json_body())
    return jsonify({"id": entry["id"], "entry": entry}), 201


@water_bp.get("/today")
@login_required
def water_today():
    return jsonify(tracking.water_today(g.user_id))


# --- morning routine ---------------------------------------------------------


@routine_bp.get("/config")
@login_required
def get_config():
    return jsonify({"config": morning_routine.get_config(g.user_id)})


@routine_bp.post("/config")
@login_required
def create_config():
    config = morning_routine.create_config(get_runtime().notifications, g.user_id, json_body(required=False))
    return jsonify({"config": config}), 201


@routine_bp.put("/config")
@login_required
def save_config():
    config = morning_routine.save_config(get_runtime().notifications, g.user_id, json_body())
    return jsonify({"success": True, "config": config})


@routine_bp.delete("/config")
@login_required
def delete_config():
    removed = morning_routine.delete_config(get_runtime().notifications, g.user_id)
    return jsonify({"success": True, "removedNotifications": removed})


@routine_bp.post("/complete-task")
@login_required
def complete_task():
    return jsonify({"success": True, "progress": morning_routine.complete_task(g.user_id, json_body())})


@routine_bp.get("/progress/<date>")
@login_required
def get_progress(date):
    return jsonify({"progress": morning_routine.get_progress(g.user_id, date)})
