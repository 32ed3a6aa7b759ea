from flask import Blueprint, g, jsonify, request

from myka.config import BOT_USERNAME
from myka.errors import ValidationError
from myka.services.users import create_link_code, ensure_user

from .common import get_runtime, json_body, login_required

bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@bp.get("/scheduled")
@login_required
def list_scheduled():
    return jsonify({"notifications": get_runtime().notifications.list(g.user_id)})


@bp.post("/scheduled")
@login_required
def create_scheduled():
    notification = get_runtime().notifications.create(g.user_id, json_body())
    return jsonify({"id": notification["id"], "notification": notification}), 201


@bp.get("/scheduled/<notification_id>")
@login_required
def get_scheduled(notification_id):
    return jsonify({"notification": get_runtime().notifications.get(g.user_id, notification_id)})


@bp.put("/scheduled/<notification_id>")
@login_required
def update_scheduled(notification_id):
    notification = get_runtime().notifications.update(g.user_id, notification_id, json_body())
    return jsonify({"success": True, "notification": notification})


@bp.delete("/scheduled/<notification_id>")
@login_required
def delete_scheduled(notification_id):
    get_runtime().notifications.delete(g.user_id, notification_id)
    return jsonify({"success": True})


@bp.post("/scheduled/<notification_id>/toggle")
@login_required
def toggle_scheduled(notification_id):
    data = json_body()
    if "enabled" not in data:
        raise ValidationError("Missing required field: enabled")
    notification = get_runtime().notifications.toggle(g.user_id, notification_id, data["enabled"])
    return jsonify({"success": True, "notification": notification})


@bp.post("/scheduled/<notification_id>/snooze")
@login_required
def snooze_scheduled(notification_id):
    run_at = get_runtime().notifications.snooze(g.user_id, notification_id)
    return jsonify({"success": True, "snoozedUntil": run_at.isoformat()})


@bp.post("/scheduled/<notification_id>/action")
@login_required
def notification_action(notification_id):
    runtime = get_runtime()
    outcome = runtime.notifications.handle_action(g.user_id, notification_id, json_body(required=False).get("action"))
    data = outcome.to_dict()
    data["url"] = runtime.url_for(outcome.navigate_to) if outcome.navigate_to else None
    return jsonify(data)


@bp.post("/defaults")
@login_required
def seed_defaults():
    created = get_runtime().notifications.seed_defaults(g.user_id)
    return jsonify({"created": created}), 201 if created else 200


@bp.post("/test")
@login_required
def send_test():
    payload = get_runtime().notifications.send_test(g.user_id, json_body(required=False).get("type"))
    return jsonify({"success": True, "notification": payload})


@bp.get("/permission")
@login_required
def permission_status():
    permissions = get_runtime().permissions
    return jsonify({
        "supported": permissions.is_supported(),
        "permission": permissions.get_permission_status(g.user_id),
    })


@bp.post("/permission")
@login_required
def request_permission():
    return jsonify({"permission": get_runtime().permissions.request_permission(g.user_id)})


@bp.get("/logs")
@login_required
def list_logs():
    limit = request.args.get("limit", default=50, type=int)
    if limit is None or limit <= 0:
        raise ValidationError("limit must be a positive integer")
    logs = get_runtime().store.list_logs(g.user_id, request.args.get("type"), min(limit, 500))
    return jsonify({"logs": [entry.to_dict() for entry in logs]})


@bp.get("/outbox")
@login_required
def list_outbox():
    return jsonify({"pending": get_runtime().notifications.pending(g.user_id)})


@bp.post("/outbox/flush")
@login_required
def flush_outbox():
    return jsonify(get_runtime().notifications.flush_outbox(g.user_id))


@bp.post("/telegram-link")
@login_required
def telegram_link():
    runtime = get_runtime()
    ensure_user(runtime.session_factory, g.user_id)
    code = create_link_code(runtime.session_factory, g.user_id)
    return jsonify({"code": code, "url": f"https://t.me/{BOT_USERNAME}?start={code}"})
