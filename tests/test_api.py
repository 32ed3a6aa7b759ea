from conftest import OTHER_USER, USER, auth, notification_fields
from myka.services.delivery import UnsupportedPlatform
from myka.web import create_app

BASE = "/api/notifications/scheduled"


def create(client, **overrides):
    response = client.post(BASE, json=notification_fields(**overrides), headers=auth())
    assert response.status_code == 201
    return response.get_json()["id"]


def test_health_needs_no_token(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["notifications"] == "supported"


def test_missing_token_is_401(client):
    response = client.get(BASE)
    assert response.status_code == 401
    assert response.get_json() == {"error": "Missing Authorization header"}


def test_garbage_token_is_401(client):
    response = client.get(BASE, headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_create_and_fetch(client):
    notification_id = create(client)

    response = client.get(f"{BASE}/{notification_id}", headers=auth())
    assert response.status_code == 200
    assert response.get_json()["notification"]["title"] == "Weigh in"

    listed = client.get(BASE, headers=auth()).get_json()["notifications"]
    assert [n["id"] for n in listed] == [notification_id]


def test_missing_fields_is_400(client):
    response = client.post(BASE, json={"time": "07:00"}, headers=auth())
    assert response.status_code == 400
    assert response.get_json()["error"].startswith("Missing required fields")


def test_malformed_body_is_400(client):
    response = client.post(BASE, data="not json", headers=auth(), content_type="application/json")
    assert response.status_code == 400


def test_unknown_id_is_404(client):
    assert client.get(f"{BASE}/nope", headers=auth()).status_code == 404
    assert client.put(f"{BASE}/nope", json={"title": "x"}, headers=auth()).status_code == 404


def test_other_users_record_is_403(client):
    notification_id = create(client)

    assert client.get(f"{BASE}/{notification_id}", headers=auth(OTHER_USER)).status_code == 403
    assert client.delete(f"{BASE}/{notification_id}", headers=auth(OTHER_USER)).status_code == 403
    assert client.post(f"{BASE}/{notification_id}/snooze", headers=auth(OTHER_USER)).status_code == 403


def test_partial_update(client):
    notification_id = create(client)

    response = client.put(f"{BASE}/{notification_id}", json={"time": "9:45"}, headers=auth())

    notification = response.get_json()["notification"]
    assert notification["time"] == "09:45"
    assert notification["body"] == "Log your weight before breakfast."
    assert notification["nextTrigger"].startswith("2030-01-15T09:45")


def test_delete_twice_succeeds(client):
    notification_id = create(client)
    assert client.delete(f"{BASE}/{notification_id}", headers=auth()).status_code == 200
    assert client.delete(f"{BASE}/{notification_id}", headers=auth()).status_code == 200


def test_toggle_requires_boolean(client, runtime):
    notification_id = create(client)

    assert client.post(f"{BASE}/{notification_id}/toggle", json={"enabled": "no"}, headers=auth()).status_code == 400
    response = client.post(f"{BASE}/{notification_id}/toggle", json={"enabled": False}, headers=auth())
    assert response.get_json()["notification"]["enabled"] is False
    assert runtime.scheduler.pending_jobs(notification_id) == 0


def test_snooze_disabled_is_400(client):
    notification_id = create(client, snoozeEnabled=False)
    assert client.post(f"{BASE}/{notification_id}/snooze", headers=auth()).status_code == 400


def test_action_returns_navigation_url(client):
    notification_id = create(client)

    response = client.post(f"{BASE}/{notification_id}/action", json={"action": "log-weight"}, headers=auth())

    body = response.get_json()
    assert body["navigateTo"] == "/dashboard/weight"
    assert body["url"] == "https://myka.test/dashboard/weight"


def test_skip_action_has_no_navigation(client):
    notification_id = create(client)
    body = client.post(f"{BASE}/{notification_id}/action", json={"action": "skip"}, headers=auth()).get_json()
    assert body["navigateTo"] is None
    assert body["url"] is None


def test_seed_defaults_endpoint(client):
    first = client.post("/api/notifications/defaults", headers=auth())
    assert first.status_code == 201
    assert len(first.get_json()["created"]) == 6

    second = client.post("/api/notifications/defaults", headers=auth())
    assert second.status_code == 200
    assert second.get_json()["created"] == []


def test_permission_endpoints(client, linked_user):
    status = client.get("/api/notifications/permission", headers=auth()).get_json()
    assert status == {"supported": True, "permission": "granted"}

    response = client.post("/api/notifications/permission", headers=auth(OTHER_USER))
    assert response.get_json()["permission"] == "denied"


def test_send_test_on_unsupported_platform_is_501(make_runtime):
    client = create_app(make_runtime(UnsupportedPlatform())).test_client()
    response = client.post("/api/notifications/test", json={"type": "water-reminder"}, headers=auth())
    assert response.status_code == 501


def test_telegram_link(client):
    body = client.post("/api/notifications/telegram-link", headers=auth()).get_json()
    assert body["url"].endswith(f"?start={body['code']}")


def test_logs_endpoint(client, runtime):
    notification_id = create(client)
    runtime.store.log_trigger(runtime.store.get(notification_id).to_dict())

    logs = client.get("/api/notifications/logs?type=weight-tracking", headers=auth()).get_json()["logs"]
    assert len(logs) == 1
    assert logs[0]["notificationId"] == notification_id


def test_install_flow(client):
    iphone = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)"

    state = client.post("/api/install/state", json={"userAgent": iphone}, headers=auth()).get_json()
    assert state["flow"] == "manual-instructions"
    assert state["shouldShowPrompt"] is True

    prompted = client.post("/api/install/prompt", json={"outcome": "dismissed"}, headers=auth()).get_json()
    assert prompted["promptShown"] is True
    assert prompted["recorded"] is True

    state = client.get("/api/install/state", headers=auth()).get_json()
    assert state["shouldShowPrompt"] is False

    state = client.post("/api/install/reset", headers=auth()).get_json()
    assert state["shouldShowPrompt"] is True


def test_install_prompt_rejects_unknown_outcome(client):
    response = client.post("/api/install/prompt", json={"outcome": "maybe"}, headers=auth())
    assert response.status_code == 400


def test_routine_config_seeds_and_delete_clears(client, runtime):
    response = client.post("/api/morning-routine/config", json={"wakeUpTime": "6:00"}, headers=auth())
    assert response.status_code == 201
    assert response.get_json()["config"]["wakeUpTime"] == "06:00"

    notifications = client.get(BASE, headers=auth()).get_json()["notifications"]
    assert len(notifications) == 6
    ids = [n["id"] for n in notifications]

    response = client.delete("/api/morning-routine/config", headers=auth())
    assert response.get_json()["removedNotifications"] == 6
    assert client.get(BASE, headers=auth()).get_json()["notifications"] == []
    assert all(runtime.scheduler.pending_jobs(i) == 0 for i in ids)
    assert client.get("/api/morning-routine/config", headers=auth()).get_json()["config"] is None


def test_routine_config_put_updates_without_reseeding(client):
    client.put("/api/morning-routine/config", json={"enabled": True}, headers=auth())
    client.delete(BASE + "/" + client.get(BASE, headers=auth()).get_json()["notifications"][0]["id"], headers=auth())

    response = client.put("/api/morning-routine/config", json={"wakeUpTime": "05:30"}, headers=auth())

    assert response.get_json()["config"]["wakeUpTime"] == "05:30"
    assert len(client.get(BASE, headers=auth()).get_json()["notifications"]) == 5


def test_unknown_route_is_json_404(client):
    response = client.get("/api/nothing-here", headers=auth())
    assert response.status_code == 404
    assert "error" in response.get_json()


def test_install_subscribers_outlive_a_request(client, runtime):
    seen = []
    runtime.tracker(USER).subscribe(seen.append)

    client.post("/api/install/state", json={"userAgent": "Mozilla/5.0 (iPhone)"}, headers=auth())

    assert runtime.tracker(USER) is runtime.tracker(USER)
    assert seen[-1].platform == "ios"
    assert seen[-1].can_install is True
