# tests/test_quick_actions_api.py
ACTIONS = [
    {"icon": "💬", "title": "Chat", "type": "message", "order": 4, "config": {"message": "Hi"}},
    {"icon": "🙏", "title": "Book Seva", "subtitle": "Schedule a Puja", "type": "message", "order": 1},
    {"icon": "📞", "title": "Support", "type": "handoff", "order": 3, "isActive": False},
]


def _create_all(client, auth_headers):
    return [client.post("/api/v1/quick-actions", json=a, headers=auth_headers).json() for a in ACTIONS]


def test_public_list_is_active_and_ordered(client, auth_headers):
    _create_all(client, auth_headers)
    titles = [a["title"] for a in client.get("/api/v1/quick-actions").json()]
    assert titles == ["Book Seva", "Chat"]

    everything = client.get("/api/v1/quick-actions/all", headers=auth_headers).json()
    assert len(everything) == 3
    assert client.get("/api/v1/quick-actions/all").status_code == 401


def test_click_tracking(client, auth_headers):
    created = _create_all(client, auth_headers)
    action_id = created[1]["id"]
    client.post(f"/api/v1/quick-actions/{action_id}/click")
    res = client.post(f"/api/v1/quick-actions/{action_id}/click")
    assert res.json()["clickCount"] == 2
    assert res.json()["lastUsed"] is not None

    inactive_id = created[2]["id"]
    assert client.post(f"/api/v1/quick-actions/{inactive_id}/click").status_code == 404


def test_update_delete_and_validation(client, auth_headers):
    created = _create_all(client, auth_headers)
    action_id = created[0]["id"]

    res = client.patch(f"/api/v1/quick-actions/{action_id}", json={"subtitle": "Message us"}, headers=auth_headers)
    assert res.json()["subtitle"] == "Message us"
    assert res.json()["config"] == {"message": "Hi"}

    bad = {"title": "Teleport", "type": "teleport"}
    assert client.post("/api/v1/quick-actions", json=bad, headers=auth_headers).status_code == 422

    assert client.delete(f"/api/v1/quick-actions/{action_id}", headers=auth_headers).status_code == 204
    assert client.patch(f"/api/v1/quick-actions/{action_id}", json={}, headers=auth_headers).status_code == 404
