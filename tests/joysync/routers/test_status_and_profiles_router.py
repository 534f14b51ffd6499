"""Tests for status and profiles routers."""


def test_heartbeat_marks_online(client, faker):
    headers = {"X-User-Id": faker.uuid4()}
    r = client.post("/status/heartbeat", headers=headers)
    assert r.status_code == 200
    data = r.json()
    assert data["is_online"] is True
    assert data["last_seen_label"] == "Online"


def test_offline(client, auth_headers):
    client.post("/status/heartbeat", headers=auth_headers)
    r = client.post("/status/offline", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["is_online"] is False
    assert r.json()["last_seen_label"] == "Just now"


def test_offline_without_profile(client, faker):
    r = client.post("/status/offline", headers={"X-User-Id": faker.uuid4()})
    assert r.status_code == 404


def test_get_statuses(client, auth_headers, setup_counterpart):
    r = client.get(
        "/status",
        params={"user_ids": f"{setup_counterpart.user_id},ghost"},
        headers=auth_headers,
    )
    assert r.status_code == 200
    rows = r.json()
    assert [row["user_id"] for row in rows] == [setup_counterpart.user_id, "ghost"]
    assert rows[0]["is_online"] is True
    assert rows[1]["last_seen_label"] == "Never"


def test_upsert_and_get_profile(client, faker):
    headers = {"X-User-Id": faker.uuid4()}
    r = client.put("/profiles/me", json={"display_name": "Iris"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["display_name"] == "Iris"
    assert r.json()["role"] == "user"

    r = client.get(f"/profiles/{headers['X-User-Id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()["display_name"] == "Iris"


def test_profile_role_cannot_be_self_assigned(client, auth_headers):
    r = client.put("/profiles/me", json={"role": "admin"}, headers=auth_headers)
    assert r.status_code == 403


def test_get_profile_not_found(client, auth_headers):
    r = client.get("/profiles/nobody", headers=auth_headers)
    assert r.status_code == 404
