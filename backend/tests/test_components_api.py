"""
API tests for /api/components
"""


def _create(client, headers, **overrides):
    payload = {
        "kind": "role",
        "name": "Marketing Expert",
        "content": "You are a senior marketing strategist.",
        "tags": ["marketing"],
    }
    payload.update(overrides)
    return client.post("/api/components/", json=payload, headers=headers)


def test_owner_header_required(client):
    r = client.get("/api/components/")
    assert r.status_code == 401

    r = client.get("/api/components/", headers={"X-Owner-Id": "   "})
    assert r.status_code == 401


def test_component_crud(client, owner_headers):
    r = _create(client, owner_headers)
    assert r.status_code == 201
    component = r.json()
    component_id = component["id"]
    assert component["kind"] == "role"
    assert component["usage_count"] == 0

    r = client.get(f"/api/components/{component_id}", headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["name"] == "Marketing Expert"

    r = client.patch(
        f"/api/components/{component_id}",
        json={"content": "You are a growth marketer."},
        headers=owner_headers
    )
    assert r.status_code == 200
    assert r.json()["content"] == "You are a growth marketer."
    assert r.json()["name"] == "Marketing Expert"

    r = client.delete(f"/api/components/{component_id}", headers=owner_headers)
    assert r.status_code == 204

    r = client.get(f"/api/components/{component_id}", headers=owner_headers)
    assert r.status_code == 404


def test_timestamps_carry_utc_offset(client, owner_headers, db):
    component_id = _create(client, owner_headers).json()["id"]
    db.expire_all()

    body = client.get(f"/api/components/{component_id}", headers=owner_headers).json()

    for field in ("created_at", "updated_at"):
        assert body[field].endswith(("Z", "+00:00"))


def test_validation_errors_are_listed_per_field(client, owner_headers):
    r = _create(client, owner_headers, kind="persona", name="", content="x" * 5001)

    assert r.status_code == 422
    body = r.json()
    assert body["code"] == "validation_error"
    assert body["retryable"] is False
    assert {e["field"] for e in body["errors"]} == {"kind", "name", "content"}


def test_kind_cannot_be_changed(client, owner_headers):
    component_id = _create(client, owner_headers).json()["id"]

    r = client.patch(f"/api/components/{component_id}", json={"kind": "style"}, headers=owner_headers)

    assert r.status_code == 422
    assert r.json()["errors"] == [{"field": "kind", "message": "kind is immutable"}]


def test_other_owner_sees_404(client, owner_headers, other_owner_headers):
    component_id = _create(client, owner_headers).json()["id"]

    assert client.get(f"/api/components/{component_id}", headers=other_owner_headers).status_code == 404
    r = client.patch(
        f"/api/components/{component_id}", json={"name": "Mine now"}, headers=other_owner_headers
    )
    assert r.status_code == 404
    assert client.delete(f"/api/components/{component_id}", headers=other_owner_headers).status_code == 404
    assert client.get(f"/api/components/{component_id}", headers=owner_headers).status_code == 200


def test_list_filters(client, owner_headers, other_owner_headers):
    _create(client, owner_headers, name="Copywriter")
    _create(client, owner_headers, kind="style", name="Concise", content="Be brief.", tags=[])
    _create(client, other_owner_headers, name="Not yours")

    r = client.get("/api/components/", headers=owner_headers)
    assert r.status_code == 200
    assert {c["name"] for c in r.json()} == {"Copywriter", "Concise"}

    r = client.get("/api/components/", params={"kind": "style"}, headers=owner_headers)
    assert [c["name"] for c in r.json()] == ["Concise"]

    r = client.get("/api/components/", params={"tag": "marketing"}, headers=owner_headers)
    assert [c["name"] for c in r.json()] == ["Copywriter"]

    r = client.get("/api/components/", params={"kind": "persona"}, headers=owner_headers)
    assert r.status_code == 422


def test_delete_clears_preset_slot(client, owner_headers):
    role_id = _create(client, owner_headers).json()["id"]
    mode_id = _create(client, owner_headers, kind="mode", name="Steps", content="Think step by step.").json()["id"]
    preset_id = client.post(
        "/api/presets/",
        json={"name": "Quick Expert", "role_id": role_id, "mode_id": mode_id},
        headers=owner_headers
    ).json()["id"]

    assert client.delete(f"/api/components/{role_id}", headers=owner_headers).status_code == 204

    preset = client.get(f"/api/presets/{preset_id}", headers=owner_headers).json()
    assert preset["role_component_id"] is None
    assert preset["slots"]["role"]["state"] == "empty"
    assert preset["mode_component_id"] == mode_id
