"""
API tests for the chat-turn hooks
"""


def _component(client, headers, kind, content):
    r = client.post(
        "/api/components/",
        json={"kind": kind, "name": f"{kind} for chat", "content": content},
        headers=headers
    )
    return r.json()["id"]


def test_resolve_from_preset_then_record_usage(client, owner_headers):
    role_id = _component(client, owner_headers, "role", "You are a marketing expert.")
    mode_id = _component(client, owner_headers, "mode", "Think step by step.")
    other_role_id = _component(client, owner_headers, "role", "You are a lawyer.")
    preset_id = client.post(
        "/api/presets/",
        json={"name": "Quick Expert", "role_id": role_id, "mode_id": mode_id},
        headers=owner_headers
    ).json()["id"]

    r = client.post(
        "/api/chat/resolve",
        json={"presetId": preset_id, "roleId": other_role_id},
        headers=owner_headers
    )
    assert r.status_code == 200
    resolution = r.json()
    assert resolution["source"] == "preset"
    assert resolution["use_default"] is False
    assert resolution["prompt_text"] == "## Role\nYou are a marketing expert.\n\n## Mode\nThink step by step."
    assert resolution["component_ids"] == [role_id, mode_id]

    r = client.post(
        "/api/chat/usage",
        json={
            "component_ids": resolution["component_ids"],
            "preset_id": resolution["preset_id"],
            "completed_at": "2026-03-01T09:00:00Z",
        },
        headers=owner_headers
    )
    assert r.status_code == 204

    preset = client.get(f"/api/presets/{preset_id}", headers=owner_headers).json()
    assert preset["usage_count"] == 1
    assert preset["last_used_at"].startswith("2026-03-01T09:00:00")
    role = client.get(f"/api/components/{role_id}", headers=owner_headers).json()
    assert role["usage_count"] == 2
    other = client.get(f"/api/components/{other_role_id}", headers=owner_headers).json()
    assert other["usage_count"] == 0


def test_resolve_manual_drops_bad_ids(client, owner_headers):
    style_id = _component(client, owner_headers, "style", "Be concise.")

    r = client.post(
        "/api/chat/resolve",
        json={"styleId": style_id, "roleId": "not-a-uuid"},
        headers=owner_headers
    )

    assert r.status_code == 200
    assert r.json()["source"] == "manual"
    assert r.json()["prompt_text"] == "## Style\nBe concise."


def test_resolve_without_selection(client, owner_headers):
    r = client.post("/api/chat/resolve", json={}, headers=owner_headers)

    assert r.status_code == 200
    assert r.json() == {
        "prompt_text": None,
        "use_default": True,
        "source": "default",
        "preset_id": None,
        "component_ids": [],
    }


def test_usage_for_deleted_component_is_rejected(client, owner_headers):
    role_id = _component(client, owner_headers, "role", "Gone soon")
    keep_id = _component(client, owner_headers, "mode", "Stays")
    client.delete(f"/api/components/{role_id}", headers=owner_headers)

    r = client.post(
        "/api/chat/usage", json={"component_ids": [role_id, keep_id]}, headers=owner_headers
    )

    assert r.status_code == 409
    assert r.json()["retryable"] is True
    keep = client.get(f"/api/components/{keep_id}", headers=owner_headers).json()
    assert keep["usage_count"] == 0


def test_usage_requires_owner(client):
    r = client.post("/api/chat/usage", json={"component_ids": []})
    assert r.status_code == 401
