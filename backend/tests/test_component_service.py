"""
Unit tests for ComponentService
"""
from datetime import timedelta
from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy import Delete

from app.core.config import Settings
from app.core.errors import (ConflictError, IntegrityViolation, NotFoundError,
                             ValidationError)
from app.models.component import Component, ComponentKind
from app.models.preset import Preset
from app.services.component_service import ComponentService

OWNER = "user-alice"
OTHER_OWNER = "user-bob"


class TestComponentService:
    """Test cases for ComponentService"""

    def test_create_component(self, component_service: ComponentService):
        component = component_service.create_component(
            OWNER,
            kind="role",
            name="Marketing Expert",
            content="You are a senior marketing strategist.",
            tags=["marketing", " seo ", "marketing"],
        )

        assert component.id is not None
        assert component.kind == "role"
        assert component.owner_id == OWNER
        assert component.usage_count == 0
        assert component.tags == ["marketing", "seo"]
        assert component.created_at is not None

    def test_create_accepts_enum_kind(self, component_service):
        component = component_service.create_component(
            OWNER, kind=ComponentKind.MODE, name="Step by step", content="Think step by step."
        )
        assert component.kind == "mode"

    def test_create_invalid_persists_nothing(self, component_service, db):
        with pytest.raises(ValidationError) as exc_info:
            component_service.create_component(OWNER, kind="tone", name="", content="x")

        assert set(exc_info.value.fields) == {"kind", "name"}
        assert db.query(Component).count() == 0

    def test_get_component_scoped_to_owner(self, component_service, make_component):
        component = make_component("style")

        assert component_service.get_component(OWNER, component.id).id == component.id
        with pytest.raises(NotFoundError):
            component_service.get_component(OTHER_OWNER, component.id)
        with pytest.raises(NotFoundError):
            component_service.get_component(OWNER, uuid4())

    def test_list_components_filters(self, component_service, make_component):
        make_component("role", name="Copywriter", tags=["marketing"])
        make_component("role", name="Data Analyst")
        make_component("style", name="Concise", tags=["marketing"])
        make_component("role", name="Other owner's role", owner_id=OTHER_OWNER)

        assert len(component_service.list_components(OWNER)) == 3
        roles = component_service.list_components(OWNER, kind=ComponentKind.ROLE)
        assert {c.name for c in roles} == {"Copywriter", "Data Analyst"}
        assert [c.name for c in component_service.list_components(OWNER, name_search="analyst")] == ["Data Analyst"]
        tagged = component_service.list_components(OWNER, tag="marketing")
        assert {c.name for c in tagged} == {"Copywriter", "Concise"}
        assert len(component_service.list_components(OWNER, limit=2)) == 2

    def test_name_search_matches_wildcards_literally(self, component_service, make_component):
        make_component("role", name="100% Pure")
        make_component("role", name="100 Pure")
        make_component("style", name="snake_case")
        make_component("style", name="snakeXcase")

        assert [c.name for c in component_service.list_components(OWNER, name_search="100%")] == ["100% Pure"]
        assert [c.name for c in component_service.list_components(OWNER, name_search="snake_")] == ["snake_case"]

    def test_duplicate_tags_count_once(self, component_service):
        component = component_service.create_component(
            OWNER, kind="role", name="Tagged", content="x", tags=["seo"] * 21
        )
        assert component.tags == ["seo"]

    def test_update_component(self, component_service, make_component):
        component = make_component("context", name="Old name")

        updated = component_service.update_component(
            OWNER, component.id, {"name": "New name", "description": "About the product"}
        )

        assert updated.name == "New name"
        assert updated.description == "About the product"
        assert updated.kind == "context"
        assert updated.content == component.content

    def test_update_kind_is_immutable(self, component_service, make_component):
        component = make_component("role")

        with pytest.raises(ValidationError) as exc_info:
            component_service.update_component(OWNER, component.id, {"kind": "style"})

        assert exc_info.value.field_errors[0].message == "kind is immutable"
        assert component_service.get_component(OWNER, component.id).kind == "role"

    def test_update_usage_count_not_allowed(self, component_service, make_component):
        component = make_component("role")
        with pytest.raises(ValidationError):
            component_service.update_component(OWNER, component.id, {"usage_count": 99})

    def test_update_invalid_leaves_row_untouched(self, component_service, make_component):
        component = make_component("role", name="Keep me")

        with pytest.raises(ValidationError):
            component_service.update_component(OWNER, component.id, {"name": "", "content": "fine"})

        assert component_service.get_component(OWNER, component.id).name == "Keep me"

    def test_update_other_owner_not_found(self, component_service, make_component):
        component = make_component("role")
        with pytest.raises(NotFoundError):
            component_service.update_component(OTHER_OWNER, component.id, {"name": "Hijack"})

    def test_delete_component(self, component_service, make_component, db):
        component = make_component("mode")

        assert component_service.delete_component(OWNER, component.id) == 0
        assert db.query(Component).count() == 0
        with pytest.raises(NotFoundError):
            component_service.delete_component(OWNER, component.id)

    def test_delete_other_owner_not_found(self, component_service, make_component, db):
        component = make_component("mode")
        with pytest.raises(NotFoundError):
            component_service.delete_component(OTHER_OWNER, component.id)
        assert db.query(Component).count() == 1

    def test_delete_clears_referencing_preset_slots(self, component_service, preset_service, make_component, db):
        """Deleting a component referenced by three presets clears only that slot"""
        role = make_component("role", name="Marketing Expert")
        other_role = make_component("role")
        mode = make_component("mode")
        style = make_component("style")

        p1 = preset_service.create_preset(OWNER, "One", role_id=role.id, mode_id=mode.id)
        p2 = preset_service.create_preset(OWNER, "Two", role_id=role.id, style_id=style.id)
        p3 = preset_service.create_preset(OWNER, "Three", role_id=role.id)
        untouched = preset_service.create_preset(OWNER, "Four", role_id=other_role.id, mode_id=mode.id)

        cleared = component_service.delete_component(OWNER, role.id)

        assert cleared == 3
        presets = {p.id: p for p in db.query(Preset).all()}
        assert len(presets) == 4
        assert all(presets[p.id].role_component_id is None for p in (p1, p2, p3))
        assert presets[p1.id].mode_component_id == mode.id
        assert presets[p2.id].style_component_id == style.id
        assert presets[p1.id].name == "One"
        assert presets[untouched.id].role_component_id == other_role.id

    def test_failed_delete_changes_nothing(self, component_service, preset_service, make_component,
                                           db, monkeypatch):
        """A delete that removes no row rolls back the slot clearing too"""
        role = make_component("role")
        presets = [preset_service.create_preset(OWNER, f"P{i}", role_id=role.id) for i in range(3)]
        execute = db.execute

        def delete_affects_nothing(statement, *args, **kwargs):
            if isinstance(statement, Delete):
                return SimpleNamespace(rowcount=0)
            return execute(statement, *args, **kwargs)

        monkeypatch.setattr(db, "execute", delete_affects_nothing)
        with pytest.raises(IntegrityViolation):
            component_service.delete_component(OWNER, role.id)
        monkeypatch.undo()
        db.expire_all()

        assert component_service.get_component(OWNER, role.id).id == role.id
        for preset in presets:
            assert db.get(Preset, preset.id).role_component_id == role.id

    def test_timestamps_read_back_as_utc(self, make_component, session_factory):
        component = make_component("role")

        other = session_factory()
        try:
            fresh = other.get(Component, component.id)
            assert fresh.created_at.tzinfo is not None
            assert fresh.created_at.utcoffset() == timedelta(0)
            assert fresh.updated_at.utcoffset() == timedelta(0)
        finally:
            other.close()

    def test_component_limit(self, db, make_component):
        limited = ComponentService(db, Settings(max_components_per_owner=2))
        make_component("role")
        make_component("style")

        with pytest.raises(ConflictError):
            limited.create_component(OWNER, kind="mode", name="Third", content="x")

        # other owners have their own allowance
        limited.create_component(OTHER_OWNER, kind="mode", name="First", content="x")
