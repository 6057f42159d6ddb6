"""
Preset Service: owner-scoped CRUD for named component combinations
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, update
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import database_errors, unit_of_work
from app.core.errors import (ConflictError, FieldError, IntegrityViolation,
                             NotFoundError, ValidationError)
from app.core.logging_config import LoggingConfig
from app.core.metrics import validation_failures_total
from app.models.component import Component, ComponentKind
from app.models.preset import Preset
from app.services.component_service import ComponentService
from app.services.validation import PresetCandidate, preset_validator
from app.utils.datetime_utils import utc_now

logger = LoggingConfig.get_logger(__name__)

# Request field -> slot kind
SLOT_FIELDS: Dict[str, ComponentKind] = {
    "role_id": ComponentKind.ROLE,
    "style_id": ComponentKind.STYLE,
    "context_id": ComponentKind.CONTEXT,
    "mode_id": ComponentKind.MODE,
}
UPDATABLE_FIELDS = ("name", "description", *SLOT_FIELDS)


class PresetSort(str, Enum):
    USAGE = "usage"
    RECENT = "recent"
    NAME = "name"


class SlotState(str, Enum):
    EMPTY = "empty"
    RESOLVED = "resolved"
    MISSING = "missing"  # referenced, but the component did not load


@dataclass(frozen=True)
class SlotView:
    kind: ComponentKind
    state: SlotState
    component_id: Optional[UUID] = None
    component: Optional[Component] = None


@dataclass(frozen=True)
class PresetDetail:
    preset: Preset
    slots: Dict[ComponentKind, SlotView]


class PresetService:
    """Service for managing presets"""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.components = ComponentService(db, self.settings)

    def _validate(self, candidate: PresetCandidate) -> None:
        validator = preset_validator(
            lambda component_id: self.components.lookup_ref(candidate.owner_id, component_id)
        )
        result = validator.validate(candidate)
        if not result.is_valid:
            validation_failures_total.labels(entity="preset").inc()
            logger.info(
                "Preset rejected by validator",
                extra={"fields": [e.field for e in result.errors], "owner_id": candidate.owner_id}
            )
        result.raise_for_errors()

    def _check_limit(self, owner_id: str) -> None:
        limit = self.settings.max_presets_per_owner
        if limit is None:
            return
        count = self.db.query(func.count(Preset.id)).filter(Preset.owner_id == owner_id).scalar()
        if count >= limit:
            raise ConflictError(f"Preset limit reached ({limit})", details={"limit": limit})

    def create_preset(
        self,
        owner_id: str,
        name: str,
        description: Optional[str] = None,
        role_id: Optional[UUID] = None,
        style_id: Optional[UUID] = None,
        context_id: Optional[UUID] = None,
        mode_id: Optional[UUID] = None
    ) -> Preset:
        """Create a preset from one to four component references

        Every referenced component's usage_count is incremented in the same
        transaction that inserts the preset row.
        """
        slots = {
            ComponentKind.ROLE: role_id,
            ComponentKind.STYLE: style_id,
            ComponentKind.CONTEXT: context_id,
            ComponentKind.MODE: mode_id,
        }
        candidate = PresetCandidate(owner_id=owner_id, name=name, description=description, slots=slots)
        self._validate(candidate)

        with database_errors():
            self._check_limit(owner_id)

        now = utc_now()
        preset = Preset(
            owner_id=owner_id,
            name=name.strip(),
            description=description,
            role_component_id=role_id,
            style_component_id=style_id,
            context_component_id=context_id,
            mode_component_id=mode_id,
            usage_count=0,
            created_at=now,
            updated_at=now,
        )
        referenced = [component_id for _, component_id in candidate.filled_slots()]

        with unit_of_work(self.db):
            self.db.add(preset)
            self.db.flush()
            bumped = self.db.execute(
                update(Component)
                .where(Component.id.in_(referenced), Component.owner_id == owner_id)
                .values(usage_count=Component.usage_count + 1)
                .execution_options(synchronize_session=False)
            ).rowcount
            if bumped != len(referenced):
                raise IntegrityViolation("A referenced component vanished while creating the preset")

        for component_id in referenced:
            cached = self.db.identity_map.get(self.db.identity_key(Component, component_id))
            if cached is not None:
                self.db.expire(cached)

        logger.info(
            f"Created preset: {preset.name}",
            extra={
                "preset_id": str(preset.id),
                "owner_id": owner_id,
                "slots": [kind.value for kind, _ in candidate.filled_slots()],
            }
        )
        return preset

    def find_preset(self, owner_id: str, preset_id: UUID) -> Optional[Preset]:
        with database_errors():
            return self.db.query(Preset).filter(
                Preset.id == preset_id,
                Preset.owner_id == owner_id
            ).first()

    def get_preset(self, owner_id: str, preset_id: UUID) -> Preset:
        preset = self.find_preset(owner_id, preset_id)
        if preset is None:
            raise NotFoundError("Preset", preset_id)
        return preset

    def get_preset_detail(self, owner_id: str, preset_id: UUID) -> PresetDetail:
        """Preset plus the current data of every referenced component"""
        preset = self.get_preset(owner_id, preset_id)
        slot_ids = preset.slot_ids()
        wanted = [cid for cid in slot_ids.values() if cid]

        loaded: Dict[UUID, Component] = {}
        if wanted:
            with database_errors():
                rows = self.db.query(Component).filter(
                    Component.id.in_(wanted),
                    Component.owner_id == owner_id
                ).all()
            loaded = {c.id: c for c in rows}

        slots: Dict[ComponentKind, SlotView] = {}
        for kind, component_id in slot_ids.items():
            if component_id is None:
                slots[kind] = SlotView(kind=kind, state=SlotState.EMPTY)
                continue
            component = loaded.get(component_id)
            if component is None or component.kind != kind.value:
                logger.warning(
                    "Preset slot references a component that did not load",
                    extra={"preset_id": str(preset_id), "slot": kind.value, "component_id": str(component_id)}
                )
                slots[kind] = SlotView(kind=kind, state=SlotState.MISSING, component_id=component_id)
            else:
                slots[kind] = SlotView(
                    kind=kind, state=SlotState.RESOLVED, component_id=component_id, component=component
                )

        return PresetDetail(preset=preset, slots=slots)

    def list_presets(
        self,
        owner_id: str,
        sort: PresetSort = PresetSort.RECENT,
        limit: int = 100,
        offset: int = 0
    ) -> List[Preset]:
        """List the owner's presets

        Args:
            sort: usage (most used first), recent (most recently used first,
                never-used last) or name (case-insensitive A-Z)
        """
        query = self.db.query(Preset).filter(Preset.owner_id == owner_id)

        sort = PresetSort(sort)
        if sort == PresetSort.USAGE:
            query = query.order_by(
                Preset.usage_count.desc(),
                Preset.last_used_at.is_(None),
                Preset.last_used_at.desc(),
                func.lower(Preset.name),
            )
        elif sort == PresetSort.NAME:
            query = query.order_by(func.lower(Preset.name), Preset.created_at)
        else:
            query = query.order_by(
                Preset.last_used_at.is_(None),
                Preset.last_used_at.desc(),
                Preset.updated_at.desc(),
            )

        logger.debug("Listing presets", extra={"owner_id": owner_id, "sort": sort.value})
        with database_errors():
            return query.offset(offset).limit(limit).all()

    def update_preset(
        self,
        owner_id: str,
        preset_id: UUID,
        changes: Dict[str, Any]
    ) -> Preset:
        """Apply a partial update

        Slot fields (role_id, style_id, context_id, mode_id) may be set to a
        new component id or to None to clear them. The resulting preset must
        still have at least one slot filled and every filled slot must be
        valid; otherwise nothing is applied.
        """
        preset = self.get_preset(owner_id, preset_id)

        rejected = [
            FieldError(key, f"{key} cannot be updated")
            for key in changes if key not in UPDATABLE_FIELDS
        ]
        if rejected:
            validation_failures_total.labels(entity="preset").inc()
            raise ValidationError(rejected)

        slots = preset.slot_ids()
        for field_name, kind in SLOT_FIELDS.items():
            if field_name in changes:
                slots[kind] = changes[field_name]

        candidate = PresetCandidate(
            owner_id=owner_id,
            name=changes.get("name", preset.name),
            description=changes.get("description", preset.description),
            slots=slots,
        )
        self._validate(candidate)

        values: Dict[Any, Any] = {}
        if "name" in changes:
            values[Preset.name] = changes["name"].strip()
        if "description" in changes:
            values[Preset.description] = changes["description"]
        for field_name, kind in SLOT_FIELDS.items():
            if field_name in changes:
                values[Preset.slot_column(kind)] = changes[field_name]
        if not values:
            return preset
        values[Preset.updated_at] = utc_now()

        with unit_of_work(self.db):
            result = self.db.execute(
                update(Preset)
                .where(Preset.id == preset_id, Preset.owner_id == owner_id)
                .values(values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise IntegrityViolation(f"Preset {preset_id} changed during update")

        self.db.refresh(preset)
        logger.info(
            f"Updated preset: {preset.name}",
            extra={"preset_id": str(preset_id), "fields": sorted(changes)}
        )
        return preset

    def delete_preset(self, owner_id: str, preset_id: UUID) -> None:
        """Remove a preset; referenced components are untouched"""
        with unit_of_work(self.db):
            deleted = self.db.execute(
                delete(Preset)
                .where(Preset.id == preset_id, Preset.owner_id == owner_id)
                .execution_options(synchronize_session=False)
            ).rowcount
            if deleted != 1:
                raise NotFoundError("Preset", preset_id)

        cached = self.db.identity_map.get(self.db.identity_key(Preset, preset_id))
        if cached is not None:
            self.db.expunge(cached)
        logger.info("Deleted preset", extra={"preset_id": str(preset_id), "owner_id": owner_id})
