"""
Component Service: owner-scoped CRUD for prompt components
"""
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, update
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import database_errors, unit_of_work
from app.core.errors import (ConflictError, FieldError, IntegrityViolation,
                             NotFoundError, ValidationError)
from app.core.logging_config import LoggingConfig
from app.core.metrics import (prompt_component_cascades_total,
                              validation_failures_total)
from app.models.component import Component, ComponentKind
from app.models.preset import Preset
from app.services.validation import (ComponentCandidate, ComponentRef,
                                     component_validator, normalize_tags)
from app.utils.datetime_utils import utc_now

logger = LoggingConfig.get_logger(__name__)

UPDATABLE_FIELDS = ("name", "content", "description", "tags")


class ComponentService:
    """Service for managing prompt components"""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.validator = component_validator()

    def _validate(self, candidate: ComponentCandidate) -> None:
        result = self.validator.validate(candidate)
        if not result.is_valid:
            validation_failures_total.labels(entity="component").inc()
            logger.info(
                "Component rejected by validator",
                extra={"fields": [e.field for e in result.errors]}
            )
        result.raise_for_errors()

    def _check_limit(self, owner_id: str) -> None:
        limit = self.settings.max_components_per_owner
        if limit is None:
            return
        count = self.db.query(func.count(Component.id)).filter(
            Component.owner_id == owner_id
        ).scalar()
        if count >= limit:
            raise ConflictError(
                f"Component limit reached ({limit})",
                details={"limit": limit}
            )

    def create_component(
        self,
        owner_id: str,
        kind: Any,
        name: str,
        content: str,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None
    ) -> Component:
        """Create a new component

        Args:
            owner_id: Owning user identifier
            kind: role, style, context or mode
            name: Display name (1-100 chars)
            content: Prompt fragment text (1-5000 chars)
            description: Optional description (<=500 chars)
            tags: Optional tags

        Returns:
            Created Component with usage_count == 0
        """
        self._validate(ComponentCandidate(
            kind=kind, name=name, content=content, description=description, tags=tags
        ))

        with database_errors():
            self._check_limit(owner_id)

        now = utc_now()
        component = Component(
            owner_id=owner_id,
            kind=ComponentKind.parse(kind).value,
            name=name.strip(),
            content=content,
            description=description,
            tags=normalize_tags(tags),
            usage_count=0,
            created_at=now,
            updated_at=now,
        )
        with unit_of_work(self.db):
            self.db.add(component)

        logger.info(
            f"Created component: {component.name} (kind: {component.kind})",
            extra={"component_id": str(component.id), "owner_id": owner_id}
        )
        return component

    def find_component(self, owner_id: str, component_id: UUID) -> Optional[Component]:
        """Owner-scoped lookup; None if absent or owned by someone else"""
        with database_errors():
            return self.db.query(Component).filter(
                Component.id == component_id,
                Component.owner_id == owner_id
            ).first()

    def get_component(self, owner_id: str, component_id: UUID) -> Component:
        component = self.find_component(owner_id, component_id)
        if component is None:
            raise NotFoundError("Component", component_id)
        return component

    def lookup_ref(self, owner_id: str, component_id: UUID) -> Optional[ComponentRef]:
        """Validator lookup capability bound to one owner"""
        component = self.find_component(owner_id, component_id)
        if component is None:
            return None
        return ComponentRef(id=component.id, owner_id=component.owner_id, kind=component.kind)

    def list_components(
        self,
        owner_id: str,
        kind: Optional[ComponentKind] = None,
        name_search: Optional[str] = None,
        tag: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[Component]:
        """List the owner's components, most recently updated first"""
        query = self.db.query(Component).filter(Component.owner_id == owner_id)

        if kind:
            query = query.filter(Component.kind == ComponentKind(kind).value)
        if name_search:
            # the term is matched literally, wildcards included
            term = name_search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            query = query.filter(Component.name.ilike(f"%{term}%", escape="\\"))

        query = query.order_by(Component.updated_at.desc(), Component.id)

        logger.debug(
            "Listing components",
            extra={"owner_id": owner_id, "kind": kind, "name_search": bool(name_search), "tag": tag}
        )
        with database_errors():
            if tag:
                # tags live in a JSON column; filter after loading
                wanted = tag.strip()
                matched = [c for c in query.all() if wanted in (c.tags or [])]
                return matched[offset:offset + limit]
            return query.offset(offset).limit(limit).all()

    def update_component(
        self,
        owner_id: str,
        component_id: UUID,
        changes: Dict[str, Any]
    ) -> Component:
        """Apply a partial update (name/content/description/tags)

        Raises:
            NotFoundError: id not owned by caller
            ValidationError: unknown/immutable field or invalid resulting state
        """
        component = self.get_component(owner_id, component_id)

        rejected = [
            FieldError(key, "kind is immutable" if key == "kind" else f"{key} cannot be updated")
            for key in changes if key not in UPDATABLE_FIELDS
        ]
        if rejected:
            validation_failures_total.labels(entity="component").inc()
            raise ValidationError(rejected)

        candidate = ComponentCandidate(
            kind=component.kind,
            name=changes.get("name", component.name),
            content=changes.get("content", component.content),
            description=changes.get("description", component.description),
            tags=changes.get("tags", component.tags),
        )
        self._validate(candidate)

        values: Dict[str, Any] = {}
        if "name" in changes:
            values["name"] = changes["name"].strip()
        if "content" in changes:
            values["content"] = changes["content"]
        if "description" in changes:
            values["description"] = changes["description"]
        if "tags" in changes:
            values["tags"] = normalize_tags(changes["tags"])
        if not values:
            return component
        values["updated_at"] = utc_now()

        with unit_of_work(self.db):
            result = self.db.execute(
                update(Component)
                .where(Component.id == component_id, Component.owner_id == owner_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise IntegrityViolation(f"Component {component_id} changed during update")

        self.db.refresh(component)
        logger.info(
            f"Updated component: {component.name}",
            extra={"component_id": str(component_id), "fields": sorted(values)}
        )
        return component

    def delete_component(self, owner_id: str, component_id: UUID) -> int:
        """Delete a component and clear every preset slot that referenced it

        Both effects commit together or not at all.

        Returns:
            Number of presets whose slot was cleared
        """
        component = self.get_component(owner_id, component_id)
        slot = Preset.slot_column(component.component_kind)

        with unit_of_work(self.db):
            cleared = self.db.execute(
                update(Preset)
                .where(Preset.owner_id == owner_id, slot == component_id)
                .values({slot: None})
                .execution_options(synchronize_session=False)
            ).rowcount
            deleted = self.db.execute(
                delete(Component)
                .where(Component.id == component_id, Component.owner_id == owner_id)
                .execution_options(synchronize_session=False)
            ).rowcount
            if deleted != 1:
                raise IntegrityViolation(f"Component {component_id} vanished during delete")

        self.db.expunge(component)
        # Presets already in this session must not serve the stale slot
        self.db.expire_all()
        prompt_component_cascades_total.inc(cleared)
        logger.info(
            f"Deleted component {component_id}, cleared {cleared} preset slot(s)",
            extra={"component_id": str(component_id), "owner_id": owner_id, "presets_cleared": cleared}
        )
        return cleared
