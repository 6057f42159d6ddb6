"""
Prompt resolver: decide which components shape the system prompt of a chat turn.

Resolution order:
  1) preset (presetId owned by the caller) - its slots are used verbatim and
     any explicit slot ids in the same request are ignored
  2) manual (explicit roleId/styleId/contextId/modeId) - each id resolves on
     its own; an id that does not resolve is dropped for this turn only
  3) default - no custom prompt, the caller's default system prompt stands
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.database import database_errors
from app.core.logging_config import LoggingConfig
from app.core.metrics import prompt_compositions_total
from app.models.component import Component, ComponentKind
from app.models.preset import Preset
from app.services.prompt_compositor import SECTION_ORDER, compose_prompt

logger = LoggingConfig.get_logger(__name__)

SOURCE_PRESET = "preset"
SOURCE_MANUAL = "manual"
SOURCE_DEFAULT = "default"


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one chat turn"""
    prompt_text: Optional[str]
    source: str
    preset_id: Optional[UUID] = None
    component_ids: Tuple[UUID, ...] = field(default_factory=tuple)

    @property
    def use_default(self) -> bool:
        return self.prompt_text is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prompt_text": self.prompt_text,
            "use_default": self.use_default,
            "source": self.source,
            "preset_id": str(self.preset_id) if self.preset_id else None,
            "component_ids": [str(cid) for cid in self.component_ids],
        }


DEFAULT_RESOLUTION = Resolution(prompt_text=None, source=SOURCE_DEFAULT)


def _coerce_uuid(value: Any) -> Optional[UUID]:
    if value is None or isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except (ValueError, AttributeError):
        return None


class PromptResolver:
    """Stateless per request; holds nothing but the session"""

    def __init__(self, db: Session):
        self.db = db

    def _load_components(self, owner_id: str, wanted: Dict[ComponentKind, UUID]) -> Dict[ComponentKind, Component]:
        """Load owner-scoped components, keeping only those whose kind matches the slot"""
        if not wanted:
            return {}
        with database_errors():
            rows = self.db.query(Component).filter(
                Component.id.in_(list(wanted.values())),
                Component.owner_id == owner_id
            ).all()
        by_id = {c.id: c for c in rows}
        resolved = {}
        for kind, component_id in wanted.items():
            component = by_id.get(component_id)
            if component is not None and component.kind == kind.value:
                resolved[kind] = component
        return resolved

    def _render(self, source: str, components: Dict[ComponentKind, Component],
                preset_id: Optional[UUID] = None) -> Resolution:
        prompt_text = compose_prompt({kind: c.content for kind, c in components.items()})
        if prompt_text is None:
            return DEFAULT_RESOLUTION
        return Resolution(
            prompt_text=prompt_text,
            source=source,
            preset_id=preset_id,
            component_ids=tuple(components[kind].id for kind in SECTION_ORDER if kind in components),
        )

    def resolve_for_chat_turn(
        self,
        owner_id: str,
        preset_id: Any = None,
        role_id: Any = None,
        style_id: Any = None,
        context_id: Any = None,
        mode_id: Any = None
    ) -> Resolution:
        """Resolve the custom system prompt for one chat turn

        Ids may be UUIDs or strings; malformed ids are treated as not resolving.
        """
        resolution = self._resolve(owner_id, preset_id, {
            ComponentKind.ROLE: role_id,
            ComponentKind.STYLE: style_id,
            ComponentKind.CONTEXT: context_id,
            ComponentKind.MODE: mode_id,
        })
        prompt_compositions_total.labels(source=resolution.source).inc()
        logger.debug(
            f"Resolved chat turn prompt from {resolution.source}",
            extra={
                "owner_id": owner_id,
                "preset_id": str(resolution.preset_id) if resolution.preset_id else None,
                "component_count": len(resolution.component_ids),
            }
        )
        return resolution

    def _resolve(self, owner_id: str, preset_id: Any, explicit: Dict[ComponentKind, Any]) -> Resolution:
        # 1) preset
        preset_uuid = _coerce_uuid(preset_id)
        if preset_uuid is not None:
            with database_errors():
                preset = self.db.query(Preset).filter(
                    Preset.id == preset_uuid,
                    Preset.owner_id == owner_id
                ).first()
            if preset is not None:
                wanted = {kind: cid for kind, cid in preset.slot_ids().items() if cid}
                components = self._load_components(owner_id, wanted)
                return self._render(SOURCE_PRESET, components, preset_id=preset.id)
            logger.info(
                "Preset did not resolve for chat turn, falling back to explicit components",
                extra={"owner_id": owner_id, "preset_id": str(preset_uuid)}
            )

        # 2) manual
        supplied = {kind: value for kind, value in explicit.items() if value is not None}
        if supplied:
            wanted = {}
            for kind, value in supplied.items():
                component_id = _coerce_uuid(value)
                if component_id is not None:
                    wanted[kind] = component_id
            components = self._load_components(owner_id, wanted)
            dropped = sorted(kind.value for kind in supplied if kind not in components)
            if dropped:
                logger.info(
                    "Dropping unresolved component ids for this chat turn",
                    extra={"owner_id": owner_id, "slots": dropped}
                )
            return self._render(SOURCE_MANUAL, components)

        # 3) default
        return DEFAULT_RESOLUTION
