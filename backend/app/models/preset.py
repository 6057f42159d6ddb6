"""
Preset model: a named combination of up to four component references.

Each slot is a nullable reference to a component of the matching kind.
Deleting the component clears the slot; the preset itself survives.
"""
from typing import Dict, Optional
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, Uuid

from app.core.database import Base
from app.models.component import ComponentKind
from app.models.types import UTCDateTime
from app.utils.datetime_utils import utc_now

# Slot kind -> column attribute on Preset
SLOT_COLUMNS: Dict[ComponentKind, str] = {
    ComponentKind.ROLE: "role_component_id",
    ComponentKind.STYLE: "style_component_id",
    ComponentKind.CONTEXT: "context_component_id",
    ComponentKind.MODE: "mode_component_id",
}


def _slot_fk():
    return ForeignKey("prompt_components.id", ondelete="SET NULL")


class Preset(Base):
    """Owner-scoped named combination of components"""
    __tablename__ = "prompt_presets"
    __table_args__ = (
        CheckConstraint("usage_count >= 0", name="ck_prompt_presets_usage_count"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    owner_id = Column(String(255), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)

    role_component_id = Column(Uuid, _slot_fk(), nullable=True, index=True)
    style_component_id = Column(Uuid, _slot_fk(), nullable=True, index=True)
    context_component_id = Column(Uuid, _slot_fk(), nullable=True, index=True)
    mode_component_id = Column(Uuid, _slot_fk(), nullable=True, index=True)

    usage_count = Column(Integer, nullable=False, default=0)
    last_used_at = Column(UTCDateTime, nullable=True)

    created_at = Column(UTCDateTime, default=utc_now, nullable=False)
    updated_at = Column(UTCDateTime, default=utc_now, nullable=False)

    @classmethod
    def slot_column(cls, kind: ComponentKind):
        return getattr(cls, SLOT_COLUMNS[kind])

    def get_slot(self, kind: ComponentKind) -> Optional[UUID]:
        return getattr(self, SLOT_COLUMNS[kind])

    def slot_ids(self) -> Dict[ComponentKind, Optional[UUID]]:
        """Slot contents in canonical kind order"""
        return {kind: self.get_slot(kind) for kind in ComponentKind}

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "description": self.description,
            "slots": {
                kind.value: str(cid) if cid else None
                for kind, cid in self.slot_ids().items()
            },
            "usage_count": self.usage_count,
            "last_used_at": self.last_used_at.isoformat() if self.last_used_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Preset(id={self.id}, name={self.name})>"
