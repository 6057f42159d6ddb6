"""
Prompt component model: a reusable, owner-scoped prompt fragment
"""
from enum import Enum
from uuid import uuid4

from sqlalchemy import (JSON, CheckConstraint, Column, Index, Integer, String,
                        Text, Uuid)

from app.core.database import Base
from app.models.types import UTCDateTime
from app.utils.datetime_utils import utc_now


class ComponentKind(str, Enum):
    """Component kind; doubles as the preset slot name"""
    ROLE = "role"
    STYLE = "style"
    CONTEXT = "context"
    MODE = "mode"

    @classmethod
    def values(cls):
        return [k.value for k in cls]

    @classmethod
    def parse(cls, value):
        """Return the matching kind or None for unknown input"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class Component(Base):
    """A single prompt fragment of a fixed kind"""
    __tablename__ = "prompt_components"
    __table_args__ = (
        CheckConstraint(
            "kind IN ('role', 'style', 'context', 'mode')",
            name="ck_prompt_components_kind",
        ),
        CheckConstraint("usage_count >= 0", name="ck_prompt_components_usage_count"),
        Index("ix_prompt_components_owner_kind", "owner_id", "kind"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    owner_id = Column(String(255), nullable=False, index=True)
    kind = Column(String(20), nullable=False)  # immutable after creation
    name = Column(String(100), nullable=False)
    content = Column(Text, nullable=False)
    description = Column(String(500), nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    usage_count = Column(Integer, nullable=False, default=0)

    created_at = Column(UTCDateTime, default=utc_now, nullable=False)
    updated_at = Column(UTCDateTime, default=utc_now, nullable=False)

    @property
    def component_kind(self) -> ComponentKind:
        return ComponentKind(self.kind)

    def to_dict(self):
        return {
            "id": str(self.id),
            "kind": self.kind,
            "name": self.name,
            "content": self.content,
            "description": self.description,
            "tags": list(self.tags or []),
            "usage_count": self.usage_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Component(id={self.id}, kind={self.kind}, name={self.name})>"
