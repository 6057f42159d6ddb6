"""
SQLAlchemy models
"""
from app.core.database import Base
from app.models.component import Component, ComponentKind  # noqa: F401
from app.models.preset import SLOT_COLUMNS, Preset  # noqa: F401

__all__ = [
    "Base",
    "Component",
    "ComponentKind",
    "Preset",
    "SLOT_COLUMNS",
]
