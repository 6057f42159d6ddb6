"""
Usage tracker: count component/preset usage after a completed generation.

All increments of one chat turn happen in a single transaction and are
expressed as ``SET usage_count = usage_count + 1`` so concurrent turns
never lose updates.
"""
from datetime import datetime
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import case, literal, update
from sqlalchemy.orm import Session

from app.core.database import unit_of_work
from app.core.errors import IntegrityViolation, NotFoundError
from app.core.logging_config import LoggingConfig
from app.core.metrics import usage_events_total
from app.models.component import Component
from app.models.preset import Preset
from app.utils.datetime_utils import ensure_utc, utc_now

logger = LoggingConfig.get_logger(__name__)


class UsageTracker:

    def __init__(self, db: Session):
        self.db = db

    def record_usage(
        self,
        owner_id: str,
        component_ids: Iterable[UUID],
        preset_id: Optional[UUID] = None,
        completed_at: Optional[datetime] = None
    ) -> None:
        """Record one completed chat turn

        Args:
            owner_id: Owner of the chat turn
            component_ids: Components actually used (duplicates count once)
            preset_id: Preset used, if the prompt came from one
            completed_at: Completion time; defaults to now

        Raises:
            NotFoundError: preset not owned by caller (nothing recorded)
            IntegrityViolation: a component vanished before commit (nothing recorded)
        """
        unique_ids: List[UUID] = list(dict.fromkeys(component_ids))
        if not unique_ids and preset_id is None:
            logger.debug("No custom prompt used; nothing to record", extra={"owner_id": owner_id})
            return

        completed_at = ensure_utc(completed_at) or utc_now()

        with unit_of_work(self.db):
            if unique_ids:
                bumped = self.db.execute(
                    update(Component)
                    .where(Component.id.in_(unique_ids), Component.owner_id == owner_id)
                    .values(usage_count=Component.usage_count + 1)
                    .execution_options(synchronize_session=False)
                ).rowcount
                if bumped != len(unique_ids):
                    raise IntegrityViolation(
                        "A used component no longer exists",
                        details={"expected": len(unique_ids), "updated": bumped}
                    )

            if preset_id is not None:
                stamp = literal(completed_at, type_=Preset.last_used_at.type)
                bumped = self.db.execute(
                    update(Preset)
                    .where(Preset.id == preset_id, Preset.owner_id == owner_id)
                    .values(
                        usage_count=Preset.usage_count + 1,
                        # keep the latest completion when turns finish out of order
                        last_used_at=case(
                            (Preset.last_used_at.is_(None), stamp),
                            (Preset.last_used_at < stamp, stamp),
                            else_=Preset.last_used_at,
                        ),
                    )
                    .execution_options(synchronize_session=False)
                ).rowcount
                if bumped != 1:
                    raise NotFoundError("Preset", preset_id)

        self._expire_cached(unique_ids, preset_id)
        usage_events_total.labels(entity="component").inc(len(unique_ids))
        if preset_id is not None:
            usage_events_total.labels(entity="preset").inc()
        logger.info(
            "Recorded prompt usage",
            extra={
                "owner_id": owner_id,
                "preset_id": str(preset_id) if preset_id else None,
                "component_count": len(unique_ids),
            }
        )

    def _expire_cached(self, component_ids: List[UUID], preset_id: Optional[UUID]) -> None:
        keys = [self.db.identity_key(Component, cid) for cid in component_ids]
        if preset_id is not None:
            keys.append(self.db.identity_key(Preset, preset_id))
        for key in keys:
            cached = self.db.identity_map.get(key)
            if cached is not None:
                self.db.expire(cached)
