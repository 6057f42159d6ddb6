"""
API routes for presets
"""
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.api.routes.components import ComponentResponse
from app.core.auth import get_current_owner
from app.core.database import get_db
from app.core.logging_config import LoggingConfig
from app.services.preset_service import (PresetDetail, PresetService,
                                         PresetSort, SlotState)

router = APIRouter(prefix="/api/presets", tags=["presets"])
logger = LoggingConfig.get_logger(__name__)


class PresetResponse(BaseModel):
    """Preset response model"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str] = None
    role_component_id: Optional[UUID] = None
    style_component_id: Optional[UUID] = None
    context_component_id: Optional[UUID] = None
    mode_component_id: Optional[UUID] = None
    usage_count: int
    last_used_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class SlotResponse(BaseModel):
    state: SlotState
    component_id: Optional[UUID] = None
    component: Optional[ComponentResponse] = None


class PresetDetailResponse(PresetResponse):
    """Preset with the resolved content of each slot"""
    slots: Dict[str, SlotResponse]


class CreatePresetRequest(BaseModel):
    """Request model for creating a preset"""
    name: Optional[str] = Field(default=None, description="Preset name (1-100 chars)")
    description: Optional[str] = None
    role_id: Optional[UUID] = None
    style_id: Optional[UUID] = None
    context_id: Optional[UUID] = None
    mode_id: Optional[UUID] = None


class UpdatePresetRequest(BaseModel):
    """Partial update; send a slot as null to clear it"""
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    description: Optional[str] = None
    role_id: Optional[UUID] = None
    style_id: Optional[UUID] = None
    context_id: Optional[UUID] = None
    mode_id: Optional[UUID] = None


def _detail_response(detail: PresetDetail) -> PresetDetailResponse:
    base = PresetResponse.model_validate(detail.preset)
    slots = {
        kind.value: SlotResponse(
            state=view.state,
            component_id=view.component_id,
            component=ComponentResponse.model_validate(view.component) if view.component else None,
        )
        for kind, view in detail.slots.items()
    }
    return PresetDetailResponse(**base.model_dump(), slots=slots)


@router.get("/", response_model=List[PresetResponse])
async def list_presets(
    sort: PresetSort = PresetSort.RECENT,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """List the caller's presets"""
    return PresetService(db).list_presets(owner_id, sort=sort, limit=limit, offset=offset)


@router.post("/", response_model=PresetDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_preset(
    request: CreatePresetRequest,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Create a preset from one to four components"""
    service = PresetService(db)
    preset = service.create_preset(
        owner_id,
        name=request.name,
        description=request.description,
        role_id=request.role_id,
        style_id=request.style_id,
        context_id=request.context_id,
        mode_id=request.mode_id
    )
    return _detail_response(service.get_preset_detail(owner_id, preset.id))


@router.get("/{preset_id}", response_model=PresetDetailResponse)
async def get_preset(
    preset_id: UUID,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Get preset by ID with resolved slots"""
    return _detail_response(PresetService(db).get_preset_detail(owner_id, preset_id))


@router.patch("/{preset_id}", response_model=PresetDetailResponse)
async def update_preset(
    preset_id: UUID,
    request: UpdatePresetRequest,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Update name, description or slots"""
    service = PresetService(db)
    service.update_preset(owner_id, preset_id, request.model_dump(exclude_unset=True))
    return _detail_response(service.get_preset_detail(owner_id, preset_id))


@router.delete("/{preset_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_preset(
    preset_id: UUID,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Delete a preset"""
    PresetService(db).delete_preset(owner_id, preset_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
