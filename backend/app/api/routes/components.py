"""
API routes for prompt components
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.core.auth import get_current_owner
from app.core.database import get_db
from app.core.logging_config import LoggingConfig
from app.models.component import ComponentKind
from app.services.component_service import ComponentService

router = APIRouter(prefix="/api/components", tags=["components"])
logger = LoggingConfig.get_logger(__name__)


class ComponentResponse(BaseModel):
    """Component response model"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    kind: ComponentKind
    name: str
    content: str
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    usage_count: int
    created_at: datetime
    updated_at: datetime


class CreateComponentRequest(BaseModel):
    """Request model for creating a component

    Field bounds are enforced by the service validator so that every
    problem is reported in one response.
    """
    kind: Optional[str] = Field(default=None, description="role, style, context or mode")
    name: Optional[str] = Field(default=None, description="Component name (1-100 chars)")
    content: Optional[str] = Field(default=None, description="Prompt fragment (1-5000 chars)")
    description: Optional[str] = Field(default=None, description="Optional description (<=500 chars)")
    tags: Optional[List[str]] = None


class UpdateComponentRequest(BaseModel):
    """Partial update; omitted fields are left unchanged"""
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    content: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None


@router.get("/", response_model=List[ComponentResponse])
async def list_components(
    kind: Optional[ComponentKind] = None,
    name: Optional[str] = None,
    tag: Optional[str] = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """List the caller's components"""
    return ComponentService(db).list_components(
        owner_id,
        kind=kind,
        name_search=name,
        tag=tag,
        limit=limit,
        offset=offset
    )


@router.post("/", response_model=ComponentResponse, status_code=status.HTTP_201_CREATED)
async def create_component(
    request: CreateComponentRequest,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Create a new component"""
    return ComponentService(db).create_component(
        owner_id,
        kind=request.kind,
        name=request.name,
        content=request.content,
        description=request.description,
        tags=request.tags
    )


@router.get("/{component_id}", response_model=ComponentResponse)
async def get_component(
    component_id: UUID,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Get component by ID"""
    return ComponentService(db).get_component(owner_id, component_id)


@router.patch("/{component_id}", response_model=ComponentResponse)
async def update_component(
    component_id: UUID,
    request: UpdateComponentRequest,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Update name, content, description or tags"""
    changes = request.model_dump(exclude_unset=True)
    return ComponentService(db).update_component(owner_id, component_id, changes)


@router.delete("/{component_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_component(
    component_id: UUID,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Delete a component; presets referencing it keep existing with that slot cleared"""
    ComponentService(db).delete_component(owner_id, component_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
