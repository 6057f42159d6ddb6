"""
Chat-turn integration routes: prompt resolution and the generation-completion hook
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.core.auth import get_current_owner
from app.core.database import get_db
from app.core.logging_config import LoggingConfig
from app.services.prompt_resolver import PromptResolver
from app.services.usage_tracker import UsageTracker

router = APIRouter(prefix="/api/chat", tags=["chat"])
logger = LoggingConfig.get_logger(__name__)


class ResolveRequest(BaseModel):
    """Prompt selection for one chat turn

    Ids are taken as plain strings: a malformed slot id only drops that
    slot instead of rejecting the turn.
    """
    preset_id: Optional[str] = Field(default=None, alias="presetId")
    role_id: Optional[str] = Field(default=None, alias="roleId")
    style_id: Optional[str] = Field(default=None, alias="styleId")
    context_id: Optional[str] = Field(default=None, alias="contextId")
    mode_id: Optional[str] = Field(default=None, alias="modeId")

    model_config = ConfigDict(populate_by_name=True)


class ResolveResponse(BaseModel):
    prompt_text: Optional[str] = None
    use_default: bool
    source: str
    preset_id: Optional[UUID] = None
    component_ids: List[UUID] = Field(default_factory=list)


class UsageRequest(BaseModel):
    """Sent by the chat system once a model response has finished"""
    component_ids: List[UUID] = Field(default_factory=list)
    preset_id: Optional[UUID] = None
    completed_at: Optional[datetime] = None


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_prompt(
    request: ResolveRequest,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Resolve the custom system prompt for a chat turn"""
    resolution = PromptResolver(db).resolve_for_chat_turn(
        owner_id,
        preset_id=request.preset_id,
        role_id=request.role_id,
        style_id=request.style_id,
        context_id=request.context_id,
        mode_id=request.mode_id
    )
    return ResolveResponse(
        prompt_text=resolution.prompt_text,
        use_default=resolution.use_default,
        source=resolution.source,
        preset_id=resolution.preset_id,
        component_ids=list(resolution.component_ids),
    )


@router.post("/usage", status_code=status.HTTP_204_NO_CONTENT)
async def record_usage(
    request: UsageRequest,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Record usage for a completed chat turn"""
    UsageTracker(db).record_usage(
        owner_id,
        component_ids=request.component_ids,
        preset_id=request.preset_id,
        completed_at=request.completed_at
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
