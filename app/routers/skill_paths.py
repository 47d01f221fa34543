"""Skill path evaluation endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import get_current_user
from app.progression.service import (
    ProgressionService,
    build_access_view,
    build_points_view,
    build_skill_path_view,
)
from app.schemas.progression import AccessView, PointsView, SkillPathView

router = APIRouter()


def _check_admin_preview(current_user: dict, admin_preview: bool):
    if admin_preview and current_user.get("role") != settings.ADMIN_ROLE:
        raise HTTPException(status_code=403, detail="Admin preview requires the admin role")


@router.get("/{sport_key}/progress", response_model=SkillPathView)
async def get_skill_path_progress(
    sport_key: str,
    demo_mode: bool = Query(False),
    admin_preview: bool = Query(False),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the evaluated skill path: points, level states, progress and gates.

    Levels found complete have their achievements granted on the way.
    """
    _check_admin_preview(current_user, admin_preview)

    service = ProgressionService(db)
    evaluation, awarded = await service.evaluate_and_award(
        current_user, sport_key, demo_mode=demo_mode, admin_preview=admin_preview
    )
    return build_skill_path_view(evaluation, awarded)


@router.get("/{sport_key}/points", response_model=PointsView)
async def get_skill_path_points(
    sport_key: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the user's point total with its per-level breakdown."""
    service = ProgressionService(db)
    evaluation = await service.evaluate(current_user, sport_key)
    return build_points_view(evaluation)


@router.get("/{sport_key}/access", response_model=AccessView)
async def get_skill_path_access(
    sport_key: str,
    demo_mode: bool = Query(False),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the resolved access mode and paywall information."""
    service = ProgressionService(db)
    evaluation = await service.evaluate(current_user, sport_key, demo_mode=demo_mode)
    return build_access_view(evaluation)
