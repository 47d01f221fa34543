"""Achievement endpoints."""

from typing import List
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user
from app.progression.completion_store import CompletionStore
from app.progression.service import ProgressionService
from app.schemas.progression import AwardResponse, UserAchievementResponse

router = APIRouter()


@router.get("/me", response_model=List[UserAchievementResponse])
async def get_my_achievements(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get achievements earned by the current user."""
    store = CompletionStore(db)
    owned = await store.list_user_achievements(current_user["user_id"])

    return [
        UserAchievementResponse(
            achievement_id=user_achievement.achievement_id,
            name=user_achievement.achievement.name,
            icon=user_achievement.achievement.icon,
            points=user_achievement.achievement.points or 0,
            earned_at=user_achievement.earned_at,
        )
        for user_achievement in owned
    ]


@router.post("/levels/{level_id}/award", response_model=AwardResponse)
async def award_level_achievements(
    level_id: uuid.UUID,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Grant the level's achievements when the level is complete. Idempotent."""
    service = ProgressionService(db)
    return await service.award_for_level(current_user, level_id)
