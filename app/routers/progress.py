"""Progress recording endpoints."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user
from app.progression.service import ProgressionService
from app.schemas.progression import (
    ChallengeParticipationResponse,
    FigureProgressResponse,
    FigureStatusUpdate,
    TrainingCompletionCreate,
    TrainingCompletionResponse,
)

router = APIRouter()


@router.put("/figures/{figure_id}", response_model=FigureProgressResponse)
async def update_figure_progress(
    figure_id: uuid.UUID,
    update: FigureStatusUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record the user's status for a figure."""
    service = ProgressionService(db)
    return await service.record_figure_status(
        current_user, figure_id, update.status.value, update.notes
    )


@router.post("/trainings", response_model=TrainingCompletionResponse)
async def complete_training(
    completion: TrainingCompletionCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record a completed level training. Repeats are not counted twice."""
    service = ProgressionService(db)
    return await service.record_training_completion(
        current_user, completion.level_id, completion.training_id
    )


@router.post("/challenges/{challenge_id}/join", response_model=ChallengeParticipationResponse)
async def join_challenge(
    challenge_id: uuid.UUID,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Join a challenge."""
    service = ProgressionService(db)
    return await service.join_challenge(current_user, challenge_id)
