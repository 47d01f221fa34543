"""Request and response schemas for skill path progression."""

from datetime import datetime
from typing import List, Optional
import uuid

from pydantic import BaseModel, Field

from app.models.progress import FigureProgressStatus
from app.progression.snapshot import AccessMode
from app.progression.unlock_evaluator import LevelState


class FigureView(BaseModel):
    figure_id: uuid.UUID
    name: str
    difficulty_level: Optional[str] = None
    figure_type: str
    sublevel: int
    status: str
    completed: bool
    requires_premium: bool
    can_practice: bool


class SublevelView(BaseModel):
    number: int
    description: Optional[str] = None
    accessible: bool
    figures: List[FigureView]


class BossView(BaseModel):
    figure: FigureView
    description: Optional[str] = None
    accessible: bool


class TransitionsView(BaseModel):
    visible: bool
    count: int
    figures: List[FigureView] = Field(default_factory=list)


class TrainingView(BaseModel):
    training_id: uuid.UUID
    title: Optional[str] = None
    is_required: bool
    completed: bool


class ChallengeView(BaseModel):
    challenge_id: uuid.UUID
    title: Optional[str] = None
    state: str  # not_joined | active | completed


class AchievementView(BaseModel):
    achievement_id: uuid.UUID
    name: str
    icon: Optional[str] = None
    points: int
    owned: bool


class LevelView(BaseModel):
    level_id: uuid.UUID
    sequence_number: int
    name: str
    point_threshold: int
    state: LevelState
    unlocked: bool
    progress_percent: int = Field(ge=0, le=100)
    points_earned: int
    figure_count: int
    sublevels: List[SublevelView] = Field(default_factory=list)
    boss: Optional[BossView] = None
    transitions: Optional[TransitionsView] = None
    trainings: List[TrainingView] = Field(default_factory=list)
    challenge: Optional[ChallengeView] = None
    achievements: List[AchievementView] = Field(default_factory=list)


class AccessView(BaseModel):
    sport_key: str
    access_mode: AccessMode
    demo_available: bool
    has_premium_access: bool
    free_levels_count: int
    paywalled_levels_count: int
    price_pln: Optional[int] = None
    price_usd: Optional[int] = None


class SkillPathView(BaseModel):
    sport_key: str
    name: str
    access: AccessView
    total_points: int
    levels: List[LevelView]
    newly_awarded: List[uuid.UUID] = Field(default_factory=list)


class LevelPointsView(BaseModel):
    level_id: uuid.UUID
    sequence_number: int
    point_threshold: int
    counted: bool
    figure_points: int
    training_points: int
    challenge_points: int
    total: int


class PointsView(BaseModel):
    sport_key: str
    total_points: int
    levels: List[LevelPointsView]


class FigureStatusUpdate(BaseModel):
    status: FigureProgressStatus
    notes: Optional[str] = None


class FigureProgressResponse(BaseModel):
    figure_id: uuid.UUID
    status: str
    newly_awarded: List[uuid.UUID] = Field(default_factory=list)


class TrainingCompletionCreate(BaseModel):
    level_id: uuid.UUID
    training_id: uuid.UUID


class TrainingCompletionResponse(BaseModel):
    level_id: uuid.UUID
    training_id: uuid.UUID
    first_completion: bool
    newly_awarded: List[uuid.UUID] = Field(default_factory=list)


class ChallengeParticipationResponse(BaseModel):
    challenge_id: uuid.UUID
    completed: bool
    status: str
    joined: bool


class UserAchievementResponse(BaseModel):
    achievement_id: uuid.UUID
    name: str
    icon: Optional[str] = None
    points: int
    earned_at: Optional[datetime] = None


class AwardResponse(BaseModel):
    level_id: uuid.UUID
    progress_percent: int
    awarded: List[uuid.UUID]
