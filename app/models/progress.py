"""Completion records: figure progress, training completions, challenge participation."""

from enum import Enum
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, UniqueConstraint, Index, Uuid
import uuid

from app.core.database import Base, utcnow


class FigureProgressStatus(str, Enum):
    """Practice status of a figure."""
    NOT_TRIED = "not_tried"
    COMPLETED = "completed"
    FOR_LATER = "for_later"
    FAILED = "failed"


class ChallengeStatus(str, Enum):
    """Participation status in a challenge."""
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class FigureProgress(Base):
    """Per user status of a figure."""
    __tablename__ = "figure_progress"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    figure_id = Column(Uuid, ForeignKey("figures.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default=FigureProgressStatus.NOT_TRIED.value)
    notes = Column(String)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "figure_id"),
        Index("ix_figure_progress_user_status", "user_id", "status"),
    )


class TrainingCompletion(Base):
    """First completion of a training within a level."""
    __tablename__ = "level_training_completions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    level_id = Column(Uuid, ForeignKey("levels.id"), nullable=False)
    training_id = Column(Uuid, ForeignKey("trainings.id"), nullable=False)
    completed_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "level_id", "training_id"),
    )


class ChallengeParticipation(Base):
    """A user's participation in a challenge."""
    __tablename__ = "challenge_participants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    challenge_id = Column(Uuid, ForeignKey("challenges.id"), nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    status = Column(String, nullable=False, default=ChallengeStatus.ACTIVE.value)
    joined_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "challenge_id"),
    )
