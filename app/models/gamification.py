"""Achievement models."""

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint, Index, Uuid
from sqlalchemy.orm import relationship
import uuid

from app.core.database import Base, utcnow


class Achievement(Base):
    """Achievement definitions."""
    __tablename__ = "achievements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    description = Column(String)
    icon = Column(String)
    points = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class LevelAchievement(Base):
    """Achievement bound to a level."""
    __tablename__ = "level_achievements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    level_id = Column(Uuid, ForeignKey("levels.id"), nullable=False, index=True)
    achievement_id = Column(Uuid, ForeignKey("achievements.id"), nullable=False)

    level = relationship("Level", back_populates="achievement_links")
    achievement = relationship("Achievement")

    __table_args__ = (
        UniqueConstraint("level_id", "achievement_id"),
    )


class UserAchievement(Base):
    """Achievements earned by users."""
    __tablename__ = "user_achievements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    achievement_id = Column(Uuid, ForeignKey("achievements.id"), nullable=False)
    earned_at = Column(DateTime(timezone=True), default=utcnow)

    achievement = relationship("Achievement")

    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id"),
        Index("ix_user_achievement_earned", "earned_at"),
    )
