"""Skill path structure models: sport paths, levels, figures and their links."""

from enum import Enum
from sqlalchemy import Column, String, Integer, DateTime, Boolean, ForeignKey, UniqueConstraint, Index, Uuid
from sqlalchemy.orm import relationship
import uuid

from app.core.database import Base, utcnow


class LevelStatus(str, Enum):
    """Publication status of a level."""
    DRAFT = "draft"
    PUBLISHED = "published"


class FigureType(str, Enum):
    """Kinds of figures."""
    SINGLE_FIGURE = "single_figure"
    COMBO = "combo"
    TRANSITIONS = "transitions"


class SportPath(Base):
    """A progression track for one sport."""
    __tablename__ = "sport_paths"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    key_name = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    free_levels_count = Column(Integer, nullable=False, default=0)
    price_pln = Column(Integer)  # minor units
    price_usd = Column(Integer)  # minor units
    is_published = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    levels = relationship("Level", back_populates="sport_path")


class Level(Base):
    """An ordered stage of a sport path."""
    __tablename__ = "levels"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    sport_path_id = Column(Uuid, ForeignKey("sport_paths.id"), nullable=False, index=True)
    sequence_number = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    description = Column(String)
    point_threshold = Column(Integer, nullable=False, default=0)
    challenge_id = Column(Uuid, ForeignKey("challenges.id"))
    status = Column(String, nullable=False, default=LevelStatus.DRAFT.value)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    sport_path = relationship("SportPath", back_populates="levels")
    challenge = relationship("Challenge")
    figure_links = relationship("LevelFigure", back_populates="level")
    training_links = relationship("LevelTraining", back_populates="level")
    achievement_links = relationship("LevelAchievement", back_populates="level")

    __table_args__ = (
        Index("ix_levels_path_sequence", "sport_path_id", "sequence_number"),
    )


class Figure(Base):
    """An exercise."""
    __tablename__ = "figures"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    difficulty_level = Column(String)
    figure_type = Column(String, nullable=False, default=FigureType.SINGLE_FIGURE.value)
    image_url = Column(String)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class LevelFigure(Base):
    """Placement of a figure inside a level."""
    __tablename__ = "level_figures"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    level_id = Column(Uuid, ForeignKey("levels.id"), nullable=False, index=True)
    figure_id = Column(Uuid, ForeignKey("figures.id"), nullable=False, index=True)
    is_boss = Column(Boolean, nullable=False, default=False)
    boss_description = Column(String)
    sublevel = Column(Integer, nullable=False, default=1)
    sublevel_description = Column(String)
    order_index = Column(Integer, nullable=False, default=0)

    level = relationship("Level", back_populates="figure_links")
    figure = relationship("Figure")

    __table_args__ = (
        UniqueConstraint("level_id", "figure_id"),
    )


class Challenge(Base):
    """A multi-day challenge that can be linked to a level."""
    __tablename__ = "challenges"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Training(Base):
    """A training session."""
    __tablename__ = "trainings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class LevelTraining(Base):
    """Training linked to a level."""
    __tablename__ = "level_trainings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    level_id = Column(Uuid, ForeignKey("levels.id"), nullable=False, index=True)
    training_id = Column(Uuid, ForeignKey("trainings.id"), nullable=False)
    is_required = Column(Boolean, nullable=False, default=True)
    order_index = Column(Integer, nullable=False, default=0)

    level = relationship("Level", back_populates="training_links")
    training = relationship("Training")

    __table_args__ = (
        UniqueConstraint("level_id", "training_id"),
    )
