"""Data models for Skill Path Progress Service."""

from app.models.sport_path import (
    SportPath, Level, LevelStatus, Figure, FigureType, LevelFigure, Challenge, Training, LevelTraining
)
from app.models.progress import (
    FigureProgress, FigureProgressStatus, TrainingCompletion, ChallengeParticipation, ChallengeStatus
)
from app.models.gamification import Achievement, LevelAchievement, UserAchievement
from app.models.access import SportPurchase, SportDemoUser, PurchaseStatus

__all__ = [
    "SportPath",
    "Level",
    "LevelStatus",
    "Figure",
    "FigureType",
    "LevelFigure",
    "Challenge",
    "Training",
    "LevelTraining",
    "FigureProgress",
    "FigureProgressStatus",
    "TrainingCompletion",
    "ChallengeParticipation",
    "ChallengeStatus",
    "Achievement",
    "LevelAchievement",
    "UserAchievement",
    "SportPurchase",
    "SportDemoUser",
    "PurchaseStatus"
]
