"""Completion store: loads structure and completion facts, records user activity."""

from typing import Dict, List, Optional, Tuple
import uuid

from sqlalchemy import select, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
import structlog

from app.core.database import insert_if_absent, upsert, utcnow
from app.core.exceptions import CompletionStoreError, RecordNotFoundError, SportPathNotFoundError
from app.models.access import PurchaseStatus, SportDemoUser, SportPurchase
from app.models.gamification import LevelAchievement, UserAchievement
from app.models.progress import ChallengeParticipation, ChallengeStatus, FigureProgress, TrainingCompletion
from app.models.sport_path import Challenge, Figure, Level, LevelFigure, LevelStatus, LevelTraining, SportPath
from app.progression.snapshot import (
    AccessFacts,
    AchievementEntry,
    ChallengeParticipationRecord,
    FigureEntry,
    LevelEntry,
    ProgressSnapshot,
    SportPathInfo,
    TrainingLink,
)
from app.progression.structure import prepare_levels

logger = structlog.get_logger()


def _sport_path_info(sport_path: SportPath) -> SportPathInfo:
    return SportPathInfo(
        sport_path_id=sport_path.id,
        key_name=sport_path.key_name,
        name=sport_path.name,
        free_levels_count=sport_path.free_levels_count or 0,
        price_pln=sport_path.price_pln,
        price_usd=sport_path.price_usd,
    )


def _level_entry(level: Level) -> LevelEntry:
    figures = tuple(
        FigureEntry(
            figure_id=link.figure_id,
            name=link.figure.name,
            sublevel=link.sublevel,
            is_boss=bool(link.is_boss),
            figure_type=link.figure.figure_type,
            difficulty_level=link.figure.difficulty_level,
            order_index=link.order_index or 0,
            boss_description=link.boss_description,
            sublevel_description=link.sublevel_description,
        )
        for link in level.figure_links
        if link.figure is not None
    )
    trainings = tuple(
        TrainingLink(
            training_id=link.training_id,
            is_required=bool(link.is_required),
            title=link.training.title if link.training is not None else None,
        )
        for link in sorted(level.training_links, key=lambda l: l.order_index or 0)
    )
    achievements = tuple(
        AchievementEntry(
            achievement_id=link.achievement_id,
            name=link.achievement.name,
            icon=link.achievement.icon,
            points=link.achievement.points or 0,
        )
        for link in level.achievement_links
        if link.achievement is not None
    )

    return LevelEntry(
        level_id=level.id,
        sequence_number=level.sequence_number,
        name=level.name,
        point_threshold=level.point_threshold or 0,
        challenge_id=level.challenge_id,
        challenge_title=level.challenge.title if level.challenge is not None else None,
        figures=figures,
        trainings=trainings,
        achievements=achievements,
    )


class CompletionStore:
    """Read and write access to progression data."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _execute(self, stmt, action: str):
        try:
            return await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Completion store query failed", action=action, error=str(e))
            raise CompletionStoreError(f"Failed to {action}") from e

    async def _commit(self, action: str):
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error("Completion store write failed", action=action, error=str(e))
            await self.db.rollback()
            raise CompletionStoreError(f"Failed to {action}") from e

    # Structure

    async def get_sport_path(self, sport_key: str) -> SportPathInfo:
        """Get a published sport path by key."""
        result = await self._execute(
            select(SportPath).where(
                and_(SportPath.key_name == sport_key, SportPath.is_published.is_(True))
            ),
            "load sport path",
        )
        sport_path = result.scalar_one_or_none()

        if sport_path is None:
            raise SportPathNotFoundError(sport_key)

        return _sport_path_info(sport_path)

    async def get_levels(self, sport_path_id: uuid.UUID) -> List[LevelEntry]:
        """Get published levels with figures, trainings and achievements, in order."""
        result = await self._execute(
            select(Level)
            .where(
                and_(
                    Level.sport_path_id == sport_path_id,
                    Level.status == LevelStatus.PUBLISHED.value
                )
            )
            .options(
                selectinload(Level.challenge),
                selectinload(Level.figure_links).selectinload(LevelFigure.figure),
                selectinload(Level.training_links).selectinload(LevelTraining.training),
                selectinload(Level.achievement_links).selectinload(LevelAchievement.achievement),
            )
            .order_by(Level.sequence_number),
            "load levels",
        )
        return prepare_levels(_level_entry(level) for level in result.scalars().all())

    async def get_sport_paths_for_figure(self, figure_id: uuid.UUID) -> List[SportPathInfo]:
        """Published sport paths whose published levels contain the figure."""
        figure = await self._execute(select(Figure.id).where(Figure.id == figure_id), "load figure")
        if figure.scalar_one_or_none() is None:
            raise RecordNotFoundError("Figure", figure_id)

        result = await self._execute(
            select(SportPath)
            .join(Level, Level.sport_path_id == SportPath.id)
            .join(LevelFigure, LevelFigure.level_id == Level.id)
            .where(
                and_(
                    LevelFigure.figure_id == figure_id,
                    Level.status == LevelStatus.PUBLISHED.value,
                    SportPath.is_published.is_(True)
                )
            )
            .distinct(),
            "load sport paths for figure",
        )
        return [_sport_path_info(sport_path) for sport_path in result.scalars().all()]

    async def get_sport_path_for_level(self, level_id: uuid.UUID) -> SportPathInfo:
        result = await self._execute(
            select(SportPath)
            .join(Level, Level.sport_path_id == SportPath.id)
            .where(Level.id == level_id),
            "load sport path for level",
        )
        sport_path = result.scalar_one_or_none()

        if sport_path is None:
            raise RecordNotFoundError("Level", level_id)

        return _sport_path_info(sport_path)

    # Facts

    async def load_snapshot(self, user_id: uuid.UUID, levels: List[LevelEntry]) -> ProgressSnapshot:
        """Load every completion fact of the user relevant to the levels."""
        figure_ids = {figure.figure_id for level in levels for figure in level.figures}
        level_ids = {level.level_id for level in levels}
        challenge_ids = {level.challenge_id for level in levels if level.challenge_id is not None}

        figure_statuses: Dict[uuid.UUID, str] = {}
        if figure_ids:
            result = await self._execute(
                select(FigureProgress.figure_id, FigureProgress.status).where(
                    and_(
                        FigureProgress.user_id == user_id,
                        FigureProgress.figure_id.in_(figure_ids)
                    )
                ),
                "load figure progress",
            )
            figure_statuses = {row.figure_id: row.status for row in result}

        training_completions = frozenset()
        if level_ids:
            result = await self._execute(
                select(TrainingCompletion.level_id, TrainingCompletion.training_id).where(
                    and_(
                        TrainingCompletion.user_id == user_id,
                        TrainingCompletion.level_id.in_(level_ids)
                    )
                ),
                "load training completions",
            )
            training_completions = frozenset((row.level_id, row.training_id) for row in result)

        participations: Dict[uuid.UUID, ChallengeParticipationRecord] = {}
        if challenge_ids:
            result = await self._execute(
                select(ChallengeParticipation).where(
                    and_(
                        ChallengeParticipation.user_id == user_id,
                        ChallengeParticipation.challenge_id.in_(challenge_ids)
                    )
                ),
                "load challenge participations",
            )
            participations = {
                p.challenge_id: ChallengeParticipationRecord(
                    challenge_id=p.challenge_id,
                    completed=bool(p.completed),
                    status=p.status,
                )
                for p in result.scalars().all()
            }

        result = await self._execute(
            select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id),
            "load user achievements",
        )
        owned = frozenset(result.scalars().all())

        return ProgressSnapshot(
            user_id=user_id,
            figure_statuses=figure_statuses,
            training_completions=training_completions,
            challenge_participations=participations,
            owned_achievement_ids=owned,
        )

    async def get_access_facts(self, user_id: uuid.UUID, sport_path_id: uuid.UUID, role: str) -> AccessFacts:
        """Purchase and demo allow-list facts of the user for a sport path."""
        purchase = await self._execute(
            select(SportPurchase.id).where(
                and_(
                    SportPurchase.user_id == user_id,
                    SportPurchase.sport_path_id == sport_path_id,
                    SportPurchase.status == PurchaseStatus.COMPLETED.value
                )
            ).limit(1),
            "load purchases",
        )
        demo = await self._execute(
            select(SportDemoUser.id).where(
                and_(
                    SportDemoUser.user_id == user_id,
                    SportDemoUser.sport_path_id == sport_path_id
                )
            ).limit(1),
            "load demo allow-list",
        )

        return AccessFacts(
            role=role,
            has_completed_purchase=purchase.scalar_one_or_none() is not None,
            in_demo_allowlist=demo.scalar_one_or_none() is not None,
        )

    async def list_user_achievements(self, user_id: uuid.UUID) -> List[UserAchievement]:
        result = await self._execute(
            select(UserAchievement)
            .options(selectinload(UserAchievement.achievement))
            .where(UserAchievement.user_id == user_id)
            .order_by(UserAchievement.earned_at.desc()),
            "load user achievements",
        )
        return list(result.scalars().all())

    # User activity

    async def set_figure_status(
        self,
        user_id: uuid.UUID,
        figure_id: uuid.UUID,
        status: str,
        notes: Optional[str] = None
    ) -> FigureProgress:
        """Create or update the user's status for a figure.

        A single upsert on (user, figure), so concurrent first writes both land
        on one row. Notes are only replaced when given.
        """
        stmt = upsert(
            self.db,
            FigureProgress,
            ("user_id", "figure_id"),
            update_columns=("status", "notes", "updated_at"),
            keep_if_null=("notes",),
            id=uuid.uuid4(),
            user_id=user_id,
            figure_id=figure_id,
            status=status,
            notes=notes,
            updated_at=utcnow(),
        )
        await self._execute(stmt, "record figure progress")
        await self._commit("record figure progress")

        result = await self._execute(
            select(FigureProgress)
            .where(
                and_(
                    FigureProgress.user_id == user_id,
                    FigureProgress.figure_id == figure_id
                )
            )
            .execution_options(populate_existing=True),
            "load figure progress",
        )
        progress = result.scalar_one()

        logger.info("Figure progress recorded", user_id=str(user_id), figure_id=str(figure_id), status=status)
        return progress

    async def record_training_completion(
        self,
        user_id: uuid.UUID,
        level_id: uuid.UUID,
        training_id: uuid.UUID
    ) -> bool:
        """Store the first completion of a level training. Returns False on repeats."""
        link = await self._execute(
            select(LevelTraining.id).where(
                and_(LevelTraining.level_id == level_id, LevelTraining.training_id == training_id)
            ),
            "load level training",
        )
        if link.scalar_one_or_none() is None:
            raise RecordNotFoundError("Level training", training_id)

        result = await self._execute(
            insert_if_absent(
                self.db,
                TrainingCompletion,
                ("user_id", "level_id", "training_id"),
                id=uuid.uuid4(),
                user_id=user_id,
                level_id=level_id,
                training_id=training_id,
            ),
            "record training completion",
        )
        await self._commit("record training completion")

        created = bool(result.rowcount)
        logger.info(
            "Training completion recorded",
            user_id=str(user_id),
            level_id=str(level_id),
            training_id=str(training_id),
            first_completion=created,
        )
        return created

    async def join_challenge(
        self,
        user_id: uuid.UUID,
        challenge_id: uuid.UUID
    ) -> Tuple[ChallengeParticipation, bool]:
        """Join a challenge unless already participating."""
        challenge = await self._execute(
            select(Challenge.id).where(Challenge.id == challenge_id), "load challenge"
        )
        if challenge.scalar_one_or_none() is None:
            raise RecordNotFoundError("Challenge", challenge_id)

        inserted = await self._execute(
            insert_if_absent(
                self.db,
                ChallengeParticipation,
                ("user_id", "challenge_id"),
                id=uuid.uuid4(),
                user_id=user_id,
                challenge_id=challenge_id,
                completed=False,
                status=ChallengeStatus.ACTIVE.value,
            ),
            "join challenge",
        )
        await self._commit("join challenge")

        result = await self._execute(
            select(ChallengeParticipation).where(
                and_(
                    ChallengeParticipation.user_id == user_id,
                    ChallengeParticipation.challenge_id == challenge_id
                )
            ),
            "load challenge participation",
        )
        participation = result.scalar_one()
        created = bool(inserted.rowcount)
        if created:
            logger.info("Challenge joined", user_id=str(user_id), challenge_id=str(challenge_id))
        return participation, created
