"""Level achievement awarding."""

from typing import Iterable, List
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.core.database import insert_if_absent
from app.models.gamification import UserAchievement
from app.progression.progress_aggregator import is_level_complete
from app.progression.snapshot import LevelEntry, ProgressSnapshot

logger = structlog.get_logger()


class AchievementAwarder:
    """Grants achievements bound to completed levels."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def award_level_achievements(self, user_id: uuid.UUID, level: LevelEntry) -> List[uuid.UUID]:
        """Grant every achievement bound to the level that the user lacks.

        Each grant is an atomic insert-if-absent on (user, achievement), so
        repeated or concurrent calls never create duplicates. Returns the ids
        granted by this call. Failures are logged and swallowed so the caller's
        progress update stands; the next evaluation retries.
        """
        granted = []

        try:
            for achievement in level.achievements:
                stmt = insert_if_absent(
                    self.db,
                    UserAchievement,
                    ("user_id", "achievement_id"),
                    id=uuid.uuid4(),
                    user_id=user_id,
                    achievement_id=achievement.achievement_id,
                )
                result = await self.db.execute(stmt)
                if result.rowcount:
                    granted.append(achievement.achievement_id)

            await self.db.commit()
        except (SQLAlchemyError, NotImplementedError) as e:
            logger.error(
                "Failed to award level achievements",
                user_id=str(user_id),
                level_id=str(level.level_id),
                error=str(e),
            )
            await self.db.rollback()
            return []

        if granted:
            logger.info(
                "Level achievements awarded",
                user_id=str(user_id),
                level_id=str(level.level_id),
                achievement_ids=[str(a) for a in granted],
            )

        return granted

    async def check_and_award(
        self,
        levels: Iterable[LevelEntry],
        snapshot: ProgressSnapshot,
    ) -> List[uuid.UUID]:
        """Award achievements for every completed level with unowned ones."""
        awarded = []

        for level in levels:
            if not level.achievements:
                continue

            missing = [
                a for a in level.achievements
                if a.achievement_id not in snapshot.owned_achievement_ids
            ]
            if not missing:
                continue

            if is_level_complete(level, snapshot):
                awarded.extend(await self.award_level_achievements(snapshot.user_id, level))

        return awarded
