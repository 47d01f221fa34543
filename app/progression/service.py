"""Progression service: evaluates a user's skill path end to end."""

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.core.exceptions import CompletionStoreError, RecordNotFoundError
from app.progression.access_gate import has_premium_access, paywalled_levels, resolve_access
from app.progression.achievement_awarder import AchievementAwarder
from app.progression.completion_store import CompletionStore
from app.progression.points_engine import PointBreakdown, compute_point_breakdown
from app.progression.progress_aggregator import level_progress_percent
from app.progression.snapshot import (
    AccessMode,
    FigureEntry,
    LevelEntry,
    ProgressSnapshot,
    SportPathInfo,
)
from app.progression.unlock_evaluator import (
    LevelState,
    can_access_boss,
    can_access_figure,
    can_access_sublevel,
    can_view_transitions,
    level_state,
    requires_premium_access,
    sublevel_numbers,
)
from app.models.progress import ChallengeStatus
from app.schemas.progression import (
    AccessView,
    AchievementView,
    AwardResponse,
    BossView,
    ChallengeParticipationResponse,
    ChallengeView,
    FigureProgressResponse,
    FigureView,
    LevelPointsView,
    LevelView,
    PointsView,
    SkillPathView,
    SublevelView,
    TrainingCompletionResponse,
    TrainingView,
    TransitionsView,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class PathEvaluation:
    """Everything computed for one user on one sport path."""
    sport_path: SportPathInfo
    levels: List[LevelEntry]
    snapshot: ProgressSnapshot
    access_mode: AccessMode
    premium: bool
    demo_available: bool
    points: PointBreakdown


class ProgressionService:
    """Loads facts, runs the progression rules and triggers awards."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = CompletionStore(db)
        self.awarder = AchievementAwarder(db)

    async def evaluate(
        self,
        current_user: Dict[str, Any],
        sport_key: str,
        demo_mode: bool = False,
        admin_preview: bool = False
    ) -> PathEvaluation:
        """Evaluate a sport path for the user. Read only."""
        user_id = current_user["user_id"]
        role = current_user.get("role", "free")

        sport_path = await self.store.get_sport_path(sport_key)
        levels = await self.store.get_levels(sport_path.sport_path_id)
        snapshot = await self.store.load_snapshot(user_id, levels)
        facts = await self.store.get_access_facts(user_id, sport_path.sport_path_id, role)

        access_mode = resolve_access(sport_path, facts, admin_preview=admin_preview, demo_mode=demo_mode)
        points = compute_point_breakdown(levels, snapshot)

        logger.debug(
            "Skill path evaluated",
            user_id=str(user_id),
            sport_key=sport_key,
            access_mode=access_mode.value,
            total_points=points.total,
        )

        return PathEvaluation(
            sport_path=sport_path,
            levels=levels,
            snapshot=snapshot,
            access_mode=access_mode,
            premium=has_premium_access(role, admin_preview=admin_preview),
            demo_available=facts.in_demo_allowlist and access_mode != AccessMode.FULL,
            points=points,
        )

    async def evaluate_and_award(
        self,
        current_user: Dict[str, Any],
        sport_key: str,
        demo_mode: bool = False,
        admin_preview: bool = False
    ) -> Tuple[PathEvaluation, List[uuid.UUID]]:
        """Evaluate the path and grant achievements of levels at 100 %.

        Admin preview never awards. The returned evaluation already counts the
        granted achievements as owned.
        """
        evaluation = await self.evaluate(
            current_user, sport_key, demo_mode=demo_mode, admin_preview=admin_preview
        )
        if admin_preview:
            return evaluation, []

        awarded = await self.awarder.check_and_award(evaluation.levels, evaluation.snapshot)
        if awarded:
            snapshot = replace(
                evaluation.snapshot,
                owned_achievement_ids=evaluation.snapshot.owned_achievement_ids | frozenset(awarded),
            )
            evaluation = replace(evaluation, snapshot=snapshot)

        return evaluation, awarded

    # User activity

    async def record_figure_status(
        self,
        current_user: Dict[str, Any],
        figure_id: uuid.UUID,
        status: str,
        notes: Optional[str] = None
    ) -> FigureProgressResponse:
        """Record a figure status and award any level this completes."""
        user_id = current_user["user_id"]

        sport_paths = await self.store.get_sport_paths_for_figure(figure_id)
        progress = await self.store.set_figure_status(user_id, figure_id, status, notes)
        recorded_status = progress.status
        # A failed award rolls back and expires the loaded row
        awarded = await self._award_after_activity(user_id, sport_paths)

        return FigureProgressResponse(figure_id=figure_id, status=recorded_status, newly_awarded=awarded)

    async def record_training_completion(
        self,
        current_user: Dict[str, Any],
        level_id: uuid.UUID,
        training_id: uuid.UUID
    ) -> TrainingCompletionResponse:
        """Record a training completion (first one only) and award."""
        user_id = current_user["user_id"]

        sport_path = await self.store.get_sport_path_for_level(level_id)
        created = await self.store.record_training_completion(user_id, level_id, training_id)
        awarded = await self._award_after_activity(user_id, [sport_path])

        return TrainingCompletionResponse(
            level_id=level_id,
            training_id=training_id,
            first_completion=created,
            newly_awarded=awarded,
        )

    async def join_challenge(
        self,
        current_user: Dict[str, Any],
        challenge_id: uuid.UUID
    ) -> ChallengeParticipationResponse:
        participation, created = await self.store.join_challenge(current_user["user_id"], challenge_id)
        return ChallengeParticipationResponse(
            challenge_id=challenge_id,
            completed=bool(participation.completed),
            status=participation.status,
            joined=created,
        )

    async def award_for_level(self, current_user: Dict[str, Any], level_id: uuid.UUID) -> AwardResponse:
        """Grant the level's achievements if the level is complete."""
        user_id = current_user["user_id"]

        sport_path = await self.store.get_sport_path_for_level(level_id)
        levels = await self.store.get_levels(sport_path.sport_path_id)
        level = next((entry for entry in levels if entry.level_id == level_id), None)
        if level is None:
            raise RecordNotFoundError("Level", level_id)

        snapshot = await self.store.load_snapshot(user_id, levels)
        percent = level_progress_percent(level, snapshot)

        awarded = []
        if percent == 100 and level.achievements:
            awarded = await self.awarder.award_level_achievements(user_id, level)

        return AwardResponse(level_id=level_id, progress_percent=percent, awarded=awarded)

    async def _award_after_activity(
        self,
        user_id: uuid.UUID,
        sport_paths: Iterable[SportPathInfo]
    ) -> List[uuid.UUID]:
        # Activity is already committed; awarding problems only get logged.
        awarded = []
        for sport_path in sport_paths:
            try:
                levels = await self.store.get_levels(sport_path.sport_path_id)
                snapshot = await self.store.load_snapshot(user_id, levels)
            except CompletionStoreError as e:
                logger.error(
                    "Skipping achievement check",
                    user_id=str(user_id),
                    sport_key=sport_path.key_name,
                    error=str(e),
                )
                continue
            awarded.extend(await self.awarder.check_and_award(levels, snapshot))
        return awarded


def build_access_view(evaluation: PathEvaluation) -> AccessView:
    sport_path = evaluation.sport_path
    return AccessView(
        sport_key=sport_path.key_name,
        access_mode=evaluation.access_mode,
        demo_available=evaluation.demo_available,
        has_premium_access=evaluation.premium,
        free_levels_count=sport_path.free_levels_count,
        paywalled_levels_count=paywalled_levels(evaluation.levels, sport_path, evaluation.access_mode),
        price_pln=sport_path.price_pln,
        price_usd=sport_path.price_usd,
    )


def build_points_view(evaluation: PathEvaluation) -> PointsView:
    return PointsView(
        sport_key=evaluation.sport_path.key_name,
        total_points=evaluation.points.total,
        levels=[
            LevelPointsView(
                level_id=entry.level_id,
                sequence_number=entry.sequence_number,
                point_threshold=entry.point_threshold,
                counted=entry.counted,
                figure_points=entry.figure_points,
                training_points=entry.training_points,
                challenge_points=entry.challenge_points,
                total=entry.total,
            )
            for entry in evaluation.points.levels
        ],
    )


def build_skill_path_view(
    evaluation: PathEvaluation,
    newly_awarded: Sequence[uuid.UUID] = ()
) -> SkillPathView:
    levels = [
        _build_level_view(evaluation, index, level)
        for index, level in enumerate(evaluation.levels)
    ]
    return SkillPathView(
        sport_key=evaluation.sport_path.key_name,
        name=evaluation.sport_path.name,
        access=build_access_view(evaluation),
        total_points=evaluation.points.total,
        levels=levels,
        newly_awarded=list(newly_awarded),
    )


def _build_level_view(evaluation: PathEvaluation, index: int, level: LevelEntry) -> LevelView:
    snapshot = evaluation.snapshot
    access_mode = evaluation.access_mode

    state = level_state(
        evaluation.levels,
        index,
        evaluation.points.total,
        access_mode,
        evaluation.sport_path,
        snapshot,
    )
    unlocked = state == LevelState.UNLOCKED
    level_points = evaluation.points.for_level(level.level_id)

    view = LevelView(
        level_id=level.level_id,
        sequence_number=level.sequence_number,
        name=level.name,
        point_threshold=level.point_threshold,
        state=state,
        unlocked=unlocked,
        progress_percent=level_progress_percent(level, snapshot),
        points_earned=level_points.total if level_points else 0,
        figure_count=len(level.figures),
    )

    # Paywalled levels are a teaser: no content
    if state == LevelState.PAYWALLED:
        return view

    def figure_view(figure: FigureEntry, gate_open: bool) -> FigureView:
        return FigureView(
            figure_id=figure.figure_id,
            name=figure.name,
            difficulty_level=figure.difficulty_level,
            figure_type=figure.figure_type,
            sublevel=figure.sublevel,
            status=snapshot.figure_status(figure.figure_id),
            completed=snapshot.is_figure_completed(figure.figure_id),
            requires_premium=requires_premium_access(figure),
            can_practice=gate_open and can_access_figure(figure, access_mode, evaluation.premium),
        )

    for number in sublevel_numbers(level):
        figures = [figure for figure in level.regular_figures if figure.sublevel == number]
        accessible = can_access_sublevel(level, number, access_mode, snapshot)
        view.sublevels.append(SublevelView(
            number=number,
            description=figures[0].sublevel_description,
            accessible=accessible,
            figures=[figure_view(figure, unlocked and accessible) for figure in figures],
        ))

    boss = level.boss_figure
    if boss is not None:
        boss_accessible = can_access_boss(level, snapshot)
        view.boss = BossView(
            figure=figure_view(boss, unlocked and boss_accessible),
            description=boss.boss_description,
            accessible=boss_accessible,
        )

    transitions = level.transition_figures
    if transitions:
        visible = can_view_transitions(unlocked, access_mode, evaluation.premium)
        view.transitions = TransitionsView(
            visible=visible,
            count=len(transitions),
            figures=[figure_view(figure, visible) for figure in transitions] if visible else [],
        )

    completed_trainings = snapshot.completed_training_ids(level)
    view.trainings = [
        TrainingView(
            training_id=link.training_id,
            title=link.title,
            is_required=link.is_required,
            completed=link.training_id in completed_trainings,
        )
        for link in level.trainings
    ]

    if level.challenge_id is not None:
        view.challenge = ChallengeView(
            challenge_id=level.challenge_id,
            title=level.challenge_title,
            state=_challenge_state(snapshot, level.challenge_id),
        )

    view.achievements = [
        AchievementView(
            achievement_id=achievement.achievement_id,
            name=achievement.name,
            icon=achievement.icon,
            points=achievement.points,
            owned=achievement.achievement_id in snapshot.owned_achievement_ids,
        )
        for achievement in level.achievements
    ]

    return view


def _challenge_state(snapshot: ProgressSnapshot, challenge_id: uuid.UUID) -> str:
    participation = snapshot.participation(challenge_id)
    if participation is None:
        return "not_joined"
    if participation.completed or participation.status == ChallengeStatus.COMPLETED.value:
        return "completed"
    return "active"
