"""Builders for engine values and seeded databases used across tests."""

from __future__ import annotations

import uuid
from types import SimpleNamespace
from typing import Iterable, Optional

from app.models import (
    Achievement,
    Challenge,
    Figure,
    FigureType,
    Level,
    LevelAchievement,
    LevelFigure,
    LevelStatus,
    LevelTraining,
    SportPath,
    Training,
)
from app.progression.snapshot import (
    AchievementEntry,
    ChallengeParticipationRecord,
    FigureEntry,
    LevelEntry,
    ProgressSnapshot,
    SportPathInfo,
    TrainingLink,
)

USER_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")


def figure(
    sublevel: int = 1,
    is_boss: bool = False,
    transition: bool = False,
    difficulty: Optional[str] = None,
    order_index: int = 0,
) -> FigureEntry:
    return FigureEntry(
        figure_id=uuid.uuid4(),
        name="figure",
        sublevel=sublevel,
        is_boss=is_boss,
        figure_type=FigureType.TRANSITIONS.value if transition else FigureType.SINGLE_FIGURE.value,
        difficulty_level=difficulty,
        order_index=order_index,
    )


def level(
    sequence: int,
    threshold: int = 0,
    figures: Iterable[FigureEntry] = (),
    trainings: int = 0,
    challenge: bool = False,
    achievements: int = 0,
) -> LevelEntry:
    return LevelEntry(
        level_id=uuid.uuid4(),
        sequence_number=sequence,
        name=f"Level {sequence}",
        point_threshold=threshold,
        challenge_id=uuid.uuid4() if challenge else None,
        figures=tuple(figures),
        trainings=tuple(TrainingLink(training_id=uuid.uuid4()) for _ in range(trainings)),
        achievements=tuple(
            AchievementEntry(achievement_id=uuid.uuid4(), name=f"Badge {i}") for i in range(achievements)
        ),
    )


def snapshot(
    completed: Iterable[FigureEntry] = (),
    trainings: Iterable[tuple] = (),
    challenges: Iterable[uuid.UUID] = (),
    owned: Iterable[uuid.UUID] = (),
    statuses: Optional[dict] = None,
) -> ProgressSnapshot:
    figure_statuses = {f.figure_id: "completed" for f in completed}
    figure_statuses.update(statuses or {})
    return ProgressSnapshot(
        user_id=USER_ID,
        figure_statuses=figure_statuses,
        training_completions=frozenset(trainings),
        challenge_participations={
            challenge_id: ChallengeParticipationRecord(challenge_id=challenge_id, completed=True, status="completed")
            for challenge_id in challenges
        },
        owned_achievement_ids=frozenset(owned),
    )


def training_done(lvl: LevelEntry, index: int = 0) -> tuple:
    return (lvl.level_id, lvl.trainings[index].training_id)


def sport_path(free_levels: int = 2) -> SportPathInfo:
    return SportPathInfo(
        sport_path_id=uuid.uuid4(),
        key_name="aerial",
        name="Aerial",
        free_levels_count=free_levels,
        price_pln=4900,
    )


async def seed_skill_path(db) -> SimpleNamespace:
    """Three published levels of an 'aerial' path, two of them free.

    Level 1 (threshold 0): figures a, b in sublevel 1, c in sublevel 2, boss,
    one linked training and one bound achievement.
    Level 2 (threshold 3): figure e, a linked challenge and one achievement.
    Level 3 (threshold 5): one Expert figure.
    """
    path = SportPath(key_name="aerial", name="Aerial", free_levels_count=2, price_pln=4900, is_published=True)
    challenge = Challenge(title="30 days of hoop")
    training = Training(title="Warm-up flow")
    badge_one = Achievement(name="Level 1 done", icon="star", points=10)
    badge_two = Achievement(name="Level 2 done", icon="crown", points=20)
    db.add_all([path, challenge, training, badge_one, badge_two])
    await db.flush()

    level_one = Level(
        sport_path_id=path.id, sequence_number=1, name="Basics", point_threshold=0,
        status=LevelStatus.PUBLISHED.value,
    )
    level_two = Level(
        sport_path_id=path.id, sequence_number=2, name="Spins", point_threshold=3,
        challenge_id=challenge.id, status=LevelStatus.PUBLISHED.value,
    )
    level_three = Level(
        sport_path_id=path.id, sequence_number=3, name="Drops", point_threshold=5,
        status=LevelStatus.PUBLISHED.value,
    )
    draft = Level(
        sport_path_id=path.id, sequence_number=4, name="Draft", point_threshold=0,
        status=LevelStatus.DRAFT.value,
    )
    db.add_all([level_one, level_two, level_three, draft])

    fig_a = Figure(name="Gazelle", difficulty_level="Beginner")
    fig_b = Figure(name="Mermaid", difficulty_level="Beginner")
    fig_c = Figure(name="Crescent", difficulty_level="Intermediate")
    boss = Figure(name="Meathook", difficulty_level="Intermediate")
    fig_e = Figure(name="Star", difficulty_level="Intermediate")
    fig_f = Figure(name="Drop", difficulty_level="Expert")
    db.add_all([fig_a, fig_b, fig_c, boss, fig_e, fig_f])
    await db.flush()

    db.add_all([
        LevelFigure(level_id=level_one.id, figure_id=fig_a.id, sublevel=1, order_index=0),
        LevelFigure(level_id=level_one.id, figure_id=fig_b.id, sublevel=1, order_index=1),
        LevelFigure(level_id=level_one.id, figure_id=fig_c.id, sublevel=2, order_index=2),
        LevelFigure(level_id=level_one.id, figure_id=boss.id, is_boss=True, boss_description="Hold 5s", order_index=3),
        LevelFigure(level_id=level_two.id, figure_id=fig_e.id, sublevel=1, order_index=0),
        LevelFigure(level_id=level_three.id, figure_id=fig_f.id, sublevel=1, order_index=0),
        LevelTraining(level_id=level_one.id, training_id=training.id, is_required=True),
        LevelAchievement(level_id=level_one.id, achievement_id=badge_one.id),
        LevelAchievement(level_id=level_two.id, achievement_id=badge_two.id),
    ])
    await db.commit()

    return SimpleNamespace(
        path=path,
        challenge=challenge,
        training=training,
        badge_one=badge_one,
        badge_two=badge_two,
        level_one=level_one,
        level_two=level_two,
        level_three=level_three,
        fig_a=fig_a,
        fig_b=fig_b,
        fig_c=fig_c,
        boss=boss,
        fig_e=fig_e,
        fig_f=fig_f,
    )
