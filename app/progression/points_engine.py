"""Point ledger: replays a sport path's levels to compute a user's points."""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional
import uuid

from app.core.config import settings
from app.progression.snapshot import LevelEntry, ProgressSnapshot
from app.progression.structure import order_levels


@dataclass(frozen=True)
class PointRules:
    """Points per completion, multiplied by the level's sequence number."""
    figure: int = 1
    training: int = 2
    challenge: int = 3

    @classmethod
    def from_settings(cls) -> "PointRules":
        return cls(
            figure=settings.POINTS_PER_FIGURE,
            training=settings.POINTS_PER_TRAINING,
            challenge=settings.POINTS_PER_CHALLENGE,
        )


@dataclass(frozen=True)
class LevelPoints:
    level_id: uuid.UUID
    sequence_number: int
    point_threshold: int
    counted: bool
    figure_points: int = 0
    training_points: int = 0
    challenge_points: int = 0

    @property
    def total(self) -> int:
        return self.figure_points + self.training_points + self.challenge_points


@dataclass(frozen=True)
class PointBreakdown:
    total: int = 0
    levels: List[LevelPoints] = field(default_factory=list)

    def for_level(self, level_id: uuid.UUID) -> Optional[LevelPoints]:
        for entry in self.levels:
            if entry.level_id == level_id:
                return entry
        return None


def compute_point_breakdown(
    levels: Iterable[LevelEntry],
    snapshot: ProgressSnapshot,
    rules: Optional[PointRules] = None,
) -> PointBreakdown:
    """Fold over levels in sequence order, crediting only levels already open.

    A level's contributions count when the points accumulated from strictly
    earlier levels reach its threshold. A closed level adds nothing, but later
    levels are still tested on their own thresholds.
    """
    if rules is None:
        rules = PointRules.from_settings()

    points = 0
    entries = []

    for level in order_levels(levels):
        multiplier = level.sequence_number

        if points < level.point_threshold:
            entries.append(LevelPoints(
                level_id=level.level_id,
                sequence_number=level.sequence_number,
                point_threshold=level.point_threshold,
                counted=False,
            ))
            continue

        completed_figures = sum(
            1 for figure in level.figures if snapshot.is_figure_completed(figure.figure_id)
        )
        completed_trainings = len(snapshot.completed_training_ids(level))
        challenge_done = snapshot.is_challenge_completed(level.challenge_id)

        entry = LevelPoints(
            level_id=level.level_id,
            sequence_number=level.sequence_number,
            point_threshold=level.point_threshold,
            counted=True,
            figure_points=completed_figures * rules.figure * multiplier,
            training_points=completed_trainings * rules.training * multiplier,
            challenge_points=rules.challenge * multiplier if challenge_done else 0,
        )
        points += entry.total
        entries.append(entry)

    return PointBreakdown(total=points, levels=entries)


def compute_points(
    levels: Iterable[LevelEntry],
    snapshot: ProgressSnapshot,
    rules: Optional[PointRules] = None,
) -> int:
    """Total points of a user on a sport path."""
    return compute_point_breakdown(levels, snapshot, rules).total
