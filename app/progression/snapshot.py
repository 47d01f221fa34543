"""Immutable value objects the progression engine computes over.

A ``ProgressSnapshot`` holds every completion fact for one user, and a list of
``LevelEntry`` values describes the structure of one sport path. Both are
loaded once per evaluation by the completion store; every engine function is a
pure function of them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Mapping, Optional, Set, Tuple
import uuid

from app.models.progress import ChallengeStatus, FigureProgressStatus
from app.models.sport_path import FigureType


class AccessMode(str, Enum):
    """Resolved access of a user to a sport path."""
    FULL = "full"
    FREE_TIER = "free_tier"
    DEMO = "demo"

    @property
    def unlocks_everything(self) -> bool:
        return self in (AccessMode.FULL, AccessMode.DEMO)


@dataclass(frozen=True)
class SportPathInfo:
    sport_path_id: uuid.UUID
    key_name: str
    name: str
    free_levels_count: int = 0
    price_pln: Optional[int] = None
    price_usd: Optional[int] = None


@dataclass(frozen=True)
class FigureEntry:
    """A figure as placed in a level."""
    figure_id: uuid.UUID
    name: str = ""
    sublevel: int = 1
    is_boss: bool = False
    figure_type: str = FigureType.SINGLE_FIGURE.value
    difficulty_level: Optional[str] = None
    order_index: int = 0
    boss_description: Optional[str] = None
    sublevel_description: Optional[str] = None

    @property
    def is_transition(self) -> bool:
        return self.figure_type == FigureType.TRANSITIONS.value


@dataclass(frozen=True)
class TrainingLink:
    training_id: uuid.UUID
    is_required: bool = True
    title: Optional[str] = None


@dataclass(frozen=True)
class AchievementEntry:
    achievement_id: uuid.UUID
    name: str = ""
    icon: Optional[str] = None
    points: int = 0


@dataclass(frozen=True)
class LevelEntry:
    """A published level with everything linked to it."""
    level_id: uuid.UUID
    sequence_number: int
    name: str = ""
    point_threshold: int = 0
    challenge_id: Optional[uuid.UUID] = None
    challenge_title: Optional[str] = None
    figures: Tuple[FigureEntry, ...] = ()
    trainings: Tuple[TrainingLink, ...] = ()
    achievements: Tuple[AchievementEntry, ...] = ()

    @property
    def boss_figure(self) -> Optional[FigureEntry]:
        """The level's boss; the first by order when data holds several."""
        bosses = [figure for figure in self.figures if figure.is_boss]
        if not bosses:
            return None
        return min(bosses, key=lambda figure: (figure.order_index, str(figure.figure_id)))

    @property
    def regular_figures(self) -> Tuple[FigureEntry, ...]:
        """Figures that are neither the boss nor transitions."""
        return tuple(
            figure for figure in self.figures
            if not figure.is_boss and not figure.is_transition
        )

    @property
    def transition_figures(self) -> Tuple[FigureEntry, ...]:
        return tuple(figure for figure in self.figures if figure.is_transition)

    @property
    def training_ids(self) -> FrozenSet[uuid.UUID]:
        return frozenset(link.training_id for link in self.trainings)


@dataclass(frozen=True)
class ChallengeParticipationRecord:
    challenge_id: uuid.UUID
    completed: bool = False
    status: str = ChallengeStatus.ACTIVE.value


@dataclass(frozen=True)
class AccessFacts:
    """Access-relevant records of one user for one sport path."""
    role: str = "free"
    has_completed_purchase: bool = False
    in_demo_allowlist: bool = False


@dataclass(frozen=True)
class ProgressSnapshot:
    """All completion facts of one user."""
    user_id: uuid.UUID
    figure_statuses: Mapping[uuid.UUID, str] = field(default_factory=dict)
    training_completions: FrozenSet[Tuple[uuid.UUID, uuid.UUID]] = frozenset()
    challenge_participations: Mapping[uuid.UUID, ChallengeParticipationRecord] = field(default_factory=dict)
    owned_achievement_ids: FrozenSet[uuid.UUID] = frozenset()

    def figure_status(self, figure_id: uuid.UUID) -> str:
        return self.figure_statuses.get(figure_id, FigureProgressStatus.NOT_TRIED.value)

    def is_figure_completed(self, figure_id: uuid.UUID) -> bool:
        return self.figure_status(figure_id) == FigureProgressStatus.COMPLETED.value

    def completed_training_ids(self, level: LevelEntry) -> Set[uuid.UUID]:
        """Distinct completed trainings that are linked to the level."""
        linked = level.training_ids
        return {
            training_id
            for level_id, training_id in self.training_completions
            if level_id == level.level_id and training_id in linked
        }

    def participation(self, challenge_id: Optional[uuid.UUID]) -> Optional[ChallengeParticipationRecord]:
        if challenge_id is None:
            return None
        return self.challenge_participations.get(challenge_id)

    def is_challenge_completed(self, challenge_id: Optional[uuid.UUID]) -> bool:
        participation = self.participation(challenge_id)
        return participation is not None and participation.completed
