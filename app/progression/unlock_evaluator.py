"""Unlock rules for levels, sublevels, boss figures and premium figures."""

from enum import Enum
from typing import List, Optional, Sequence

from app.core.config import settings
from app.progression.access_gate import is_level_reachable
from app.progression.snapshot import AccessMode, FigureEntry, LevelEntry, ProgressSnapshot, SportPathInfo


class LevelState(str, Enum):
    """How a level is presented to the user."""
    UNLOCKED = "unlocked"
    LOCKED = "locked"
    PAYWALLED = "paywalled"


def is_level_unlocked(
    levels: Sequence[LevelEntry],
    index: int,
    total_points: int,
    access_mode: AccessMode,
    snapshot: ProgressSnapshot,
) -> bool:
    """Check if the level at ``index`` of the ordered levels is unlocked.

    The first level is always open. Any later level needs the point threshold
    and, when the previous level has a boss, that boss completed.
    """
    if access_mode.unlocks_everything:
        return True

    if index == 0:
        return True

    level = levels[index]
    if total_points < level.point_threshold:
        return False

    boss = levels[index - 1].boss_figure
    if boss is not None and not snapshot.is_figure_completed(boss.figure_id):
        return False

    return True


def level_state(
    levels: Sequence[LevelEntry],
    index: int,
    total_points: int,
    access_mode: AccessMode,
    sport_path: SportPathInfo,
    snapshot: ProgressSnapshot,
) -> LevelState:
    """Combine the free-tier paywall with the point and boss gates."""
    if not is_level_reachable(levels[index], sport_path, access_mode):
        return LevelState.PAYWALLED
    if is_level_unlocked(levels, index, total_points, access_mode, snapshot):
        return LevelState.UNLOCKED
    return LevelState.LOCKED


def sublevel_numbers(level: LevelEntry) -> List[int]:
    """Distinct sublevels of the level's regular figures, ascending."""
    return sorted({figure.sublevel for figure in level.regular_figures})


def can_access_sublevel(
    level: LevelEntry,
    sublevel_number: int,
    access_mode: AccessMode,
    snapshot: ProgressSnapshot,
) -> bool:
    """Check if a sublevel is open: the previous one must be fully completed."""
    if access_mode.unlocks_everything:
        return True

    if sublevel_number <= 1:
        return True

    previous = [
        figure for figure in level.regular_figures
        if figure.sublevel == sublevel_number - 1
    ]
    return all(snapshot.is_figure_completed(figure.figure_id) for figure in previous)


def can_access_boss(level: LevelEntry, snapshot: ProgressSnapshot) -> bool:
    """Boss opens once every regular figure of the level is completed."""
    return all(snapshot.is_figure_completed(figure.figure_id) for figure in level.regular_figures)


def requires_premium_access(
    figure: FigureEntry,
    premium_difficulty_levels: Optional[Sequence[str]] = None,
) -> bool:
    if premium_difficulty_levels is None:
        premium_difficulty_levels = settings.PREMIUM_DIFFICULTY_LEVELS
    return figure.difficulty_level in premium_difficulty_levels


def can_access_figure(figure: FigureEntry, access_mode: AccessMode, has_premium_access: bool) -> bool:
    """Premium figures need premium access or full/demo mode."""
    if not requires_premium_access(figure):
        return True
    return has_premium_access or access_mode.unlocks_everything


def can_view_transitions(level_unlocked: bool, access_mode: AccessMode, has_premium_access: bool) -> bool:
    """Transitions of an unlocked level are shown to premium users only."""
    if not level_unlocked:
        return False
    return has_premium_access or access_mode.unlocks_everything
