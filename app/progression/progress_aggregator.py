"""Per-level completion percentage."""

import math

from app.progression.snapshot import LevelEntry, ProgressSnapshot

COMPLETE = 100


def level_progress_percent(level: LevelEntry, snapshot: ProgressSnapshot) -> int:
    """Share of the level's figures and linked trainings completed, 0-100.

    A completed linked challenge finishes the level on its own.
    """
    if snapshot.is_challenge_completed(level.challenge_id):
        return COMPLETE

    total_items = len(level.figures) + len(level.training_ids)
    if total_items == 0:
        return 0

    completed_figures = sum(
        1 for figure in level.figures if snapshot.is_figure_completed(figure.figure_id)
    )
    completed_items = completed_figures + len(snapshot.completed_training_ids(level))

    # Round half up
    return int(math.floor(100 * completed_items / total_items + 0.5))


def is_level_complete(level: LevelEntry, snapshot: ProgressSnapshot) -> bool:
    return level_progress_percent(level, snapshot) == COMPLETE
