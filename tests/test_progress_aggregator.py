from __future__ import annotations

import uuid

from helpers import figure, level, snapshot, training_done

from app.progression.progress_aggregator import is_level_complete, level_progress_percent


def test_empty_level_is_zero_percent() -> None:
    assert level_progress_percent(level(1), snapshot()) == 0


def test_figures_and_trainings_are_counted_together() -> None:
    lvl = level(1, figures=[figure(), figure(), figure()], trainings=1)
    facts = snapshot(completed=lvl.figures[:1], trainings=[training_done(lvl)])

    assert level_progress_percent(lvl, facts) == 50


def test_percent_rounds_half_up() -> None:
    lvl = level(1, figures=[figure() for _ in range(8)])
    facts = snapshot(completed=lvl.figures[:1])

    # 12.5 %
    assert level_progress_percent(lvl, facts) == 13


def test_percent_rounds_down_below_half() -> None:
    lvl = level(1, figures=[figure(), figure(), figure()])
    facts = snapshot(completed=lvl.figures[:1])

    assert level_progress_percent(lvl, facts) == 33


def test_boss_and_transitions_count_as_items() -> None:
    lvl = level(1, figures=[figure(), figure(is_boss=True), figure(transition=True)])
    facts = snapshot(completed=lvl.figures)

    assert level_progress_percent(lvl, facts) == 100
    assert is_level_complete(lvl, facts)


def test_completed_challenge_overrides_to_full() -> None:
    lvl = level(1, figures=[figure(), figure()], trainings=2, challenge=True)
    facts = snapshot(challenges=[lvl.challenge_id])

    assert level_progress_percent(lvl, facts) == 100


def test_challenge_completes_level_without_items() -> None:
    lvl = level(1, challenge=True)

    assert level_progress_percent(lvl, snapshot()) == 0
    assert level_progress_percent(lvl, snapshot(challenges=[lvl.challenge_id])) == 100


def test_challenge_of_another_level_does_not_count() -> None:
    lvl = level(1, figures=[figure()], challenge=True)

    assert level_progress_percent(lvl, snapshot(challenges=[uuid.uuid4()])) == 0


def test_unlinked_training_completions_are_ignored() -> None:
    lvl = level(1, trainings=1)
    facts = snapshot(trainings=[(lvl.level_id, uuid.uuid4())])

    assert level_progress_percent(lvl, facts) == 0
