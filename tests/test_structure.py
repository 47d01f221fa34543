from __future__ import annotations

from dataclasses import replace

from helpers import figure, level

from app.progression.structure import prepare_levels


def test_levels_are_ordered_by_sequence() -> None:
    levels = [level(3), level(1), level(2)]

    assert [lvl.sequence_number for lvl in prepare_levels(levels)] == [1, 2, 3]


def test_invalid_sublevel_becomes_first_sublevel() -> None:
    lvl = level(1, figures=[figure(sublevel=0), figure(sublevel=-2), figure(sublevel=3)])

    prepared = prepare_levels([lvl])[0]

    assert sorted(f.sublevel for f in prepared.figures) == [1, 1, 3]


def test_shared_figure_stays_in_lowest_level() -> None:
    shared = figure()
    first = level(1, figures=[shared])
    second = level(2, figures=[shared, figure()])

    prepared = prepare_levels([second, first])

    assert [f.figure_id for f in prepared[0].figures] == [shared.figure_id]
    assert shared.figure_id not in {f.figure_id for f in prepared[1].figures}
    assert len(prepared[1].figures) == 1


def test_first_boss_by_order_wins() -> None:
    late_boss = figure(is_boss=True, order_index=5)
    early_boss = figure(is_boss=True, order_index=1)
    lvl = level(1, figures=[late_boss, early_boss])

    prepared = prepare_levels([lvl])[0]

    assert prepared.boss_figure == early_boss
    assert lvl.boss_figure == early_boss


def test_boss_tie_breaks_on_figure_id() -> None:
    a = figure(is_boss=True)
    b = replace(figure(is_boss=True), order_index=a.order_index)
    lvl = level(1, figures=[a, b])

    expected = min([a, b], key=lambda f: str(f.figure_id))
    assert lvl.boss_figure == expected
