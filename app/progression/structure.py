"""Normalization of skill path structure before evaluation."""

from dataclasses import replace
from typing import Iterable, List, Set
import uuid

import structlog

from app.progression.snapshot import FigureEntry, LevelEntry

logger = structlog.get_logger()


def order_levels(levels: Iterable[LevelEntry]) -> List[LevelEntry]:
    """Sort levels into processing order."""
    return sorted(levels, key=lambda level: (level.sequence_number, str(level.level_id)))


def prepare_levels(levels: Iterable[LevelEntry]) -> List[LevelEntry]:
    """Order levels and repair structural data the engine cannot trust.

    - a sublevel number below 1 is treated as sublevel 1
    - a figure placed in several levels stays only in the lowest one
    - several boss figures in one level are tolerated; the first by order is
      used (see ``LevelEntry.boss_figure``)

    Every repair is logged as a data quality issue.
    """
    prepared = []
    seen_figures: Set[uuid.UUID] = set()

    for level in order_levels(levels):
        figures = []
        for figure in sorted(level.figures, key=lambda f: (f.order_index, str(f.figure_id))):
            if figure.figure_id in seen_figures:
                logger.warning(
                    "Data quality issue",
                    issue="figure_in_multiple_levels",
                    figure_id=str(figure.figure_id),
                    level_id=str(level.level_id),
                )
                continue
            seen_figures.add(figure.figure_id)
            figures.append(_normalize_figure(figure, level))

        bosses = [figure for figure in figures if figure.is_boss]
        if len(bosses) > 1:
            logger.warning(
                "Data quality issue",
                issue="multiple_boss_figures",
                level_id=str(level.level_id),
                boss_count=len(bosses),
            )

        prepared.append(replace(level, figures=tuple(figures)))

    return prepared


def _normalize_figure(figure: FigureEntry, level: LevelEntry) -> FigureEntry:
    if figure.sublevel is None or figure.sublevel < 1:
        logger.warning(
            "Data quality issue",
            issue="invalid_sublevel",
            figure_id=str(figure.figure_id),
            level_id=str(level.level_id),
            sublevel=figure.sublevel,
        )
        return replace(figure, sublevel=1)
    return figure
