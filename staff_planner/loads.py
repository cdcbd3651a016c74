from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import pandas as pd

from .hours import weekly_allocation_hours
from .models import GlobalConfig, PhaseConfig, ProjectInput
from .weeks import weeks_in_year

logger = logging.getLogger(__name__)

Loads = Dict[str, List[float]]


def iter_phase_windows(
    project: ProjectInput, config: GlobalConfig
) -> Iterator[Tuple[int, PhaseConfig, int, int]]:
    """Yield ``(phase_index, phase, start_week, duration)`` for every phase.

    The cursor advances by ``max_weeks`` for every phase, including phases that
    are skipped downstream because their duration is not positive.
    """
    cursor = project.start_week_offset
    for idx, phase in enumerate(project.phases(config)):
        duration = phase.max_weeks
        yield idx, phase, cursor, duration
        cursor += duration


def iter_allocation_hours(
    project: ProjectInput, config: GlobalConfig
) -> Iterator[Tuple[int, int, str, int, int, float]]:
    """Yield ``(phase_idx, alloc_idx, staff_id, start, duration, weekly_hours)``.

    Only allocations that commit hours are produced.
    """
    for phase_idx, phase, start, duration in iter_phase_windows(project, config):
        if duration <= 0:
            continue
        phase_hours = phase.phase_hours(project.budget_hours)
        for alloc_idx, allocation in enumerate(phase.staff_allocation):
            if allocation.percentage <= 0:
                continue
            weekly = weekly_allocation_hours(phase_hours, allocation.percentage, duration)
            if weekly <= 0:
                continue
            yield phase_idx, alloc_idx, allocation.staff_type_id, start, duration, weekly


def _add_span(target: List[float], start: int, duration: int, hours: float) -> None:
    upper = len(target)
    for week_idx in range(max(start, 0), min(start + duration, upper)):
        target[week_idx] += hours


def aggregate_weekly_loads(
    projects: Iterable[ProjectInput],
    config: GlobalConfig,
    num_weeks: Optional[int] = None,
) -> Loads:
    """Committed hours per staff type and week, summed over ``projects``."""
    weeks = weeks_in_year(config.year) if num_weeks is None else num_weeks
    loads: Loads = {staff.id: [0.0] * weeks for staff in config.staff_types}
    for project in projects:
        for _, _, staff_id, start, duration, weekly in iter_allocation_hours(project, config):
            if staff_id not in loads:
                logger.debug("staff type %s not in roster; tracking its load anyway", staff_id)
                loads[staff_id] = [0.0] * weeks
            _add_span(loads[staff_id], start, duration, weekly)
    return loads


def project_weekly_profile(project: ProjectInput, config: GlobalConfig) -> Dict[int, float]:
    """Total weekly hours of ``project`` keyed by week relative to its start.

    Shifting every key by ``start_week_offset`` and dropping weeks outside the
    year gives exactly the project's share of :func:`aggregate_weekly_loads`.
    """
    relative = replace(project, start_week_offset=0)
    profile: Dict[int, float] = defaultdict(float)
    for _, _, _, start, duration, weekly in iter_allocation_hours(relative, config):
        for week_idx in range(start, start + duration):
            profile[week_idx] += weekly
    return dict(profile)


def total_weekly_load(loads: Loads, num_weeks: Optional[int] = None) -> List[float]:
    weeks = num_weeks if num_weeks is not None else max((len(v) for v in loads.values()), default=0)
    totals = [0.0] * weeks
    for values in loads.values():
        for idx, hours in enumerate(values[:weeks]):
            totals[idx] += hours
    return totals


def loads_frame(loads: Loads, headers: Sequence[str]) -> pd.DataFrame:
    """Staff-by-week frame; columns are the week headers."""
    width = len(headers)
    data = [list(values[:width]) + [0.0] * max(0, width - len(values)) for values in loads.values()]
    frame = pd.DataFrame(data, index=list(loads.keys()), columns=list(headers), dtype=float)
    frame.index.name = "staff_type_id"
    return frame
