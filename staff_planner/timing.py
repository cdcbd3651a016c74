"""Start-week search that flattens total weekly demand.

The search is greedy hill-climbing over one project's offset at a time: a
random eligible project gets a random feasible offset and the move is kept
only when the squared-total cost strictly drops. Worse moves are never
accepted.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

from .loads import aggregate_weekly_loads, project_weekly_profile, total_weekly_load
from .models import ALL_TEAMS, GlobalConfig, ProjectInput
from .weeks import PLANNING_WEEKS, weeks_in_year

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimingWindow:
    index: int
    duration: int
    max_start: int


def timing_window(index: int, project: ProjectInput, config: GlobalConfig) -> TimingWindow:
    duration = project.duration_weeks(config)
    return TimingWindow(index=index, duration=duration, max_start=max(0, PLANNING_WEEKS - duration))


def schedule_cost(projects: Sequence[ProjectInput], config: GlobalConfig) -> float:
    """Sum over weeks of the squared total hours across all staff."""
    num_weeks = weeks_in_year(config.year)
    totals = total_weekly_load(aggregate_weekly_loads(projects, config, num_weeks), num_weeks)
    return sum(hours * hours for hours in totals)


class _WeeklyTotals:
    """Running per-week totals so a move only touches the moved project's weeks."""

    def __init__(self, profiles: List[Dict[int, float]], offsets: List[int], num_weeks: int) -> None:
        self.profiles = profiles
        self.num_weeks = num_weeks
        self.totals = [0.0] * num_weeks
        for profile, offset in zip(profiles, offsets):
            self._shift(profile, offset, 1.0)
        self.cost = sum(hours * hours for hours in self.totals)

    def _shift(self, profile: Dict[int, float], offset: int, sign: float) -> None:
        for rel_week, hours in profile.items():
            week_idx = offset + rel_week
            if 0 <= week_idx < self.num_weeks:
                self.totals[week_idx] += sign * hours

    def cost_of_move(self, index: int, old_offset: int, new_offset: int) -> float:
        touched: Dict[int, float] = {}
        for rel_week, hours in self.profiles[index].items():
            for week_idx, delta in ((old_offset + rel_week, -hours), (new_offset + rel_week, hours)):
                if 0 <= week_idx < self.num_weeks:
                    touched[week_idx] = touched.get(week_idx, 0.0) + delta
        cost = self.cost
        for week_idx, delta in touched.items():
            before = self.totals[week_idx]
            after = before + delta
            cost += after * after - before * before
        return cost

    def apply(self, index: int, old_offset: int, new_offset: int, new_cost: float) -> None:
        profile = self.profiles[index]
        self._shift(profile, old_offset, -1.0)
        self._shift(profile, new_offset, 1.0)
        self.cost = new_cost


def optimize_project_timing(
    projects: Sequence[ProjectInput],
    config: GlobalConfig,
    team_filter: str = ALL_TEAMS,
    *,
    seed: Optional[int] = None,
    iterations: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[ProjectInput]:
    """Move unlocked, in-filter projects to flatten aggregate weekly demand.

    ``rng`` wins over ``seed``, which wins over ``config.random_seed``. Locked
    and out-of-filter projects keep their offsets but still count toward cost.
    """
    current = list(projects)
    eligible = [
        idx for idx, project in enumerate(current) if not project.locked and project.matches_team(team_filter)
    ]
    if not eligible:
        logger.info("No unlocked projects for team filter %r; timing unchanged", team_filter)
        return current

    if rng is None:
        rng = random.Random(seed if seed is not None else config.random_seed)
    budget = config.optimizer_iterations if iterations is None else iterations
    windows = [timing_window(idx, project, config) for idx, project in enumerate(current)]
    offsets = [project.start_week_offset for project in current]
    state = _WeeklyTotals(
        [project_weekly_profile(project, config) for project in current],
        offsets,
        weeks_in_year(config.year),
    )
    initial_cost = state.cost
    accepted = 0

    for _ in range(budget):
        idx = eligible[rng.randrange(len(eligible))]
        original = offsets[idx]
        proposal = rng.randint(0, windows[idx].max_start)
        if proposal == original:
            continue
        new_cost = state.cost_of_move(idx, original, proposal)
        if new_cost < state.cost:
            state.apply(idx, original, proposal, new_cost)
            offsets[idx] = proposal
            accepted += 1

    for idx in eligible:
        max_start = windows[idx].max_start
        if offsets[idx] > max_start:
            state.apply(idx, offsets[idx], max_start, state.cost_of_move(idx, offsets[idx], max_start))
            offsets[idx] = max_start

    logger.info(
        "Timing search: %d iteration(s), %d move(s) accepted, cost %.0f -> %.0f",
        budget,
        accepted,
        initial_cost,
        state.cost,
    )
    return [
        project if project.start_week_offset == offsets[idx] else replace(project, start_week_offset=offsets[idx])
        for idx, project in enumerate(current)
    ]
