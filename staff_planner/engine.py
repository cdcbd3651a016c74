from __future__ import annotations

import logging
import random
from typing import List, Optional, Sequence

from . import materialize
from .assigner import assign_placeholders
from .models import (
    ALL_TEAMS,
    GlobalConfig,
    OptimizationResult,
    ProjectInput,
    ScheduleData,
)
from .timing import optimize_project_timing

logger = logging.getLogger(__name__)


class InvalidScheduleInputError(ValueError):
    def __init__(self, problems: Sequence[str]) -> None:
        super().__init__("invalid schedule input: " + "; ".join(problems))
        self.problems = list(problems)


def find_input_problems(
    projects: Sequence[ProjectInput],
    config: GlobalConfig,
    *,
    strict: bool = False,
) -> List[str]:
    """Structural problems that would corrupt week indexing or project lookup.

    ``strict`` also reports references to staff ids missing from the roster.
    """
    problems: List[str] = []
    seen = set()
    for project in projects:
        if project.id in seen:
            problems.append(f"duplicate project id '{project.id}'")
        seen.add(project.id)
        offset = project.start_week_offset
        if isinstance(offset, bool) or not isinstance(offset, int):
            problems.append(f"project '{project.id}' start week offset must be an integer, got {offset!r}")
        elif offset < 0:
            problems.append(f"project '{project.id}' start week offset must not be negative, got {offset}")
        if project.budget_hours < 0:
            problems.append(f"project '{project.id}' budget hours must not be negative")
    if strict:
        roster = config.staff_by_id()
        for project in projects:
            referenced = {
                allocation.staff_type_id
                for phase in project.phases(config)
                for allocation in phase.staff_allocation
            }
            referenced.update(project.overrides.referenced_staff_ids())
            for staff_id in sorted(referenced - set(roster)):
                problems.append(f"project '{project.id}' references unknown staff type '{staff_id}'")
    return problems


def validate_inputs(
    projects: Sequence[ProjectInput],
    config: GlobalConfig,
    *,
    strict: bool = False,
) -> None:
    problems = find_input_problems(projects, config, strict=strict)
    if problems:
        raise InvalidScheduleInputError(problems)


def optimize_schedule(
    projects: Sequence[ProjectInput],
    config: GlobalConfig,
    team_filter: str = ALL_TEAMS,
    *,
    seed: Optional[int] = None,
    rng: Optional[random.Random] = None,
    strict: bool = False,
) -> OptimizationResult:
    """Fill open slots with real staff, then search project start weeks.

    Inputs are never modified; the result holds new project instances.
    """
    validate_inputs(projects, config, strict=strict)
    staffed, warnings = assign_placeholders(projects, config, team_filter)
    timed = optimize_project_timing(staffed, config, team_filter, seed=seed, rng=rng)
    if warnings:
        logger.info("%d slot(s) could not be filled", len(warnings))
    return OptimizationResult(optimized_projects=tuple(timed), warnings=tuple(warnings))


def generate_schedule(
    projects: Sequence[ProjectInput],
    config: GlobalConfig,
    *,
    strict: bool = False,
) -> ScheduleData:
    validate_inputs(projects, config, strict=strict)
    return materialize.generate_schedule(projects, config)
