from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .hours import weekly_allocation_hours
from .loads import Loads, aggregate_weekly_loads, iter_phase_windows
from .models import (
    ALL_TEAMS,
    DEFAULT_TEAM,
    UNASSIGNED_ROLE,
    GlobalConfig,
    ProjectInput,
    StaffType,
)
from .weeks import weeks_in_year

logger = logging.getLogger(__name__)

TEAM_MATCH_BONUS = 50
OVERTIME_WEIGHT = 10
UTILIZATION_WEIGHT = 1


@dataclass(frozen=True)
class Task:
    """One fillable slot of one phase, waiting for a real person."""

    project_id: str
    project_name: str
    phase_index: int
    alloc_index: int
    start_week: int
    duration: int
    hours_per_week: float
    required_skills: Tuple[str, ...]
    team: str
    target_role: Optional[str]
    role_label: str

    @property
    def total_hours(self) -> float:
        return self.hours_per_week * self.duration

    def weeks(self, num_weeks: int) -> range:
        return range(max(self.start_week, 0), min(self.start_week + self.duration, num_weeks))


def extract_tasks(
    projects: Sequence[ProjectInput],
    config: GlobalConfig,
    team_filter: str = ALL_TEAMS,
) -> List[Task]:
    staff_lookup = config.staff_by_id()
    tasks: List[Task] = []
    for project in projects:
        if not project.matches_team(team_filter):
            continue
        for phase_idx, phase, start, duration in iter_phase_windows(project, config):
            if duration <= 0:
                continue
            phase_hours = phase.phase_hours(project.budget_hours)
            for alloc_idx, allocation in enumerate(phase.staff_allocation):
                slot = staff_lookup.get(allocation.staff_type_id)
                if slot is None or not slot.kind.fillable or allocation.percentage <= 0:
                    continue
                tasks.append(
                    Task(
                        project_id=project.id,
                        project_name=project.name,
                        phase_index=phase_idx,
                        alloc_index=alloc_idx,
                        start_week=start,
                        duration=duration,
                        hours_per_week=weekly_allocation_hours(
                            phase_hours, allocation.percentage, duration
                        ),
                        required_skills=tuple(project.required_skills),
                        team=project.team or DEFAULT_TEAM,
                        target_role=slot.target_role,
                        role_label=slot.role or UNASSIGNED_ROLE,
                    )
                )
    return tasks


def score_candidate(candidate: StaffType, task: Task, loads: Loads, num_weeks: int) -> float:
    """Team and skill bonus minus quadratic overtime, plus hours that fit.

    Reaching ``max_hours_per_week`` exactly is not overtime.
    """
    bonus = 0
    if candidate.team == task.team:
        bonus += TEAM_MATCH_BONUS
    for skill in task.required_skills:
        bonus += candidate.skill_level(skill).bonus

    overtime_penalty = 0.0
    utilization_reward = 0.0
    current = loads.get(candidate.id)
    for week_idx in task.weeks(num_weeks):
        load = current[week_idx] if current else 0.0
        new_load = load + task.hours_per_week
        if new_load > candidate.max_hours_per_week:
            overtime_penalty += (new_load - candidate.max_hours_per_week) ** 2
        else:
            utilization_reward += task.hours_per_week
    return bonus - OVERTIME_WEIGHT * overtime_penalty + UTILIZATION_WEIGHT * utilization_reward


def _eligible_candidates(
    task: Task, config: GlobalConfig, assigned: Set[str]
) -> List[StaffType]:
    return [
        staff
        for staff in config.real_staff()
        if staff.id not in assigned
        and (task.target_role is None or staff.role == task.target_role)
    ]


def _best_candidate(
    task: Task, candidates: Sequence[StaffType], loads: Loads, num_weeks: int
) -> Optional[StaffType]:
    best: Optional[StaffType] = None
    best_score = float("-inf")
    for candidate in candidates:
        score = score_candidate(candidate, task, loads, num_weeks)
        if score > best_score:
            best_score = score
            best = candidate
    return best


def _commit(project: ProjectInput, task: Task, staff_id: str, config: GlobalConfig) -> ProjectInput:
    phases = list(project.phases(config))
    phases[task.phase_index] = phases[task.phase_index].with_allocation(task.alloc_index, staff_id)
    return replace(project, phases_config=tuple(phases))


def assign_placeholders(
    projects: Sequence[ProjectInput],
    config: GlobalConfig,
    team_filter: str = ALL_TEAMS,
) -> Tuple[List[ProjectInput], List[str]]:
    """Fill template and unassigned slots with real staff, biggest commitments first.

    Returns new project instances and a warning for each slot left unfilled.
    """
    working: Dict[str, ProjectInput] = {project.id: project for project in projects}
    warnings: List[str] = []
    horizon = weeks_in_year(config.year)
    loads = aggregate_weekly_loads(projects, config, horizon)

    tasks = extract_tasks(projects, config, team_filter)
    tasks.sort(key=lambda task: task.total_hours, reverse=True)
    logger.info("Assigning %d open slot(s) across %d project(s)", len(tasks), len(projects))

    for task in tasks:
        project = working[task.project_id]
        assigned = project.real_staff_ids(config)
        candidates = _eligible_candidates(task, config, assigned)
        chosen = _best_candidate(task, candidates, loads, horizon)
        if chosen is None:
            message = f"Could not fill '{task.role_label}' for {task.project_name}."
            logger.warning(
                "No candidate for slot %d of phase %d on %s",
                task.alloc_index,
                task.phase_index,
                task.project_id,
            )
            warnings.append(message)
            continue
        working[task.project_id] = _commit(project, task, chosen.id, config)
        candidate_loads = loads.setdefault(chosen.id, [0.0] * horizon)
        for week_idx in task.weeks(horizon):
            candidate_loads[week_idx] += task.hours_per_week
        logger.debug(
            "Assigned %s to %s phase %d slot %d",
            chosen.id,
            task.project_id,
            task.phase_index,
            task.alloc_index,
        )

    return [working[project.id] for project in projects], warnings
