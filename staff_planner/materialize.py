from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Mapping, Optional, Sequence, Set

from .hours import round_to_quantum
from .models import (
    GlobalConfig,
    ProjectInput,
    ScheduleCell,
    ScheduleData,
    ScheduleRow,
    StaffType,
    parse_staff_key,
    staff_key,
)
from .weeks import normalize_week_key, week_headers

logger = logging.getLogger(__name__)

DEFAULT_STAFF_ROLE = "Auditor"

PhaseProfiles = Dict[str, Dict[str, float]]


def _phase_profiles(project: ProjectInput, config: GlobalConfig) -> PhaseProfiles:
    """Unrounded weekly hours per staff type, keyed by phase name."""
    profiles: PhaseProfiles = {}
    for phase in project.phases(config):
        weekly_phase_hours = phase.phase_hours(project.budget_hours) / max(1, phase.max_weeks)
        per_staff: Dict[str, float] = defaultdict(float)
        for allocation in phase.staff_allocation:
            per_staff[allocation.staff_type_id] += weekly_phase_hours * allocation.percentage / 100
        profiles[phase.name] = dict(per_staff)
    return profiles


def _weekly_phases(project: ProjectInput, config: GlobalConfig, headers: Sequence[str]) -> Dict[str, str]:
    weekly: Dict[str, str] = {}
    if not headers:
        return weekly
    cursor = max(0, min(project.start_week_offset, len(headers) - 1))
    for phase in project.phases(config):
        for _ in range(phase.max_weeks):
            if cursor < len(headers):
                weekly[headers[cursor]] = phase.name
            cursor += 1
    header_set = set(headers)
    for raw_date, phase_name in project.overrides.phase.items():
        week = normalize_week_key(raw_date)
        if week in header_set:
            weekly[week] = phase_name
    return weekly


def _normalized_staff_overrides(project: ProjectInput, headers: Sequence[str]) -> Dict[str, Dict[str, float]]:
    header_set = set(headers)
    normalized: Dict[str, Dict[str, float]] = {}
    for key, by_date in project.overrides.staff.items():
        parsed = parse_staff_key(key)
        if parsed is None:
            logger.debug("Ignoring malformed override key %r on project %s", key, project.id)
            continue
        cells = normalized.setdefault(staff_key(*parsed), {})
        for raw_date, hours in by_date.items():
            week = normalize_week_key(raw_date)
            if week in header_set:
                cells[week] = float(hours)
    return normalized


def _staff_rows(
    project: ProjectInput,
    staff: StaffType,
    headers: Sequence[str],
    weekly_phases: Mapping[str, str],
    profiles: PhaseProfiles,
    overrides: Mapping[str, Mapping[str, float]],
    explicitly_allocated: bool,
) -> List[ScheduleRow]:
    max_override_index = project.overrides.max_split_index(staff.id)
    max_weekly_load = 0.0
    for week in headers:
        phase_name = weekly_phases.get(week)
        if phase_name in profiles:
            max_weekly_load = max(max_weekly_load, profiles[phase_name].get(staff.id, 0.0))

    num_splits = max(1, max_override_index)
    if max_weekly_load == 0 and max_override_index == 0 and not explicitly_allocated:
        num_splits = 0

    rows: List[ScheduleRow] = []
    for split in range(num_splits):
        staff_index = split + 1
        row_overrides = overrides.get(staff_key(staff.id, staff_index), {})
        cells: List[ScheduleCell] = []
        total = 0.0
        has_hours = False
        for week in headers:
            phase_name: Optional[str] = weekly_phases.get(week)
            hours = 0.0
            is_override = False
            if week in row_overrides:
                hours = row_overrides[week]
                is_override = True
            elif phase_name is not None:
                raw_total = profiles.get(phase_name, {}).get(staff.id, 0.0)
                if raw_total > 0:
                    hours = round_to_quantum(raw_total / num_splits)
            if hours > 0 or is_override:
                cells.append(ScheduleCell(week, hours, phase_name, is_override))
                total += hours
                has_hours = True
            else:
                cells.append(ScheduleCell(week))
        if has_hours or staff_index <= max_override_index or (explicitly_allocated and staff_index == 1):
            rows.append(
                ScheduleRow(
                    row_id=f"{project.id}-{staff.id}-{split}",
                    project_id=project.id,
                    project_name=project.name,
                    staff_type_id=staff.id,
                    staff_type_name=staff.name,
                    staff_role=staff.role or DEFAULT_STAFF_ROLE,
                    staff_index=staff_index,
                    cells=tuple(cells),
                    total_hours=total,
                )
            )
    return rows


def materialize_project(project: ProjectInput, config: GlobalConfig, headers: Sequence[str]) -> List[ScheduleRow]:
    profiles = _phase_profiles(project, config)
    weekly_phases = _weekly_phases(project, config, headers)
    overrides = _normalized_staff_overrides(project, headers)
    # phases without weeks never reach the grid, so their staff get no placeholder row
    allocated: Set[str] = {
        allocation.staff_type_id
        for phase in project.phases(config)
        if phase.max_weeks > 0
        for allocation in phase.staff_allocation
    }
    rows: List[ScheduleRow] = []
    for staff in config.staff_types:
        rows.extend(
            _staff_rows(
                project,
                staff,
                headers,
                weekly_phases,
                profiles,
                overrides,
                staff.id in allocated,
            )
        )
    return rows


def generate_schedule(projects: Sequence[ProjectInput], config: GlobalConfig) -> ScheduleData:
    """Expand every project's phase plan and overrides into the weekly grid."""
    headers = week_headers(config.year)
    rows: List[ScheduleRow] = []
    for project in projects:
        rows.extend(materialize_project(project, config, headers))
    return ScheduleData(headers=tuple(headers), rows=tuple(rows))
