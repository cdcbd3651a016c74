"""
Summary figures for a materialized schedule.

- Headline stats: average weekly hours, overtime, utilization, skill coverage
- Capacity vs demand per staff member and week (for charts and CSV export)
- Row grouping by project or by staff member
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Sequence, Set, Tuple

import pandas as pd

from .loads import Loads
from .models import GlobalConfig, ProjectInput, ScheduleCell, ScheduleData, ScheduleRow, SkillLevel, staff_key

FALLBACK_MAX_HOURS = 40.0
MIXED_PHASE = "Mixed"

GroupBy = Literal["project", "member"]


@dataclass(frozen=True)
class ScheduleSummary:
    total_hours: float
    avg_weekly_hours: float
    total_overtime: float
    utilization_pct: float
    skill_coverage_pct: float


@dataclass
class RowGroup:
    id: str
    label: str
    total_hours: float
    cells: List[ScheduleCell]
    children: List[ScheduleRow]
    project_id: Optional[str] = None
    staff_type_id: Optional[str] = None


def summarize_schedule(
    schedule: ScheduleData,
    projects: Sequence[ProjectInput],
    config: GlobalConfig,
) -> ScheduleSummary:
    staff = config.staff_by_id()
    weeks = len(schedule.headers)
    grand_total = sum(row.total_hours for row in schedule.rows)

    # Overtime is judged per staff member and split, summed over projects.
    row_loads: Dict[Tuple[str, int], List[float]] = {}
    for row in schedule.rows:
        totals = row_loads.setdefault((row.staff_type_id, row.staff_index), [0.0] * weeks)
        for idx, cell in enumerate(row.cells):
            totals[idx] += cell.hours
    total_overtime = 0.0
    for (staff_id, _), weekly in row_loads.items():
        member = staff.get(staff_id)
        max_hours = member.max_hours_per_week if member else FALLBACK_MAX_HOURS
        total_overtime += sum(hours - max_hours for hours in weekly if hours > max_hours)

    present = {row.staff_type_id for row in schedule.rows}
    capacity = sum(staff[sid].max_hours_per_week * weeks for sid in present if sid in staff)
    utilization = grand_total / capacity * 100 if capacity > 0 else 0.0
    avg_weekly = grand_total / weeks if weeks else 0.0

    return ScheduleSummary(
        total_hours=grand_total,
        avg_weekly_hours=avg_weekly,
        total_overtime=total_overtime,
        utilization_pct=utilization,
        skill_coverage_pct=skill_coverage(schedule, projects, config),
    )


def skill_coverage(schedule: ScheduleData, projects: Sequence[ProjectInput], config: GlobalConfig) -> float:
    """Percent of required project skills held by someone working on that project."""
    staff = config.staff_by_id()
    working: Dict[str, Set[str]] = {}
    for row in schedule.rows:
        if row.total_hours > 0:
            working.setdefault(row.project_id, set()).add(row.staff_type_id)

    required = 0
    covered = 0
    by_id = {project.id: project for project in projects}
    for project_id, staff_ids in working.items():
        project = by_id.get(project_id)
        if project is None:
            continue
        for skill in project.required_skills:
            required += 1
            if any(
                sid in staff and staff[sid].skill_level(skill) is not SkillLevel.NONE
                for sid in staff_ids
            ):
                covered += 1
    return covered / required * 100 if required else 0.0


def capacity_vs_demand(loads: Loads, config: GlobalConfig, headers: Sequence[str]) -> pd.DataFrame:
    """Long-form frame of capacity, demand, gap and overtime per real staff member and week."""
    records = []
    for member in config.real_staff():
        weekly = loads.get(member.id, [])
        for idx, week in enumerate(headers):
            demand = weekly[idx] if idx < len(weekly) else 0.0
            records.append(
                {
                    "staff_type_id": member.id,
                    "name": member.name,
                    "role": member.role,
                    "team": member.team or "",
                    "week": week,
                    "capacity": member.max_hours_per_week,
                    "demand": demand,
                    "gap": demand - member.max_hours_per_week,
                    "overtime": max(0.0, demand - member.max_hours_per_week),
                }
            )
    return pd.DataFrame(
        records,
        columns=["staff_type_id", "name", "role", "team", "week", "capacity", "demand", "gap", "overtime"],
    )


def overtime_by_member(loads: Loads, config: GlobalConfig, headers: Sequence[str]) -> pd.DataFrame:
    frame = capacity_vs_demand(loads, config, headers)
    if frame.empty:
        return pd.DataFrame(columns=["staff_type_id", "name", "overtime", "weeks_over"])
    frame["weeks_over"] = frame["overtime"] > 0
    summary = (
        frame.groupby(["staff_type_id", "name"], sort=False)
        .agg(overtime=("overtime", "sum"), weeks_over=("weeks_over", "sum"))
        .reset_index()
    )
    summary["weeks_over"] = summary["weeks_over"].astype(int)
    return summary.sort_values("overtime", ascending=False, kind="stable").reset_index(drop=True)


def _member_label(row: ScheduleRow) -> str:
    display = row.staff_type_name.strip() or f"[{row.staff_role}]"
    return f"{display} #{row.staff_index}" if row.staff_index > 1 else display


def group_rows(schedule: ScheduleData, by: GroupBy = "project") -> List[RowGroup]:
    """Fold rows into project or member groups; a week with mixed phases is marked ``Mixed``."""
    groups: Dict[str, RowGroup] = {}
    for row in schedule.rows:
        if by == "project":
            group_id, label = row.project_name, row.project_name
            project_id, staff_type_id = row.project_id, None
        elif by == "member":
            group_id = staff_key(row.staff_type_id, row.staff_index)
            label = _member_label(row)
            project_id, staff_type_id = None, row.staff_type_id
        else:
            raise ValueError(f"unsupported grouping '{by}'")
        group = groups.get(group_id)
        if group is None:
            group = RowGroup(
                id=group_id,
                label=label,
                total_hours=0.0,
                cells=[ScheduleCell(date) for date in schedule.headers],
                children=[],
                project_id=project_id,
                staff_type_id=staff_type_id,
            )
            groups[group_id] = group
        group.total_hours += row.total_hours
        group.children.append(row)
        for idx, cell in enumerate(row.cells):
            current = group.cells[idx]
            phase = current.phase
            if cell.hours > 0 and cell.phase:
                if phase is None:
                    phase = cell.phase
                elif phase != cell.phase:
                    phase = MIXED_PHASE
            group.cells[idx] = ScheduleCell(current.date, current.hours + cell.hours, phase)
    return list(groups.values())
