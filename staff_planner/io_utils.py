from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from . import defaults
from .models import (
    GlobalConfig,
    PhaseConfig,
    ProjectInput,
    ProjectOverrides,
    ScheduleData,
    SkillLevel,
    SlotKind,
    StaffAllocation,
    StaffType,
)

TEMPLATE_ID_PREFIXES = ("tmpl-", "template-")
PLACEHOLDER_ID = "placeholder"

_SCHEDULE_ID_COLUMNS = [
    "row_id",
    "project_id",
    "project_name",
    "staff_type_id",
    "staff_type_name",
    "staff_role",
    "staff_index",
    "total_hours",
]


def _parse_bool(value: object, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "t", "1", "yes", "y"}:
            return True
        if lowered in {"false", "f", "0", "no", "n", ""}:
            return False
    raise ValueError(f"cannot interpret boolean value '{value}' in '{field_name}'")


def _number(value: object, field_name: str, *, minimum: Optional[float] = None) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{field_name} must be a number")
    if minimum is not None and value < minimum:
        raise ValueError(f"{field_name} must be >= {minimum}")
    return float(value)


def _integer(value: object, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or int(value) != value:
        raise ValueError(f"{field_name} must be an integer")
    return int(value)


def _string_list(value: object, field_name: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(";") if part.strip())
    if isinstance(value, Sequence):
        return tuple(str(item).strip() for item in value if str(item).strip())
    raise ValueError(f"unsupported value for '{field_name}': {value!r}")


def infer_slot_kind(staff_id: str) -> SlotKind:
    """Kind for roster entries that predate the explicit ``kind`` field."""
    if staff_id == PLACEHOLDER_ID:
        return SlotKind.UNASSIGNED
    if staff_id.startswith(TEMPLATE_ID_PREFIXES):
        return SlotKind.TEMPLATE
    return SlotKind.REAL


def _parse_kind(entry: Mapping[str, object], staff_id: str) -> SlotKind:
    raw = entry.get("kind")
    if raw is None:
        return infer_slot_kind(staff_id)
    try:
        return SlotKind(str(raw).lower())
    except ValueError as exc:
        raise ValueError(f"unsupported kind '{raw}' for staff type {staff_id}") from exc


def _parse_skills(value: object, staff_id: str) -> Dict[str, SkillLevel]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"skills for {staff_id} must be an object")
    skills: Dict[str, SkillLevel] = {}
    for skill, level in value.items():
        try:
            skills[str(skill)] = SkillLevel(str(level))
        except ValueError as exc:
            raise ValueError(f"unsupported skill level '{level}' for {staff_id}") from exc
    return skills


def staff_type_from_dict(entry: Mapping[str, object]) -> StaffType:
    staff_id = entry.get("id")
    if not staff_id or not isinstance(staff_id, str):
        raise ValueError("staff type id is required")
    return StaffType(
        id=staff_id,
        name=str(entry.get("name") or ""),
        role=str(entry.get("role") or ""),
        max_hours_per_week=_number(
            entry.get("maxHoursPerWeek", 40), f"maxHoursPerWeek for {staff_id}", minimum=0
        ),
        kind=_parse_kind(entry, staff_id),
        team=entry.get("team") or None,
        skills=_parse_skills(entry.get("skills"), staff_id),
    )


def phase_from_dict(entry: Mapping[str, object]) -> PhaseConfig:
    name = entry.get("name")
    if not name or not isinstance(name, str):
        raise ValueError("phase name is required")
    allocations_raw = entry.get("staffAllocation") or []
    if not isinstance(allocations_raw, list):
        raise ValueError(f"staffAllocation for phase {name} must be an array")
    allocations: List[StaffAllocation] = []
    for item in allocations_raw:
        if not isinstance(item, Mapping):
            raise ValueError(f"staffAllocation entries for phase {name} must be objects")
        staff_id = item.get("staffTypeId", item.get("staffRoleSlotId"))
        if not staff_id or not isinstance(staff_id, str):
            raise ValueError(f"staffTypeId is required in phase {name}")
        allocations.append(
            StaffAllocation(staff_id, _number(item.get("percentage", 0), f"percentage in phase {name}"))
        )
    return PhaseConfig(
        name=name,
        percent_budget=_number(entry.get("percentBudget", 0), f"percentBudget for phase {name}"),
        min_weeks=_integer(entry.get("minWeeks", 0), f"minWeeks for phase {name}"),
        max_weeks=_integer(entry.get("maxWeeks", 0), f"maxWeeks for phase {name}"),
        staff_allocation=tuple(allocations),
    )


def config_from_dict(data: Mapping[str, object]) -> GlobalConfig:
    if not isinstance(data, Mapping):
        raise ValueError("config must be a JSON object")
    year = _integer(data.get("year", defaults.DEFAULT_YEAR), "year")
    if not 1900 <= year <= 9998:
        raise ValueError("year must be between 1900 and 9998")

    phases_raw = data.get("phases")
    if phases_raw is None:
        phases = defaults.base_phases()
    else:
        if not isinstance(phases_raw, list):
            raise ValueError("phases must be an array")
        phases = tuple(phase_from_dict(item) for item in phases_raw)

    staff_raw = data.get("staffTypes")
    if staff_raw is None:
        staff_types = defaults.STAFF_TYPES
    else:
        if not isinstance(staff_raw, list):
            raise ValueError("staffTypes must be an array")
        staff_types = tuple(staff_type_from_dict(item) for item in staff_raw)
    ids = [staff.id for staff in staff_types]
    duplicates = sorted({staff_id for staff_id in ids if ids.count(staff_id) > 1})
    if duplicates:
        raise ValueError(f"duplicate staff type ids: {', '.join(duplicates)}")

    random_seed = data.get("randomSeed")
    if random_seed is not None and (isinstance(random_seed, bool) or not isinstance(random_seed, int)):
        raise ValueError("randomSeed must be an integer if provided")
    iterations = _integer(data.get("optimizerIterations", 5000), "optimizerIterations")
    if iterations < 0:
        raise ValueError("optimizerIterations must not be negative")

    skills = data.get("skills")
    roles = data.get("roles")
    return GlobalConfig(
        year=year,
        phases=phases,
        staff_types=staff_types,
        skills=defaults.SKILLS if skills is None else _string_list(skills, "skills"),
        roles=defaults.ROLES if roles is None else _string_list(roles, "roles"),
        random_seed=random_seed,
        optimizer_iterations=iterations,
        logging_level=str(data.get("loggingLevel", "INFO")),
    )


def _parse_overrides(value: object, project_id: str) -> ProjectOverrides:
    if value is None:
        return ProjectOverrides()
    if not isinstance(value, Mapping):
        raise ValueError(f"overrides for project {project_id} must be an object")
    phase_raw = value.get("phase") or {}
    staff_raw = value.get("staff") or {}
    if not isinstance(phase_raw, Mapping) or not isinstance(staff_raw, Mapping):
        raise ValueError(f"overrides.phase and overrides.staff must be objects for project {project_id}")
    staff: Dict[str, Dict[str, float]] = {}
    for key, cells in staff_raw.items():
        if not isinstance(cells, Mapping):
            raise ValueError(f"overrides.staff['{key}'] must be an object for project {project_id}")
        staff[str(key)] = {
            str(week): _number(hours, f"override hours for {key} in project {project_id}")
            for week, hours in cells.items()
        }
    return ProjectOverrides(
        phase={str(week): str(label) for week, label in phase_raw.items()},
        staff=staff,
    )


def project_from_dict(entry: Mapping[str, object]) -> ProjectInput:
    if not isinstance(entry, Mapping):
        raise ValueError("project entries must be objects")
    project_id = entry.get("id")
    if not project_id:
        raise ValueError("project id is required")
    project_id = str(project_id)
    phases_raw = entry.get("phasesConfig")
    if phases_raw is not None and not isinstance(phases_raw, list):
        raise ValueError(f"phasesConfig for project {project_id} must be an array")
    return ProjectInput(
        id=project_id,
        name=str(entry.get("name") or project_id),
        budget_hours=_number(entry.get("budgetHours", 0), f"budgetHours for project {project_id}", minimum=0),
        start_week_offset=_integer(entry.get("startWeekOffset", 0), f"startWeekOffset for project {project_id}"),
        locked=_parse_bool(entry.get("locked", False), "locked"),
        phases_config=None if phases_raw is None else tuple(phase_from_dict(p) for p in phases_raw),
        team=entry.get("team") or None,
        required_skills=_string_list(entry.get("requiredSkills"), "requiredSkills"),
        overrides=_parse_overrides(entry.get("overrides"), project_id),
    )


def projects_from_list(data: object) -> List[ProjectInput]:
    if not isinstance(data, list):
        raise ValueError("projects file must be a JSON array")
    return [project_from_dict(entry) for entry in data]


def load_config(path: str | Path) -> GlobalConfig:
    return config_from_dict(json.loads(Path(path).read_text()))


def load_projects(path: str | Path) -> List[ProjectInput]:
    return projects_from_list(json.loads(Path(path).read_text()))


def phase_to_dict(phase: PhaseConfig) -> Dict[str, object]:
    return {
        "name": phase.name,
        "percentBudget": phase.percent_budget,
        "minWeeks": phase.min_weeks,
        "maxWeeks": phase.max_weeks,
        "staffAllocation": [
            {"staffTypeId": alloc.staff_type_id, "percentage": alloc.percentage}
            for alloc in phase.staff_allocation
        ],
    }


def project_to_dict(project: ProjectInput) -> Dict[str, object]:
    data: Dict[str, object] = {
        "id": project.id,
        "name": project.name,
        "budgetHours": project.budget_hours,
        "startWeekOffset": project.start_week_offset,
        "locked": project.locked,
    }
    if project.phases_config is not None:
        data["phasesConfig"] = [phase_to_dict(phase) for phase in project.phases_config]
    if project.team is not None:
        data["team"] = project.team
    if project.required_skills:
        data["requiredSkills"] = list(project.required_skills)
    if not project.overrides.is_empty():
        data["overrides"] = {
            "phase": dict(project.overrides.phase),
            "staff": {key: dict(cells) for key, cells in project.overrides.staff.items()},
        }
    return data


def dump_projects(projects: Sequence[ProjectInput], path: str | Path) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps([project_to_dict(p) for p in projects], indent=2) + "\n")


def schedule_frame(schedule: ScheduleData) -> pd.DataFrame:
    """Wide grid: identifying columns followed by one hours column per week."""
    columns = _SCHEDULE_ID_COLUMNS + list(schedule.headers)
    records = []
    for row in schedule.rows:
        record: Dict[str, object] = {
            "row_id": row.row_id,
            "project_id": row.project_id,
            "project_name": row.project_name,
            "staff_type_id": row.staff_type_id,
            "staff_type_name": row.staff_type_name,
            "staff_role": row.staff_role,
            "staff_index": row.staff_index,
            "total_hours": row.total_hours,
        }
        for cell in row.cells:
            record[cell.date] = cell.hours
        records.append(record)
    return pd.DataFrame(records, columns=columns)


def ensure_directory(path: str | Path) -> Path:
    target = Path(path)
    target.mkdir(parents=True, exist_ok=True)
    return target


def write_csv(df: pd.DataFrame, path: str | Path, *, index: bool = False) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=index)
