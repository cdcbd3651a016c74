from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple


ALL_TEAMS = "All Teams"
DEFAULT_TEAM = "General"
UNASSIGNED_ROLE = "Unassigned"


class SlotKind(str, Enum):
    """What a staff type stands for: a person, a role template or the generic placeholder."""

    REAL = "real"
    TEMPLATE = "template"
    UNASSIGNED = "unassigned"

    @property
    def fillable(self) -> bool:
        return self is not SlotKind.REAL


class SkillLevel(str, Enum):
    NONE = "None"
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"

    @property
    def bonus(self) -> int:
        return _SKILL_BONUS[self]


_SKILL_BONUS: Dict[SkillLevel, int] = {
    SkillLevel.NONE: 0,
    SkillLevel.BEGINNER: 10,
    SkillLevel.INTERMEDIATE: 20,
    SkillLevel.ADVANCED: 30,
}


@dataclass(frozen=True)
class StaffAllocation:
    staff_type_id: str
    percentage: float


@dataclass(frozen=True)
class PhaseConfig:
    name: str
    percent_budget: float
    min_weeks: int
    max_weeks: int
    staff_allocation: Tuple[StaffAllocation, ...] = ()

    def phase_hours(self, budget_hours: float) -> float:
        return budget_hours * self.percent_budget / 100

    def with_allocation(self, index: int, staff_type_id: str) -> "PhaseConfig":
        allocations = list(self.staff_allocation)
        allocations[index] = StaffAllocation(staff_type_id, allocations[index].percentage)
        return PhaseConfig(
            name=self.name,
            percent_budget=self.percent_budget,
            min_weeks=self.min_weeks,
            max_weeks=self.max_weeks,
            staff_allocation=tuple(allocations),
        )


@dataclass(frozen=True)
class StaffType:
    """Roster entry; either a real person or a fillable slot."""

    id: str
    name: str
    role: str
    max_hours_per_week: float
    kind: SlotKind = SlotKind.REAL
    team: Optional[str] = None
    skills: Mapping[str, SkillLevel] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "skills", MappingProxyType(dict(self.skills)))

    @property
    def is_real(self) -> bool:
        return self.kind is SlotKind.REAL

    @property
    def target_role(self) -> Optional[str]:
        if self.kind is SlotKind.TEMPLATE:
            return self.role or None
        return None

    def skill_level(self, skill: str) -> SkillLevel:
        return self.skills.get(skill, SkillLevel.NONE)


@dataclass(frozen=True)
class GlobalConfig:
    year: int
    phases: Tuple[PhaseConfig, ...]
    staff_types: Tuple[StaffType, ...]
    skills: Tuple[str, ...] = ()
    roles: Tuple[str, ...] = ()
    random_seed: Optional[int] = None
    optimizer_iterations: int = 5000
    logging_level: str = "INFO"

    def staff_by_id(self) -> Dict[str, StaffType]:
        return {staff.id: staff for staff in self.staff_types}

    def find_staff(self, staff_id: str) -> Optional[StaffType]:
        for staff in self.staff_types:
            if staff.id == staff_id:
                return staff
        return None

    def slot_kind(self, staff_id: str) -> SlotKind:
        staff = self.find_staff(staff_id)
        return staff.kind if staff is not None else SlotKind.REAL

    def real_staff(self) -> List[StaffType]:
        return [staff for staff in self.staff_types if staff.is_real]


def staff_key(staff_id: str, index: int) -> str:
    """Wire key for an hours override row, e.g. ``pm-1-2``."""
    return f"{staff_id}-{index}"


def parse_staff_key(key: str) -> Optional[Tuple[str, int]]:
    staff_id, sep, raw_index = key.rpartition("-")
    if not sep or not staff_id:
        return None
    try:
        index = int(raw_index)
    except ValueError:
        return None
    if index < 1:
        return None
    return staff_id, index


@dataclass(frozen=True)
class ProjectOverrides:
    phase: Mapping[str, str] = field(default_factory=dict)
    staff: Mapping[str, Mapping[str, float]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # read-only copies of the caller's maps
        object.__setattr__(self, "phase", MappingProxyType(dict(self.phase)))
        object.__setattr__(
            self,
            "staff",
            MappingProxyType({key: MappingProxyType(dict(cells)) for key, cells in self.staff.items()}),
        )

    def is_empty(self) -> bool:
        return not self.phase and not self.staff

    def max_split_index(self, staff_id: str) -> int:
        highest = 0
        for key in self.staff:
            parsed = parse_staff_key(key)
            if parsed and parsed[0] == staff_id and parsed[1] > highest:
                highest = parsed[1]
        return highest

    def referenced_staff_ids(self) -> Iterable[str]:
        for key in self.staff:
            parsed = parse_staff_key(key)
            if parsed:
                yield parsed[0]


@dataclass(frozen=True)
class ProjectInput:
    """A project and its phase-plan snapshot.

    ``phases_config`` of ``None`` means no snapshot was taken; the global phase
    list is used instead. An empty tuple is a project without phases.
    """

    id: str
    name: str
    budget_hours: float
    start_week_offset: int = 0
    locked: bool = False
    phases_config: Optional[Tuple[PhaseConfig, ...]] = None
    team: Optional[str] = None
    required_skills: Tuple[str, ...] = ()
    overrides: ProjectOverrides = field(default_factory=ProjectOverrides)

    def phases(self, config: GlobalConfig) -> Tuple[PhaseConfig, ...]:
        if self.phases_config is None:
            return config.phases
        return self.phases_config

    def duration_weeks(self, config: GlobalConfig) -> int:
        return sum(phase.max_weeks for phase in self.phases(config))

    def matches_team(self, team_filter: str) -> bool:
        return team_filter == ALL_TEAMS or self.team == team_filter

    def real_staff_ids(self, config: GlobalConfig) -> set:
        assigned = set()
        for phase in self.phases(config):
            for allocation in phase.staff_allocation:
                if config.slot_kind(allocation.staff_type_id) is SlotKind.REAL:
                    assigned.add(allocation.staff_type_id)
        return assigned


@dataclass(frozen=True)
class ScheduleCell:
    date: str
    hours: float = 0.0
    phase: Optional[str] = None
    is_override: bool = False


@dataclass(frozen=True)
class ScheduleRow:
    row_id: str
    project_id: str
    project_name: str
    staff_type_id: str
    staff_type_name: str
    staff_role: str
    staff_index: int
    cells: Tuple[ScheduleCell, ...]
    total_hours: float


@dataclass(frozen=True)
class ScheduleData:
    headers: Tuple[str, ...]
    rows: Tuple[ScheduleRow, ...]


@dataclass(frozen=True)
class OptimizationResult:
    optimized_projects: Tuple[ProjectInput, ...]
    warnings: Tuple[str, ...]
