from __future__ import annotations

from typing import Tuple

from .models import (
    GlobalConfig,
    PhaseConfig,
    SkillLevel,
    SlotKind,
    StaffAllocation,
    StaffType,
)

DEFAULT_YEAR = 2026

TEAMS: Tuple[str, ...] = ("Finance", "IT", "Operations", "Compliance", "General")

SKILLS: Tuple[str, ...] = (
    "Anti-Money AML",
    "Cloud Security",
    "Communication",
    "Cybersecurity",
    "Data Analytics",
    "Risk Management",
    "Financial Accounting",
    "Fraud Investigation",
    "Governance",
    "Internal Controls (SOX)",
    "IT General Controls",
    "Process Improvement",
    "Project Management",
    "Python/R",
    "Regulatory Compliance",
    "SQL",
)

ROLES: Tuple[str, ...] = (
    "Portfolio Manager",
    "Audit Lead",
    "Staff Auditor",
    "Senior Auditor",
    "IT Specialist",
    "Quality Reviewer",
)

_ADV = SkillLevel.ADVANCED
_INT = SkillLevel.INTERMEDIATE
_BEG = SkillLevel.BEGINNER

STAFF_TYPES: Tuple[StaffType, ...] = (
    StaffType("pm-1", "Sarah Chen", "Portfolio Manager", 15, team="Finance",
              skills={"Project Management": _ADV, "Communication": _ADV}),
    StaffType("lead-1", "Marcus Thorne", "Audit Lead", 40, team="IT",
              skills={"Cybersecurity": _ADV, "IT General Controls": _ADV}),
    StaffType("lead-2", "Elena Rodriguez", "Audit Lead", 40, team="Finance",
              skills={"Financial Accounting": _ADV, "Internal Controls (SOX)": _INT}),
    StaffType("staff-1", "Alex Rivera", "Senior Auditor", 40, team="Operations",
              skills={"Data Analytics": _INT, "SQL": _ADV}),
    StaffType("staff-2", "Priya Patel", "Senior Auditor", 40, team="IT",
              skills={"Cloud Security": _INT, "Python/R": _BEG}),
    StaffType("tmpl-pm", "", "Portfolio Manager", 40, kind=SlotKind.TEMPLATE, team="General"),
    StaffType("tmpl-lead", "", "Audit Lead", 40, kind=SlotKind.TEMPLATE, team="General"),
    StaffType("tmpl-staff", "", "Senior Auditor", 40, kind=SlotKind.TEMPLATE, team="General"),
    StaffType("placeholder", "", "Unassigned", 40, kind=SlotKind.UNASSIGNED, team="General"),
)


def _alloc(*pairs: Tuple[str, float]) -> Tuple[StaffAllocation, ...]:
    return tuple(StaffAllocation(staff_id, pct) for staff_id, pct in pairs)


PHASES: Tuple[PhaseConfig, ...] = (
    PhaseConfig("Pre-Planning", 10, 1, 2, _alloc(("tmpl-pm", 40), ("tmpl-lead", 60))),
    PhaseConfig("Planning", 20, 2, 4, _alloc(("tmpl-pm", 10), ("tmpl-lead", 40), ("tmpl-staff", 50))),
    PhaseConfig("Fieldwork", 50, 4, 8, _alloc(("tmpl-pm", 5), ("tmpl-lead", 25), ("tmpl-staff", 70))),
    PhaseConfig("Reporting", 20, 2, 4, _alloc(("tmpl-pm", 20), ("tmpl-lead", 50), ("tmpl-staff", 30))),
)


def base_phases() -> Tuple[PhaseConfig, ...]:
    """Phase plan to snapshot into a newly created project."""
    return tuple(PHASES)


def default_config(year: int = DEFAULT_YEAR) -> GlobalConfig:
    return GlobalConfig(
        year=year,
        phases=PHASES,
        staff_types=STAFF_TYPES,
        skills=SKILLS,
        roles=ROLES,
    )
