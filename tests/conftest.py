"""
Shared fixtures: a small audit roster and builders for phases and projects.
"""
import pytest

from staff_planner.models import (
    GlobalConfig,
    PhaseConfig,
    ProjectInput,
    ProjectOverrides,
    SkillLevel,
    SlotKind,
    StaffAllocation,
    StaffType,
)


@pytest.fixture
def roster():
    return (
        StaffType("lead-1", "Marcus Thorne", "Audit Lead", 40, team="IT",
                  skills={"Cybersecurity": SkillLevel.ADVANCED}),
        StaffType("lead-2", "Elena Rodriguez", "Audit Lead", 40, team="Finance",
                  skills={"Financial Accounting": SkillLevel.ADVANCED}),
        StaffType("staff-1", "Alex Rivera", "Senior Auditor", 40, team="Operations",
                  skills={"SQL": SkillLevel.INTERMEDIATE}),
        StaffType("tmpl-lead", "", "Audit Lead", 40, kind=SlotKind.TEMPLATE, team="General"),
        StaffType("tmpl-staff", "", "Senior Auditor", 40, kind=SlotKind.TEMPLATE, team="General"),
        StaffType("placeholder", "", "Unassigned", 40, kind=SlotKind.UNASSIGNED, team="General"),
    )


@pytest.fixture
def make_phase():
    def _make(name="Fieldwork", percent_budget=100, max_weeks=4, allocations=(("tmpl-lead", 100),), min_weeks=1):
        return PhaseConfig(
            name=name,
            percent_budget=percent_budget,
            min_weeks=min_weeks,
            max_weeks=max_weeks,
            staff_allocation=tuple(StaffAllocation(sid, pct) for sid, pct in allocations),
        )

    return _make


@pytest.fixture
def config(roster, make_phase):
    return GlobalConfig(
        year=2026,
        phases=(make_phase(),),
        staff_types=roster,
        skills=("Cybersecurity", "Financial Accounting", "SQL"),
        random_seed=11,
    )


@pytest.fixture
def make_project(make_phase):
    def _make(project_id="p1", budget=400, phases=None, offset=0, locked=False, team=None,
              skills=(), overrides=None, snapshot=True):
        if phases is None and snapshot:
            phases = (make_phase(),)
        return ProjectInput(
            id=project_id,
            name=f"Project {project_id}",
            budget_hours=budget,
            start_week_offset=offset,
            locked=locked,
            phases_config=tuple(phases) if phases is not None else None,
            team=team,
            required_skills=tuple(skills),
            overrides=overrides or ProjectOverrides(),
        )

    return _make
