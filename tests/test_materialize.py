from staff_planner.materialize import generate_schedule
from staff_planner.models import ProjectOverrides


def _rows_for(schedule, staff_id):
    return [row for row in schedule.rows if row.staff_type_id == staff_id]


def test_headers_are_in_year_mondays(config, make_project):
    schedule = generate_schedule([make_project()], config)

    assert len(schedule.headers) == 52
    assert schedule.headers[0] == "2026-01-05"


def test_single_phase_single_slot(config, make_project):
    schedule = generate_schedule([make_project()], config)

    assert len(schedule.rows) == 1
    (row,) = schedule.rows
    assert row.row_id == "p1-tmpl-lead-0"
    assert row.staff_index == 1
    assert row.staff_role == "Audit Lead"
    assert [cell.hours for cell in row.cells[:5]] == [100, 100, 100, 100, 0]
    assert {cell.phase for cell in row.cells[:4]} == {"Fieldwork"}
    assert row.cells[4].phase is None
    assert row.total_hours == 400
    assert not any(cell.is_override for cell in row.cells)


def test_zero_week_phase_produces_no_rows(config, make_project, make_phase):
    project = make_project(
        phases=[
            make_phase("Planning", 50, 0, [("tmpl-lead", 100)]),
            make_phase("Fieldwork", 50, 2, [("tmpl-staff", 100)]),
        ]
    )
    schedule = generate_schedule([project], config)

    assert _rows_for(schedule, "tmpl-lead") == []
    (row,) = _rows_for(schedule, "tmpl-staff")
    assert [cell.hours for cell in row.cells[:3]] == [100, 100, 0]


def test_override_on_second_split_without_computed_hours(config, make_project):
    project = make_project(overrides=ProjectOverrides(staff={"lead-1-2": {"2026-03-02": 12}}))
    schedule = generate_schedule([project], config)

    first, second = _rows_for(schedule, "lead-1")
    assert (first.staff_index, second.staff_index) == (1, 2)
    assert first.total_hours == 0
    assert second.cells[8].date == "2026-03-02"
    assert second.cells[8].hours == 12
    assert second.cells[8].is_override
    assert second.cells[8].phase is None
    assert second.total_hours == 12


def test_zero_padded_override_key_lands_on_its_split(config, make_project):
    project = make_project(overrides=ProjectOverrides(staff={"lead-1-02": {"2026-03-02": 12}}))
    first, second = _rows_for(generate_schedule([project], config), "lead-1")

    assert second.staff_index == 2
    assert second.cells[8].hours == 12
    assert second.cells[8].is_override
    assert first.total_hours == 0


def test_computed_hours_split_evenly_across_rows(config, make_project):
    project = make_project(overrides=ProjectOverrides(staff={"tmpl-lead-2": {"2026-01-12": 30}}))
    schedule = generate_schedule([project], config)

    first, second = _rows_for(schedule, "tmpl-lead")
    # 100 hours a week over two rows, 50 rounds to 52
    assert [cell.hours for cell in first.cells[:4]] == [52, 52, 52, 52]
    assert [cell.hours for cell in second.cells[:4]] == [52, 30, 52, 52]
    assert second.cells[1].is_override


def test_override_beats_computed_value(config, make_project):
    project = make_project(overrides=ProjectOverrides(staff={"tmpl-lead-1": {"2026-01-05": 8, "2026-01-12": 0}}))
    (row,) = generate_schedule([project], config).rows

    assert row.cells[0].hours == 8
    assert row.cells[0].is_override
    assert row.cells[0].phase == "Fieldwork"
    assert row.cells[1].hours == 0
    assert row.cells[1].is_override
    assert row.total_hours == 8 + 0 + 100 + 100


def test_phase_override_redirects_week(config, make_project, make_phase):
    project = make_project(
        phases=[
            make_phase("Planning", 50, 2, [("tmpl-lead", 100)]),
            make_phase("Fieldwork", 50, 2, [("tmpl-staff", 100)]),
        ],
        overrides=ProjectOverrides(phase={"2026-01-19T00:00:00.000Z": "Planning"}),
    )
    schedule = generate_schedule([project], config)

    (lead,) = _rows_for(schedule, "tmpl-lead")
    (staff,) = _rows_for(schedule, "tmpl-staff")
    assert [cell.hours for cell in lead.cells[:4]] == [100, 100, 100, 0]
    assert [cell.hours for cell in staff.cells[:4]] == [0, 0, 0, 100]
    assert lead.cells[2].phase == "Planning"


def test_override_dates_outside_year_are_ignored(config, make_project):
    project = make_project(overrides=ProjectOverrides(staff={"tmpl-lead-1": {"2027-01-04": 40}}))
    (row,) = generate_schedule([project], config).rows

    assert row.total_hours == 400
    assert not any(cell.is_override for cell in row.cells)


def test_explicit_zero_percent_allocation_keeps_placeholder_row(config, make_project, make_phase):
    project = make_project(phases=[make_phase(allocations=[("tmpl-lead", 100), ("lead-2", 0)])])
    schedule = generate_schedule([project], config)

    (row,) = _rows_for(schedule, "lead-2")
    assert row.total_hours == 0
    assert row.staff_index == 1


def test_budget_is_roughly_conserved(config, make_project, make_phase):
    project = make_project(budget=1000, phases=[make_phase(max_weeks=3)])
    (row,) = generate_schedule([project], config).rows

    assert abs(row.total_hours - 1000) <= 4 * 3 / 2


def test_start_offset_is_clamped_to_last_week(config, make_project):
    (row,) = generate_schedule([make_project(offset=60)], config).rows

    assert row.cells[-1].hours == 100
    assert row.total_hours == 100


def test_roster_order_and_project_order(config, make_project, make_phase):
    projects = [
        make_project("a", phases=[make_phase(allocations=[("tmpl-staff", 50), ("lead-1", 50)])]),
        make_project("b"),
    ]
    schedule = generate_schedule(projects, config)

    assert [(row.project_id, row.staff_type_id) for row in schedule.rows] == [
        ("a", "lead-1"),
        ("a", "tmpl-staff"),
        ("b", "tmpl-lead"),
    ]
