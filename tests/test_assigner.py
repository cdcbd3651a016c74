from staff_planner.assigner import Task, assign_placeholders, extract_tasks, score_candidate


def _task(hours=32, duration=4, start=0, team="General", skills=(), role="Audit Lead"):
    return Task(
        project_id="p1",
        project_name="Project p1",
        phase_index=0,
        alloc_index=0,
        start_week=start,
        duration=duration,
        hours_per_week=hours,
        required_skills=tuple(skills),
        team=team,
        target_role=role,
        role_label=role,
    )


def _staff_ids(project):
    return [alloc.staff_type_id for phase in project.phases_config for alloc in phase.staff_allocation]


def test_extract_tasks_only_takes_fillable_slots(config, make_project, make_phase):
    project = make_project(
        team="IT",
        skills=["Cybersecurity"],
        phases=[
            make_phase("Planning", 50, 2, [("tmpl-lead", 60), ("lead-2", 40)]),
            make_phase("Fieldwork", 50, 0, [("tmpl-staff", 100)]),
            make_phase("Reporting", 0, 2, [("placeholder", 100), ("tmpl-staff", 0)]),
        ],
    )
    tasks = extract_tasks([project], config)

    assert len(tasks) == 2
    lead_task, placeholder_task = tasks
    assert (lead_task.phase_index, lead_task.alloc_index) == (0, 0)
    assert lead_task.hours_per_week == 60
    assert lead_task.target_role == "Audit Lead"
    assert lead_task.team == "IT"
    assert lead_task.required_skills == ("Cybersecurity",)
    # the zero-budget phase still allocates a positive percentage, so it is a task with no hours
    assert placeholder_task.start_week == 2
    assert placeholder_task.target_role is None
    assert placeholder_task.hours_per_week == 0


def test_extract_tasks_respects_team_filter(config, make_project):
    projects = [make_project("a", team="IT"), make_project("b", team="Finance"), make_project("c")]

    assert [t.project_id for t in extract_tasks(projects, config, "IT")] == ["a"]
    assert len(extract_tasks(projects, config)) == 3


def test_default_team_is_general(config, make_project):
    (task,) = extract_tasks([make_project()], config)
    assert task.team == "General"


def test_load_reaching_capacity_exactly_is_not_overtime(config):
    lead = config.find_staff("lead-2")
    loads = {"lead-2": [8.0] * 52}

    assert score_candidate(lead, _task(hours=32), loads, 52) == 4 * 32


def test_overtime_penalty_is_quadratic(config):
    lead = config.find_staff("lead-2")
    loads = {"lead-2": [12.0] * 52}

    # 12 + 32 = 44, four hours over in each of four weeks
    assert score_candidate(lead, _task(hours=32), loads, 52) == -10 * (4 * 4 ** 2)


def test_team_and_skill_bonuses(config):
    lead = config.find_staff("lead-1")
    task = _task(hours=0, team="IT", skills=["Cybersecurity", "SQL"])

    assert score_candidate(lead, task, {}, 52) == 50 + 30


def test_weeks_outside_year_are_not_scored(config):
    lead = config.find_staff("lead-2")

    assert score_candidate(lead, _task(hours=10, start=50), {}, 52) == 2 * 10


def test_best_candidate_fills_template(config, make_project):
    project = make_project(budget=128, team="IT", skills=["Cybersecurity"])
    staffed, warnings = assign_placeholders([project], config)

    assert warnings == []
    assert _staff_ids(staffed[0]) == ["lead-1"]
    # input left untouched
    assert _staff_ids(project) == ["tmpl-lead"]


def test_role_must_match_template(config, make_project, make_phase):
    project = make_project(phases=[make_phase(allocations=[("tmpl-staff", 100)])], budget=64)
    staffed, warnings = assign_placeholders([project], config)

    assert _staff_ids(staffed[0]) == ["staff-1"]
    assert warnings == []


def test_unassigned_placeholder_takes_any_real_staff(config, make_project, make_phase):
    project = make_project(team="Operations", budget=40, phases=[make_phase(max_weeks=1, allocations=[("placeholder", 100)])])
    staffed, warnings = assign_placeholders([project], config)

    assert _staff_ids(staffed[0]) == ["staff-1"]
    assert warnings == []


def test_no_person_twice_on_one_project(config, make_project, make_phase):
    phases = [make_phase(name, 30, 2, [("tmpl-lead", 100)]) for name in ("Planning", "Fieldwork", "Reporting")]
    project = make_project(budget=100, phases=phases)
    staffed, warnings = assign_placeholders([project], config)

    ids = _staff_ids(staffed[0])
    real = [sid for sid in ids if sid != "tmpl-lead"]
    assert len(real) == len(set(real)) == 2
    assert warnings == ["Could not fill 'Audit Lead' for Project p1."]


def test_already_staffed_person_is_excluded(config, make_project, make_phase):
    project = make_project(
        phases=[
            make_phase("Planning", 50, 2, [("staff-1", 100)]),
            make_phase("Fieldwork", 50, 2, [("tmpl-staff", 100)]),
        ]
    )
    staffed, warnings = assign_placeholders([project], config)

    assert _staff_ids(staffed[0]) == ["staff-1", "tmpl-staff"]
    assert warnings == ["Could not fill 'Senior Auditor' for Project p1."]


def test_largest_commitment_is_placed_first(config, make_project):
    small = make_project("small", budget=32)
    big = make_project("big", budget=160)
    staffed, warnings = assign_placeholders([small, big], config)

    by_id = {project.id: project for project in staffed}
    assert warnings == []
    assert [p.id for p in staffed] == ["small", "big"]
    assert _staff_ids(by_id["big"]) == ["lead-1"]
    assert _staff_ids(by_id["small"]) == ["lead-2"]


def test_project_without_snapshot_records_assignment(config, make_project):
    project = make_project(snapshot=False, budget=128)
    staffed, _ = assign_placeholders([project], config)

    assert project.phases_config is None
    assert staffed[0].phases_config is not None
    assert _staff_ids(staffed[0]) in (["lead-1"], ["lead-2"])
    assert config.phases[0].staff_allocation[0].staff_type_id == "tmpl-lead"


def test_out_of_filter_projects_are_left_alone(config, make_project):
    project = make_project(team="Finance")
    staffed, warnings = assign_placeholders([project], config, "IT")

    assert staffed == [project]
    assert warnings == []
