from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence, Set, Tuple

from . import defaults, engine
from .engine import InvalidScheduleInputError
from .io_utils import dump_projects, ensure_directory, load_config, load_projects, schedule_frame, write_csv
from .loads import aggregate_weekly_loads, loads_frame
from .models import ALL_TEAMS, GlobalConfig, ProjectInput, ScheduleData
from .reporting import ScheduleSummary, capacity_vs_demand, summarize_schedule
from .timing import schedule_cost


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Staff schedule batch tool (JSON in, CSV/JSON out, no UI)."
    )
    parser.add_argument(
        "--project-dir",
        help="Directory containing input/ and output/ subfolders",
    )
    parser.add_argument("--projects", help="Path to projects JSON input (overrides project-dir default)")
    parser.add_argument("--config", help="Path to configuration JSON file (overrides project-dir default)")
    parser.add_argument(
        "--outdir",
        default=None,
        help="Output directory for generated files (default: <project-dir>/output or ./out)",
    )
    parser.add_argument(
        "--optimize",
        action="store_true",
        help="Fill open slots and search project start weeks before generating the grid",
    )
    parser.add_argument("--team", default=ALL_TEAMS, help="Restrict optimization to one team")
    parser.add_argument(
        "--seed",
        type=int,
        help="Override config randomSeed for a reproducible timing search",
    )
    parser.add_argument("--iterations", type=int, help="Override config optimizerIterations")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail if projects reference staff types missing from the roster",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute and print a summary without writing output files",
    )
    return parser.parse_args(argv)


def _resolve_io_paths(args: argparse.Namespace) -> Tuple[Path, Path, Path]:
    project_dir = Path(args.project_dir).resolve() if args.project_dir else None
    if project_dir and not project_dir.exists():
        raise ValueError(f"project directory not found: {project_dir}")
    input_dir = project_dir / "input" if project_dir else None

    def _pick(path_value: Optional[str], default_name: str) -> Optional[Path]:
        if path_value:
            return Path(path_value)
        if input_dir:
            return input_dir / default_name
        return None

    projects_path = _pick(args.projects, "projects.json")
    config_path = _pick(args.config, "config.json")

    missing = [name for name, value in (("projects", projects_path), ("config", config_path)) if value is None]
    if missing:
        joined = ", ".join(f"--{name}" for name in missing)
        raise ValueError(f"missing required input paths: {joined} (or provide --project-dir)")

    for label, path in (("projects", projects_path), ("config", config_path)):
        if not path.exists():
            raise ValueError(f"{label} file not found at {path}")

    if args.outdir:
        outdir = Path(args.outdir)
    elif project_dir:
        outdir = project_dir / "output"
    else:
        outdir = Path("out")

    return projects_path, config_path, outdir


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s %(message)s")


def _print_summary(
    projects: Sequence[ProjectInput],
    summary: ScheduleSummary,
    cost: float,
    warnings: Sequence[str],
) -> None:
    print("Projects:")
    for project in projects:
        lock = " (locked)" if project.locked else ""
        print(f"- {project.id} {project.name}: starts week {project.start_week_offset}{lock}")
    print(
        f"\nTotal hours {summary.total_hours:.0f}, avg weekly {summary.avg_weekly_hours:.1f}, "
        f"overtime {summary.total_overtime:.0f}, utilization {summary.utilization_pct:.0f}%, "
        f"skill coverage {summary.skill_coverage_pct:.0f}%"
    )
    print(f"Demand cost: {cost:.0f}")
    if warnings:
        print("\nWarnings:")
        for message in dict.fromkeys(warnings):
            print(f"- {message}")
    else:
        print("\nWarnings: none")


def _write_warnings_markdown(warnings: Sequence[str], outdir: Path) -> Path:
    path = outdir / "warnings.md"
    lines: List[str] = ["# Staffing Warnings", ""]
    if not warnings:
        lines.append("Every open slot was filled.")
    else:
        for message in dict.fromkeys(warnings):
            lines.append(f"- {message}")
    path.write_text("\n".join(lines).strip() + "\n")
    return path


def _write_outputs(
    outdir: Path,
    config: GlobalConfig,
    projects: Sequence[ProjectInput],
    schedule: ScheduleData,
    warnings: Sequence[str],
    optimized: bool,
) -> List[Path]:
    outdir_path = ensure_directory(outdir)
    loads = aggregate_weekly_loads(projects, config, len(schedule.headers))
    written: List[Path] = []

    schedule_path = outdir_path / "schedule.csv"
    write_csv(schedule_frame(schedule), schedule_path)
    written.append(schedule_path)

    load_path = outdir_path / "weekly_load.csv"
    write_csv(loads_frame(loads, schedule.headers), load_path, index=True)
    written.append(load_path)

    capacity_path = outdir_path / "capacity_vs_demand.csv"
    write_csv(capacity_vs_demand(loads, config, schedule.headers), capacity_path)
    written.append(capacity_path)

    if optimized:
        projects_path = outdir_path / "optimized_projects.json"
        dump_projects(projects, projects_path)
        written.append(projects_path)

    written.append(_write_warnings_markdown(warnings, outdir_path))
    return written


def _known_teams(config: GlobalConfig, projects: Sequence[ProjectInput]) -> Set[str]:
    teams = {ALL_TEAMS, *defaults.TEAMS}
    teams.update(staff.team for staff in config.staff_types if staff.team)
    teams.update(project.team for project in projects if project.team)
    return teams


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    try:
        projects_path, config_path, outdir = _resolve_io_paths(args)
        cfg = load_config(config_path)
        projects = load_projects(projects_path)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(2)

    if args.seed is not None:
        cfg = replace(cfg, random_seed=args.seed)
    if args.iterations is not None:
        cfg = replace(cfg, optimizer_iterations=args.iterations)
    _configure_logging(cfg.logging_level)

    known_teams = _known_teams(cfg, projects)
    if args.team not in known_teams:
        print(f"unknown team '{args.team}'; expected one of: {', '.join(sorted(known_teams))}", file=sys.stderr)
        sys.exit(2)

    warnings: Sequence[str] = ()
    try:
        if args.optimize:
            result = engine.optimize_schedule(projects, cfg, args.team, strict=args.strict)
            projects = list(result.optimized_projects)
            warnings = result.warnings
        schedule = engine.generate_schedule(projects, cfg, strict=args.strict)
    except InvalidScheduleInputError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(1)

    summary = summarize_schedule(schedule, projects, cfg)
    if args.dry_run:
        _print_summary(projects, summary, schedule_cost(projects, cfg), warnings)
        return

    for path in _write_outputs(outdir, cfg, projects, schedule, warnings, args.optimize):
        print(f"Wrote {path}")
    if warnings:
        print("Warnings:")
        for message in dict.fromkeys(warnings):
            print(f"- {message}")


if __name__ == "__main__":
    main()
