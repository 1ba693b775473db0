"""CLI entrypoint for sweet-spot."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import numpy as np

from sweet_spot.engine import BuilderOutput, build_leg_set, summarize_legs
from sweet_spot.errors import CLIError, SweetSpotError
from sweet_spot.logging_config import configure_logging
from sweet_spot.models import CandidatePick, FrozenSlate
from sweet_spot.presets import PRESETS, WeightPreset, get_preset
from sweet_spot.rules import TARGET_LEG_COUNT
from sweet_spot.runtime_config import (
    DEFAULT_CONFIG_PATH,
    RuntimeConfig,
    load_runtime_config,
    set_current_runtime_config,
)
from sweet_spot.settings import Settings
from sweet_spot.simulation.hybrid import SimLeg, quick_analysis
from sweet_spot.simulation.runner import MODE_ITERATIONS, SimulationRun, run_simulation
from sweet_spot.snapshot import check_round_trip, dump_slate, load_slate
from sweet_spot.trace_table import legs_frame, traces_frame, write_frame

logger = logging.getLogger(__name__)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, sort_keys=True, indent=2))


def _fmt(value: float | None, spec: str = ".2f") -> str:
    return "-" if value is None else format(value, spec)


def _resolve_preset(raw: str | None, slate_preset: str, settings: Settings) -> WeightPreset:
    return get_preset(raw or slate_preset or settings.default_preset)


def _build(
    args: argparse.Namespace, settings: Settings
) -> tuple[FrozenSlate, BuilderOutput, WeightPreset]:
    slate = load_slate(Path(args.slate))
    preset = _resolve_preset(args.preset, slate.preset_id, settings)
    output = build_leg_set(
        slate,
        preset,
        missing_context_penalty=settings.missing_context_penalty,
    )
    return slate, output, preset


def _cmd_build(args: argparse.Namespace) -> int:
    settings = Settings.from_runtime()
    _, output, preset = _build(args, settings)

    if args.trace_out:
        path = write_frame(traces_frame(output), Path(args.trace_out))
        logger.info("wrote %d trace rows to %s", len(output.traces), path)
    if args.legs_out:
        path = write_frame(legs_frame(output), Path(args.legs_out))
        logger.info("wrote %d legs to %s", len(output.legs), path)

    if args.json:
        _print_json(output.to_dict())
        return 0

    print(f"slate={output.slate_date or '-'} preset={preset.preset_id}")
    print(f"legs={len(output.legs)}/{TARGET_LEG_COUNT}")
    for position, leg in enumerate(output.legs, start=1):
        candidate = leg.candidate
        print(
            f"{position}. {candidate.player_name} ({leg.team}) "
            f"{candidate.side} {candidate.line:g} {candidate.prop_type} "
            f"score={leg.score:.3f} pattern={leg.pattern_score:g} "
            f"phase={leg.phase} slot={leg.slot_category or '-'}"
        )
    diagnostics = output.diagnostics
    print(
        "diagnostics: "
        f"candidates={diagnostics['total_candidates']} "
        f"invalid={diagnostics['invalid']} "
        f"injury={diagnostics['injury']} "
        f"archetype_blocked={len(diagnostics['archetype_blocked'])} "
        f"h2h_blocked={len(diagnostics['h2h_blocked'])} "
        f"pattern_blocked={len(diagnostics['pattern_blocked'])} "
        f"validated={diagnostics['passed_validation']}"
    )
    summary = summarize_legs(output.legs)
    print(
        f"summary: avg_confidence={_fmt(summary['avg_confidence'])} "
        f"avg_reliability={_fmt(summary['avg_reliability'])} "
        f"teams={summary['unique_teams']}"
    )
    return 0


def _simulation_pool(
    output: BuilderOutput, candidates: tuple[CandidatePick, ...], pool: str
) -> list[CandidatePick]:
    if pool == "all":
        invalid = {row.index for row in output.traces if row.stage == "invalid"}
        return [candidate for index, candidate in enumerate(candidates) if index not in invalid]
    validated = [row.index for row in output.traces if row.stage == "selection"]
    return [candidates[index] for index in validated]


def _print_run(run: SimulationRun, top: int) -> None:
    progress = run.progress
    print(
        f"outcome={run.outcome} mode={run.config.mode} iterations={run.config.iterations} "
        f"combinations={progress.combinations_simulated}/{progress.combinations_total} "
        f"viable={progress.viable_parlays} elapsed_ms={progress.elapsed_ms}"
    )
    for parlay in run.parlays[: max(0, top)]:
        result = parlay.simulation
        players = ", ".join(leg.player_name for leg in parlay.legs)
        print(
            f"#{parlay.rank} {'VIABLE' if parlay.viable else 'no'} "
            f"win={result.hybrid_win_rate:.2%} edge={result.overall_edge:+.2%} "
            f"sharpe={result.sharpe_ratio:.2f} ev={result.expected_value:+.3f} "
            f"rec={result.recommendation} [{players}]"
        )


def _cmd_simulate(args: argparse.Namespace) -> int:
    settings = Settings.from_runtime()
    slate, output, _ = _build(args, settings)

    if args.quick:
        legs = [SimLeg.from_candidate(leg.candidate) for leg in output.legs]
        analysis = quick_analysis(legs)
        if args.json:
            _print_json(analysis.to_dict())
            return 0
        print(
            f"win_probability={analysis.win_probability:.2%} edge={analysis.edge:+.2%} "
            f"recommendation={analysis.recommendation}"
        )
        for insight in analysis.insights:
            print(f"- {insight}")
        return 0

    leg_count = int(args.legs)
    if leg_count <= 0:
        raise CLIError("--legs must be > 0")
    candidates = _simulation_pool(output, slate.candidates, args.pool)
    config = settings.simulator_config(mode=args.mode, max_combinations=args.max_combinations)
    seed = args.seed if args.seed is not None else settings.simulator_seed
    run = run_simulation(
        candidates,
        leg_count,
        config=config,
        rng=np.random.default_rng(seed),
    )
    if args.json:
        payload = run.to_dict()
        payload["parlays"] = payload["parlays"][: max(0, int(args.top))]
        _print_json(payload)
        return 0
    _print_run(run, int(args.top))
    return 0


def _cmd_presets(args: argparse.Namespace) -> int:
    rows = [PRESETS[key].to_dict() for key in sorted(PRESETS)]
    if args.json:
        _print_json(rows)
        return 0
    for row in rows:
        print(
            f"{row['preset_id']}: pattern={row['pattern']} reliability={row['reliability']} "
            f"confidence={row['confidence']} missing_penalty={row['missing_reliability_penalty']}"
        )
    return 0


def _cmd_slate_check(args: argparse.Namespace) -> int:
    slate = load_slate(Path(args.path))
    stable = check_round_trip(slate)
    report = {
        "path": str(args.path),
        "slate_date": slate.slate_date,
        "preset_id": slate.preset_id,
        "candidates": len(slate.candidates),
        "h2h_records": len(slate.h2h),
        "game_environments": len(slate.game_environment),
        "defense_ranks": len(slate.defense_ranks),
        "round_trip_stable": stable,
    }
    _print_json(report)
    return 0 if stable else 2


def _cmd_slate_normalize(args: argparse.Namespace) -> int:
    slate = load_slate(Path(args.path))
    target = dump_slate(slate, Path(args.out))
    print(str(target))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sweet-spot")
    parser.add_argument("--config", default="", help="Path to runtime.toml")
    parser.add_argument("--log-level", default="", help="Override [logging] level")
    subparsers = parser.add_subparsers(dest="command")

    build = subparsers.add_parser("build", help="Select legs from a frozen slate")
    build.set_defaults(func=_cmd_build)
    build.add_argument("--slate", required=True)
    build.add_argument("--preset", default="")
    build.add_argument("--trace-out", default="", help="Write traces to .csv or .parquet")
    build.add_argument("--legs-out", default="", help="Write selected legs to .csv or .parquet")
    build.add_argument("--json", action="store_true")

    simulate = subparsers.add_parser("simulate", help="Stress-test leg combinations")
    simulate.set_defaults(func=_cmd_simulate)
    simulate.add_argument("--slate", required=True)
    simulate.add_argument("--preset", default="")
    simulate.add_argument("--legs", type=int, default=TARGET_LEG_COUNT)
    simulate.add_argument("--mode", choices=sorted(MODE_ITERATIONS), default=None)
    simulate.add_argument("--seed", type=int, default=None)
    simulate.add_argument("--max-combinations", type=int, default=None)
    simulate.add_argument("--pool", choices=["validated", "all"], default="validated")
    simulate.add_argument("--top", type=int, default=5)
    simulate.add_argument("--quick", action="store_true", help="Closed-form read of built legs")
    simulate.add_argument("--json", action="store_true")

    presets = subparsers.add_parser("presets", help="List weight presets")
    presets.set_defaults(func=_cmd_presets)
    presets.add_argument("--json", action="store_true")

    slate = subparsers.add_parser("slate", help="Inspect frozen slates")
    slate_subparsers = slate.add_subparsers(dest="slate_command")
    slate_check = slate_subparsers.add_parser("check", help="Validate a frozen slate")
    slate_check.set_defaults(func=_cmd_slate_check)
    slate_check.add_argument("path")
    slate_normalize = slate_subparsers.add_parser(
        "normalize", help="Rewrite a frozen slate in canonical form"
    )
    slate_normalize.set_defaults(func=_cmd_slate_normalize)
    slate_normalize.add_argument("path")
    slate_normalize.add_argument("--out", required=True, help="Target file or directory")

    return parser


def _load_runtime(raw_path: str) -> RuntimeConfig:
    if raw_path:
        return load_runtime_config(Path(raw_path))
    if DEFAULT_CONFIG_PATH.exists():
        return load_runtime_config()
    return RuntimeConfig(config_path=None)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 0
    try:
        runtime = _load_runtime(args.config)
        set_current_runtime_config(runtime)
        configure_logging(args.log_level or runtime.log_level)
        return int(func(args))
    except (SweetSpotError, FileNotFoundError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
