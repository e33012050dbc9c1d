from __future__ import annotations

import argparse
import logging
import sys
import threading
from typing import Dict, Iterable, List, Optional, Tuple

from .appliers import RecordingApplier, StaticBaseline
from .config import ControllerSettings, load_config
from .data import actions_to_frame, format_action, load_samples
from .engine import ControlEngine
from .models import ControlAction
from .runtime import ControlRuntime
from .sources import ReplayMetricSource
from .strategies import available_strategies, build_strategy

# parameter type -> (strategy, settings section)
KINDS: Dict[str, Tuple[str, str]] = {
    "timeout": ("hysteresis", "timeout"),
    "retry": ("retry_hysteresis", "retry"),
    "concurrency": ("rejection_threshold", "concurrency"),
}


def parse_baseline(items: Iterable[str]) -> Dict[str, int]:
    baseline: Dict[str, int] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ValueError(f"Baseline must look like ROUTE=VALUE, got '{item}'")
        baseline[key] = int(value)
    return baseline


def replay(
    path: str,
    kind: str,
    baseline: Dict[str, int],
    output: str | None = None,
    settings: ControllerSettings | None = None,
) -> List[ControlAction]:
    """Feed recorded samples through one engine, one tick per distinct timestamp."""
    settings = settings or ControllerSettings()
    strategy_name, section = KINDS[kind]
    config = getattr(settings, section)
    source = ReplayMetricSource(load_samples(path), label=settings.runtime.resource_label)
    engine = ControlEngine(
        kind,
        config,
        build_strategy(strategy_name, config),
        source,
        RecordingApplier(),
        StaticBaseline(baseline),
        query=kind,
        resource_label=settings.runtime.resource_label,
    )

    actions: List[ControlAction] = []
    times = source.times()
    if not times:
        return actions
    engine.initialize(now=times[0])
    for now in times:
        source.at(now)
        actions.extend(engine.evaluate(now).actions)

    if output:
        actions_to_frame(actions).to_csv(output, index=False)
    return actions


def run_service(settings: ControllerSettings) -> int:
    runtime = ControlRuntime(settings)
    failed = runtime.initialize()
    if failed:
        logging.getLogger(__name__).error("Startup failed for controllers: %s", failed)
        runtime.stop()
        return 1
    runtime.start()
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        runtime.stop()
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Adaptive timeout, retry and concurrency controller for an API gateway."
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    parser.add_argument(
        "--list-strategies",
        action="store_true",
        help="List available decision strategies and exit",
    )
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Run the control loops against live endpoints")
    run.add_argument("--config", help="YAML configuration file")

    rep = sub.add_parser("replay", help="Replay recorded samples through one controller")
    rep.add_argument("data", help="CSV with time, resource and value columns")
    rep.add_argument("--kind", choices=sorted(KINDS), default="timeout", help="Parameter to control")
    rep.add_argument(
        "--baseline",
        action="append",
        default=[],
        metavar="ROUTE=VALUE",
        help="Starting setpoint for a route; repeat per route",
    )
    rep.add_argument("--config", help="YAML configuration file")
    rep.add_argument("--output", help="Optional path to save applied actions as CSV")
    return parser


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_strategies:
        print("Available strategies:")
        for name in available_strategies():
            from .strategies import base

            print(f"- {name}: {base.STRATEGY_REGISTRY[name].description}")
        return 0

    if args.command is None:
        parser.print_help()
        return 2

    settings = load_config(args.config) if args.config else ControllerSettings()

    if args.command == "run":
        return run_service(settings)

    actions = replay(args.data, args.kind, parse_baseline(args.baseline), args.output, settings)
    if not actions:
        print("No adjustments required for provided data.")
        return 0
    for action in actions:
        print(format_action(action))
    return 0


__all__ = ["main", "replay", "run_service", "build_arg_parser", "parse_baseline"]


if __name__ == "__main__":
    sys.exit(main())
