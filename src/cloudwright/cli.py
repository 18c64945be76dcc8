from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import DEFAULT_CONFIG, CloudwrightConfig, load_config
from .driver import KEYS_DIR_ENV, Driver
from .plan import PlanLoader
from .runner import ActionRunner
from .types import ActionResult, ActionSpec


class Ansi:
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BLUE = "\033[94m"
    ORANGE = "\033[38;5;208m"
    RESET = "\033[0m"


def colorize(text: str, color: Optional[str]) -> str:
    if not color:
        return text
    if not sys.stdout.isatty() or os.environ.get("NO_COLOR"):
        return text
    return f"{color}{text}{Ansi.RESET}"

_last_progress_len = 0


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cloudwright cloud action runner")
    parser.add_argument(
        "plan",
        nargs="?",
        default=None,
        type=Path,
        help="Path to a plan file (default from config or /etc/cloudwright/plan.toml)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Path to cloudwright config file (default: /etc/cloudwright/main.conf)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Validate every action without executing")
    parser.add_argument(
        "--var",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Plan template variable (repeatable)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(levelname)s %(name)s - %(message)s",
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    try:
        cfg = load_config(args.config)
        variables = {**cfg.variables, **_parse_vars(args.var)}
    except ValueError as exc:
        print(colorize(f"Configuration failed: {exc}", Ansi.RED), file=sys.stderr)
        return 1
    _apply_env(cfg)

    plan_path = args.plan or cfg.plan
    try:
        plan = PlanLoader(variables).load(plan_path)
    except (OSError, ValueError) as exc:
        print(colorize(f"Plan validation failed: {exc}", Ansi.RED), file=sys.stderr)
        return 1

    driver = Driver(poll_frequency=cfg.poll_frequency, dry_run_not_found=cfg.dry_run_not_found)
    runner = ActionRunner(plan, driver, dry_run=args.dry_run, progress_callback=print_progress)
    try:
        results = runner.run()
    except Exception as exc:  # noqa: BLE001
        _clear_progress()
        if logging.getLogger().isEnabledFor(logging.DEBUG):
            raise
        print(colorize(f"Execution failed: {exc}", Ansi.RED), file=sys.stderr)
        return 1

    summary = Summary()
    for result in results:
        _clear_progress()
        summary.add(result)
        print(format_result(result))

    _clear_progress()
    print(summary.render())
    return 1 if summary.failures else 0


def format_result(result: ActionResult) -> str:
    status = "changed" if result.changed else "ok"
    color: Optional[str] = Ansi.BLUE
    if result.failed:
        if "unknown action" in result.details.lower():
            status = "unknown"
            color = Ansi.ORANGE
        else:
            status = "failed"
            color = Ansi.RED
    elif result.changed:
        color = Ansi.GREEN
    elif result.details == "skipped":
        status = "skipped"
        color = Ansi.YELLOW
    resource = f"[{result.resource}]" if result.resource else ""
    line = f"{result.action}{resource} {status} - {result.details}"
    return colorize(line, color)


def print_progress(spec: ActionSpec) -> None:
    global _last_progress_len
    line = f"{spec.action} pending..."
    _last_progress_len = len(line)
    print(colorize(line, Ansi.YELLOW), end="\r", flush=True)


def _clear_progress() -> None:
    global _last_progress_len
    if _last_progress_len:
        print(" " * _last_progress_len, end="\r", flush=True)
        _last_progress_len = 0


def _parse_vars(pairs: Sequence[str]) -> dict[str, str]:
    variables: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"--var expects KEY=VALUE, got '{pair}'")
        variables[key.strip()] = value
    return variables


def _apply_env(cfg: CloudwrightConfig) -> None:
    if cfg.aws_profile and "AWS_PROFILE" not in os.environ:
        os.environ["AWS_PROFILE"] = cfg.aws_profile
    if cfg.aws_region:
        if "AWS_REGION" not in os.environ:
            os.environ["AWS_REGION"] = cfg.aws_region
        if "AWS_DEFAULT_REGION" not in os.environ:
            os.environ["AWS_DEFAULT_REGION"] = cfg.aws_region
    if cfg.keys_dir and not os.environ.get(KEYS_DIR_ENV):
        os.environ[KEYS_DIR_ENV] = str(cfg.keys_dir)


class Summary:
    def __init__(self) -> None:
        self.changes = 0
        self.validated = 0
        self.skipped = 0
        self.failures = 0

    def add(self, result: ActionResult) -> None:
        if result.failed:
            self.failures += 1
        elif result.changed:
            self.changes += 1
        elif result.details == "skipped":
            self.skipped += 1
        else:
            self.validated += 1

    def render(self) -> str:
        parts = [
            f"Changes: {self.changes}",
            f"Unchanged: {self.validated}",
            f"Skipped: {self.skipped}",
            f"Failures: {self.failures}",
        ]
        text = " | ".join(parts)
        color = Ansi.GREEN if self.failures == 0 else Ansi.RED
        return colorize(text, color)


if __name__ == "__main__":
    raise SystemExit(main())
