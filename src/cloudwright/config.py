from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore[no-redef]


DEFAULT_CONFIG = Path("/etc/cloudwright/main.conf")
DEFAULT_PLAN = Path("/etc/cloudwright/plan.toml")
DEFAULT_POLL_FREQUENCY = 5.0


@dataclass
class CloudwrightConfig:
    plan: Path = DEFAULT_PLAN
    aws_region: Optional[str] = None
    aws_profile: Optional[str] = None
    keys_dir: Optional[Path] = None
    poll_frequency: float = DEFAULT_POLL_FREQUENCY
    dry_run_not_found: str = "accept"
    variables: dict[str, Any] = field(default_factory=dict)


def load_config(path: Path) -> CloudwrightConfig:
    if not path.exists():
        return CloudwrightConfig()
    data = tomllib.loads(path.read_text())
    defaults = data.get("defaults", {})
    plan = defaults.get("plan", DEFAULT_PLAN)
    aws_region = defaults.get("aws_region")
    aws_profile = defaults.get("aws_profile")
    keys_dir = defaults.get("keys_dir")
    poll_frequency = float(defaults.get("poll_frequency", DEFAULT_POLL_FREQUENCY))
    if poll_frequency <= 0:
        raise ValueError(f"{path}: poll_frequency must be positive")
    dry_run_not_found = str(defaults.get("dry_run_not_found", "accept"))
    if dry_run_not_found not in {"accept", "reject"}:
        raise ValueError(f"{path}: dry_run_not_found must be 'accept' or 'reject'")
    variables = data.get("variables", {})
    if not isinstance(variables, dict):
        raise ValueError(f"{path}: [variables] must be a table")
    return CloudwrightConfig(
        plan=Path(plan),
        aws_region=str(aws_region) if aws_region else None,
        aws_profile=str(aws_profile) if aws_profile else None,
        keys_dir=Path(keys_dir).expanduser() if keys_dir else None,
        poll_frequency=poll_frequency,
        dry_run_not_found=dry_run_not_found,
        variables=dict(variables),
    )
