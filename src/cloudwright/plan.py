from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import jinja2

try:
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore[no-redef]

from .types import ActionSpec, Plan


class PlanLoader:
    """Loads action plans from jinja2-templated TOML files.

    A plan lists actions in order::

        [[actions]]
        action = "create tag"
        params = { resource = "{{ instance }}", key = "Env", value = "prod" }
    """

    def __init__(self, variables: Optional[dict[str, Any]] = None):
        self.variables = dict(variables or {})

    def load(self, path: Path) -> Plan:
        path = Path(path)
        return self.load_text(path.read_text(), source=str(path))

    def load_text(self, text: str, *, source: str = "<plan>") -> Plan:
        rendered = self._render(text, source)
        try:
            data = tomllib.loads(rendered)
        except tomllib.TOMLDecodeError as exc:
            raise ValueError(f"{source}: {exc}") from None
        raw_actions = data.get("actions", [])
        if not isinstance(raw_actions, list):
            raise ValueError(f"{source}: 'actions' must be an array of tables")
        actions = [self._parse_action(raw, index, source) for index, raw in enumerate(raw_actions, start=1)]
        return Plan(actions=actions)

    def _render(self, text: str, source: str) -> str:
        env = jinja2.Environment(undefined=jinja2.StrictUndefined, autoescape=False, keep_trailing_newline=True)
        try:
            return env.from_string(text).render(**self.variables)
        except jinja2.TemplateError as exc:
            raise ValueError(f"{source}: template error: {exc}") from None

    @staticmethod
    def _parse_action(raw: Any, index: int, source: str) -> ActionSpec:
        if not isinstance(raw, dict):
            raise ValueError(f"{source}: action {index} must be a table")
        name = raw.get("action")
        if not name or not isinstance(name, str) or len(name.split()) != 2:
            raise ValueError(f"{source}: action {index} needs an 'action' of the form '<verb> <resource>'")
        params = raw.get("params", {})
        if not isinstance(params, dict):
            raise ValueError(f"{source}: action {index} params must be a table")
        return ActionSpec(action=" ".join(name.split()), params=dict(params))
