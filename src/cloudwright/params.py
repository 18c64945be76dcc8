from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any, Iterable, Optional

from .errors import ParameterError
from .types import ParamValue, ValueTag


class Params(Mapping[str, ParamValue]):
    """Read-only parameter mapping with the shape checks actions need."""

    def __init__(self, values: Optional[Mapping[str, ParamValue]] = None):
        self._values: dict[str, ParamValue] = dict(values or {})

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Any]]) -> "Params":
        values: dict[str, ParamValue] = {}
        for name, value in (raw or {}).items():
            try:
                values[str(name)] = ParamValue.of(value)
            except ParameterError as exc:
                raise ParameterError(f"param '{name}': {exc.message}") from None
        return cls(values)

    def __getitem__(self, name: str) -> ParamValue:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Params({self.raw()!r})"

    def raw(self) -> dict[str, Any]:
        return {name: value.value for name, value in self._values.items()}

    def require(self, *names: str) -> None:
        for name in names:
            if name not in self._values:
                raise ParameterError(f"missing required params '{name}'")

    def require_any(self, *names: str) -> str:
        """Return the first of ``names`` present; fail when none is."""
        for name in names:
            if name in self._values:
                return name
        raise ParameterError(f"missing one of '{', '.join(names)}' param")

    def text(self, name: str, default: Optional[str] = None) -> Optional[str]:
        value = self._values.get(name)
        if value is None:
            return default
        return str(value)

    def require_str(self, name: str) -> str:
        value = self._values.get(name)
        if value is None:
            raise ParameterError(f"missing required string params '{name}'")
        if value.tag is not ValueTag.STRING:
            raise ParameterError(f"'{name}' param is not a string")
        return value.value

    def require_int(self, name: str) -> int:
        value = self._values.get(name)
        if value is None:
            raise ParameterError(f"missing required params '{name}'")
        if value.tag is not ValueTag.INTEGER:
            raise ParameterError(f"{name} param is not int")
        return value.value

    def require_choice(self, name: str, choices: Iterable[str]) -> str:
        allowed = set(choices)
        value = self._values.get(name)
        if value is None or value.tag is not ValueTag.STRING:
            raise ParameterError(f"missing required params '{name}'")
        if value.value not in allowed:
            raise ParameterError(f"invalid {name} '{value.value}'")
        return value.value
