from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .errors import ParameterError


class CoercionKind(str, Enum):
    STRING = "string"
    STRING_LIST = "string-list"
    INT64 = "int64"


class ValueTag(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    STRING_LIST = "string-list"


@dataclass(frozen=True)
class ParamValue:
    """A parameter value tagged with its shape."""

    tag: ValueTag
    value: Any

    @classmethod
    def of(cls, raw: Any) -> "ParamValue":
        if isinstance(raw, ParamValue):
            return raw
        if isinstance(raw, bool):
            raise ParameterError(f"unsupported parameter value {raw!r}")
        if isinstance(raw, str):
            return cls(ValueTag.STRING, raw)
        if isinstance(raw, int):
            return cls(ValueTag.INTEGER, raw)
        if isinstance(raw, float):
            if raw.is_integer():
                return cls(ValueTag.INTEGER, int(raw))
            raise ParameterError(f"non-integral number {raw!r}")
        if isinstance(raw, (list, tuple)):
            items: list[str] = []
            for item in raw:
                if isinstance(item, (list, tuple, dict, set)) or item is None:
                    raise ParameterError(f"list items must be scalars, got {item!r}")
                items.append(str(item))
            return cls(ValueTag.STRING_LIST, tuple(items))
        raise ParameterError(f"unsupported parameter value {raw!r}")

    def __str__(self) -> str:
        if self.tag is ValueTag.STRING_LIST:
            return ",".join(self.value)
        return str(self.value)


@dataclass(frozen=True)
class Setter:
    value: Any
    field_path: str
    kind: CoercionKind


@dataclass
class ActionSpec:
    action: str
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def verb(self) -> str:
        return self.action.split()[0] if self.action.split() else ""

    @property
    def resource_type(self) -> str:
        parts = self.action.split()
        return parts[1] if len(parts) > 1 else ""


@dataclass
class Plan:
    actions: list[ActionSpec]


@dataclass
class ActionResult:
    action: str
    changed: bool
    details: str
    failed: bool = False
    resource: Optional[str] = None
