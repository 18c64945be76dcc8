"""Bind loosely typed parameter values into nested request payloads.

A request is a tree of structures addressed by dotted field paths such as
``ChangeBatch.Comment``. :func:`bind` coerces a value according to a
:class:`~cloudwright.types.CoercionKind` and writes it at the addressed
leaf, allocating unset intermediate structures on the way down.

Two request flavours implement the node capability used by the binder:

* :class:`Request` is schemaless and accepts any member name.
* :class:`ShapedRequest` validates member names and leaf types against a
  botocore ``StructureShape`` so a mistyped field path in an action
  declaration fails before the provider is called.
"""

from __future__ import annotations

import re
from typing import Any, Optional, Union

from .errors import BindingError, BindingErrorKind, ParameterError
from .types import CoercionKind, ParamValue, ValueTag

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
DECIMAL_INTEGER = re.compile(r"[+-]?[0-9]+")

_MISSING = object()


class Request:
    """Dict-backed request node."""

    def __init__(self, payload: Optional[dict[str, Any]] = None):
        self.payload: dict[str, Any] = payload if payload is not None else {}

    def child(self, name: str) -> "Request":
        """Return the structure member ``name``, allocating it when unset."""
        member_shape = self._structure_member(name)
        current = self.payload.get(name)
        if current is None:
            current = {}
            self.payload[name] = current
        elif not isinstance(current, dict):
            raise BindingError(BindingErrorKind.MISSING_SEGMENT, f"'{name}' is not a structure")
        return self._wrap(current, member_shape)

    def new_item(self, name: str) -> "Request":
        """Append an empty structure to the list member ``name`` and return it."""
        item_shape = self._list_item_member(name)
        items = self.payload.get(name)
        if items is None:
            items = []
            self.payload[name] = items
        elif not isinstance(items, list):
            raise BindingError(BindingErrorKind.MISSING_SEGMENT, f"'{name}' is not a list")
        item: dict[str, Any] = {}
        items.append(item)
        return self._wrap(item, item_shape)

    def set_leaf(self, name: str, value: Any, kind: CoercionKind) -> None:
        self._check_leaf(name, kind)
        self.payload[name] = list(value) if isinstance(value, (list, tuple)) else value

    def set_flag(self, name: str, value: bool) -> None:
        self._check_flag(name)
        self.payload[name] = bool(value)

    def attach(self, name: str, value: Any) -> None:
        """Set a member no coercion kind covers, such as a blob or a stream."""
        self._check_member(name)
        self.payload[name] = value

    def get(self, name: str, default: Any = None) -> Any:
        return self.payload.get(name, default)

    def to_kwargs(self) -> dict[str, Any]:
        return _copy_tree(self.payload)

    # Hooks for shaped requests -------------------------------------------
    def _check_member(self, name: str) -> None:
        return None

    def _structure_member(self, name: str) -> Any:
        return None

    def _list_item_member(self, name: str) -> Any:
        return None

    def _check_leaf(self, name: str, kind: CoercionKind) -> None:
        return None

    def _check_flag(self, name: str) -> None:
        return None

    def _wrap(self, payload: dict[str, Any], shape: Any) -> "Request":
        return Request(payload)


class ShapedRequest(Request):
    """Request node validated against a botocore structure shape."""

    def __init__(self, shape: Any, payload: Optional[dict[str, Any]] = None):
        if getattr(shape, "type_name", None) != "structure":
            raise ValueError(f"ShapedRequest needs a structure shape, got {shape!r}")
        super().__init__(payload)
        self.shape = shape

    @property
    def shape_name(self) -> str:
        return str(getattr(self.shape, "name", "request"))

    def _member(self, name: str) -> Any:
        member = self.shape.members.get(name)
        if member is None:
            raise BindingError(
                BindingErrorKind.MISSING_SEGMENT,
                f"'{name}' is not a member of {self.shape_name}",
            )
        return member

    def _check_member(self, name: str) -> None:
        self._member(name)

    def _structure_member(self, name: str) -> Any:
        member = self._member(name)
        if member.type_name != "structure":
            raise BindingError(
                BindingErrorKind.MISSING_SEGMENT,
                f"'{name}' of {self.shape_name} is a {member.type_name}, not a structure",
            )
        return member

    def _list_item_member(self, name: str) -> Any:
        member = self._member(name)
        if member.type_name != "list" or member.member.type_name != "structure":
            raise BindingError(
                BindingErrorKind.MISSING_SEGMENT,
                f"'{name}' of {self.shape_name} is not a list of structures",
            )
        return member.member

    def _check_leaf(self, name: str, kind: CoercionKind) -> None:
        member = self._member(name)
        type_name = member.type_name
        if kind is CoercionKind.STRING:
            ok = type_name == "string"
        elif kind is CoercionKind.STRING_LIST:
            ok = type_name == "list" and member.member.type_name == "string"
        elif kind is CoercionKind.INT64:
            ok = type_name in {"long", "integer"}
        else:
            raise BindingError(BindingErrorKind.UNSUPPORTED_COERCION, f"unsupported coercion {kind!r}")
        if not ok:
            raise BindingError(
                BindingErrorKind.TYPE_MISMATCH,
                f"'{name}' of {self.shape_name} is a {type_name}, cannot hold {kind.value}",
            )

    def _check_flag(self, name: str) -> None:
        member = self._member(name)
        if member.type_name != "boolean":
            raise BindingError(
                BindingErrorKind.TYPE_MISMATCH,
                f"'{name}' of {self.shape_name} is a {member.type_name}, not a boolean",
            )

    def _wrap(self, payload: dict[str, Any], shape: Any) -> "Request":
        return ShapedRequest(shape, payload)


def _copy_tree(value: Any) -> Any:
    # Containers are copied; leaves such as open file handles are shared.
    if isinstance(value, dict):
        return {key: _copy_tree(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_copy_tree(item) for item in value]
    return value


def split_path(field_path: str) -> list[str]:
    segments = str(field_path).split(".")
    if not field_path or any(not segment for segment in segments):
        raise BindingError(
            BindingErrorKind.MISSING_SEGMENT,
            "empty field path segment",
            field_path=str(field_path),
        )
    return segments


def coercion_kind(kind: Union[CoercionKind, str]) -> CoercionKind:
    if isinstance(kind, CoercionKind):
        return kind
    try:
        return CoercionKind(kind)
    except ValueError:
        raise BindingError(BindingErrorKind.UNSUPPORTED_COERCION, f"unsupported coercion {kind!r}") from None


def coerce(value: Any, kind: Union[CoercionKind, str]) -> Any:
    """Convert ``value`` into the concrete form ``kind`` declares."""
    kind = coercion_kind(kind)
    try:
        tagged = ParamValue.of(value)
    except ParameterError as exc:
        raise BindingError(BindingErrorKind.TYPE_MISMATCH, exc.message) from None

    if kind is CoercionKind.STRING:
        if tagged.tag is ValueTag.STRING_LIST:
            raise BindingError(BindingErrorKind.TYPE_MISMATCH, f"expected a scalar, got list {list(tagged.value)!r}")
        return str(tagged.value)

    if kind is CoercionKind.STRING_LIST:
        if tagged.tag is ValueTag.STRING_LIST:
            return list(tagged.value)
        return [str(tagged.value)]

    if kind is CoercionKind.INT64:
        if tagged.tag is ValueTag.INTEGER:
            number = tagged.value
        elif tagged.tag is ValueTag.STRING:
            text = tagged.value.strip()
            if not DECIMAL_INTEGER.fullmatch(text):
                raise BindingError(BindingErrorKind.TYPE_MISMATCH, f"expected an integer, got {tagged.value!r}")
            number = int(text, 10)
        else:
            raise BindingError(BindingErrorKind.TYPE_MISMATCH, f"expected an integer, got list {list(tagged.value)!r}")
        if not INT64_MIN <= number <= INT64_MAX:
            raise BindingError(BindingErrorKind.TYPE_MISMATCH, f"{number} overflows a 64-bit integer")
        return number

    raise BindingError(BindingErrorKind.UNSUPPORTED_COERCION, f"unsupported coercion {kind!r}")


def bind(value: Any, target: Request, field_path: str, kind: Union[CoercionKind, str]) -> None:
    """Write ``value`` coerced to ``kind`` at ``field_path`` inside ``target``."""
    try:
        segments = split_path(field_path)
        kind = coercion_kind(kind)
        coerced = coerce(value, kind)
        node = target
        for segment in segments[:-1]:
            node = node.child(segment)
        node.set_leaf(segments[-1], coerced, kind)
    except BindingError as exc:
        if exc.field_path is None:
            exc.field_path = field_path
        raise


def lookup(target: Request, field_path: str, default: Any = None) -> Any:
    """Read the value at ``field_path`` without allocating anything."""
    current: Any = target.payload
    for segment in split_path(field_path):
        if not isinstance(current, dict):
            return default
        current = current.get(segment, _MISSING)
        if current is _MISSING:
            return default
    return current
