from __future__ import annotations

from enum import Enum
from typing import Optional


class CloudwrightError(Exception):
    """Base error; ``action`` names the action that raised it."""

    def __init__(self, message: str, *, action: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.action = action

    def __str__(self) -> str:
        if self.action:
            return f"{self.action}: {self.message}"
        return self.message


class ParameterError(CloudwrightError):
    """A required parameter is absent or has the wrong shape."""


class BindingErrorKind(str, Enum):
    MISSING_SEGMENT = "missing segment"
    TYPE_MISMATCH = "type mismatch"
    UNSUPPORTED_COERCION = "unsupported coercion"


class BindingError(CloudwrightError):
    def __init__(
        self,
        kind: BindingErrorKind,
        message: str,
        *,
        field_path: Optional[str] = None,
        action: Optional[str] = None,
    ):
        super().__init__(message, action=action)
        self.kind = kind
        self.field_path = field_path

    def __str__(self) -> str:
        where = f" at '{self.field_path}'" if self.field_path else ""
        text = f"binding {self.kind.value}{where}: {self.message}"
        if self.action:
            return f"{self.action}: {text}"
        return text


class ProviderError(CloudwrightError):
    def __init__(self, message: str, *, code: Optional[str] = None, action: Optional[str] = None):
        super().__init__(message, action=action)
        self.code = code


class ConvergenceTimeout(CloudwrightError):
    def __init__(self, message: str, *, last_state: Optional[str] = None, action: Optional[str] = None):
        if last_state is not None:
            message = f"{message} (last state '{last_state}')"
        super().__init__(message, action=action)
        self.last_state = last_state


class LocalIOError(CloudwrightError):
    """A local filesystem pre-check failed before any remote call."""
