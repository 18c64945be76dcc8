from __future__ import annotations

import functools
import logging
import os
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

import boto3
import botocore.session
from botocore.exceptions import BotoCoreError, ClientError

from .binder import ShapedRequest, bind
from .errors import BindingError, CloudwrightError, LocalIOError, ProviderError
from .fakeid import fake_dry_run_id
from .types import Setter

logger = logging.getLogger(__name__)

DRY_RUN_OPERATION = "DryRunOperation"
NOT_FOUND_SUFFIX = "NotFound"
NOT_FOUND_STATE = "not-found"
KEYS_DIR_ENV = "CLOUDWRIGHT_KEYS_DIR"
NOT_FOUND_POLICIES = {"accept", "reject"}

PROVIDER_ERRORS = (ClientError, BotoCoreError)


class DryRunOutcome(str, Enum):
    SIMULATED = "simulated"
    TARGET_NOT_FOUND = "target-not-found"


def error_code(exc: BaseException) -> Optional[str]:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    if isinstance(exc, ProviderError):
        return exc.code
    return None


def is_dry_run_ok(exc: BaseException) -> bool:
    return error_code(exc) == DRY_RUN_OPERATION


def is_not_found(exc: BaseException) -> bool:
    code = error_code(exc)
    return bool(code) and code.endswith(NOT_FOUND_SUFFIX)


def provider_error(exc: BaseException, *, action: Optional[str] = None, prefix: str = "") -> ProviderError:
    return ProviderError(f"{prefix}{exc}", code=error_code(exc), action=action)


@functools.lru_cache(maxsize=None)
def _service_model(service: str) -> Any:
    return botocore.session.get_session().get_service_model(service)


class Driver:
    """Hands out boto3 clients and request objects for the action catalogue."""

    def __init__(
        self,
        session: Optional[boto3.Session] = None,
        *,
        clients: Optional[dict[str, Any]] = None,
        poll_frequency: float = 5.0,
        dry_run_not_found: str = "accept",
        log: Optional[logging.Logger] = None,
    ):
        if dry_run_not_found not in NOT_FOUND_POLICIES:
            raise ValueError("dry_run_not_found must be 'accept' or 'reject'")
        self._session = session
        self._clients: dict[str, Any] = dict(clients or {})
        self.poll_frequency = float(poll_frequency)
        self.dry_run_not_found = dry_run_not_found
        self.logger = log or logger

    def client(self, service: str) -> Any:
        if service not in self._clients:
            if self._session is None:
                self._session = boto3.Session()
            self._clients[service] = self._session.client(service)
        return self._clients[service]

    def request(self, service: str, operation: str) -> ShapedRequest:
        shape = _service_model(service).operation_model(operation).input_shape
        return ShapedRequest(shape)

    @staticmethod
    def keys_dir() -> Path:
        value = os.environ.get(KEYS_DIR_ENV, "")
        if not value:
            raise LocalIOError(f"saving private key: empty env var '{KEYS_DIR_ENV}'")
        return Path(value)


@dataclass
class DriverCall:
    """Bind setters into a request, call the provider, classify the outcome."""

    fn: Callable[..., Any]
    setters: list[Setter]
    description: str
    name: Optional[str] = None
    logger: logging.Logger = field(default=logger, repr=False)

    @property
    def call_name(self) -> str:
        return self.name or getattr(self.fn, "__name__", "call")

    def bind(self, request: ShapedRequest) -> None:
        for setter in self.setters:
            try:
                bind(setter.value, request, setter.field_path, setter.kind)
            except BindingError as exc:
                exc.action = self.description
                raise

    def execute(self, request: ShapedRequest) -> Any:
        self.bind(request)
        start = time.monotonic()
        try:
            output = self.fn(**request.to_kwargs())
        except PROVIDER_ERRORS as exc:
            raise provider_error(exc, action=self.description) from exc
        self.logger.debug("%s call took %.3fs", self.call_name, time.monotonic() - start)
        return output

    def simulate(
        self,
        request: ShapedRequest,
        entity: str,
        *,
        not_found: str = "accept",
    ) -> tuple[str, DryRunOutcome]:
        self.bind(request)
        try:
            request.set_flag("DryRun", True)
        except BindingError as exc:
            exc.action = self.description
            raise
        try:
            self.fn(**request.to_kwargs())
        except PROVIDER_ERRORS as exc:
            code = error_code(exc)
            if code == DRY_RUN_OPERATION:
                outcome = DryRunOutcome.SIMULATED
            elif is_not_found(exc):
                if not_found != "accept":
                    raise provider_error(exc, action=self.description, prefix="dry run: ") from exc
                outcome = DryRunOutcome.TARGET_NOT_FOUND
                self.logger.warning("dry run: %s target not found (%s)", self.description, code)
            else:
                raise provider_error(exc, action=self.description, prefix="dry run: ") from exc
            self.logger.debug("dry run: %s ok (%s)", self.description, outcome.value)
            return fake_dry_run_id(entity), outcome
        raise ProviderError("dry run: provider did not acknowledge the dry run", action=self.description)


def describe(exc: CloudwrightError, description: str) -> CloudwrightError:
    if exc.action is None:
        exc.action = description
    return exc
