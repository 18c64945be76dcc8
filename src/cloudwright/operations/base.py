from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Callable, Iterable, Optional, TypeVar

from botocore import xform_name

from ..binder import ShapedRequest
from ..checker import Checker
from ..driver import PROVIDER_ERRORS, Driver, DriverCall, describe, provider_error
from ..errors import CloudwrightError
from ..params import Params
from ..types import Setter

T = TypeVar("T")

Prepared = tuple[DriverCall, ShapedRequest]


class Action(ABC):
    """A (verb, resource) pair with a dry-run and a real entry point.

    Both entry points go through :meth:`build`, so a dry run binds every
    parameter exactly as the real call would and only the provider call
    itself is skipped or simulated.
    """

    description = ""
    service = ""

    def __init__(self, driver: Driver):
        self.driver = driver

    @property
    def logger(self) -> logging.Logger:
        return self.driver.logger

    def validate(self, params: Mapping[str, Any]) -> Optional[str]:
        """Check ``params`` and simulate the call; return a fake id if any."""
        return self._guarded(self._validate, params)

    def execute(self, params: Mapping[str, Any]) -> Any:
        """Check ``params`` and perform the real provider call."""
        return self._guarded(self._execute, params)

    def _validate(self, params: Params) -> Optional[str]:
        self.check(params)
        return self.dry_run(params)

    def _execute(self, params: Params) -> Any:
        self.check(params)
        return self.run(params)

    def _guarded(self, fn: Callable[[Params], T], raw: Mapping[str, Any]) -> T:
        try:
            params = raw if isinstance(raw, Params) else Params.from_mapping(raw)
            return fn(params)
        except CloudwrightError as exc:
            raise describe(exc, self.description)
        except PROVIDER_ERRORS as exc:
            raise provider_error(exc, action=self.description) from exc

    def check(self, params: Params) -> None:
        """Validate presence and shape of parameters. No remote calls."""

    def dry_run(self, params: Params) -> Optional[str]:
        call, request = self.build(params)
        call.bind(request)
        self.logger.debug("params dry run: %s ok", call.description)
        return None

    @abstractmethod
    def build(self, params: Params) -> Prepared:
        """Return the call and request :meth:`run` issues, without calling."""

    @abstractmethod
    def run(self, params: Params) -> Any:
        """Perform the provider call."""

    # Helpers --------------------------------------------------------------
    def prepare(
        self,
        operation: str,
        setters: Iterable[Setter],
        *,
        service: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Prepared:
        service = service or self.service
        method = xform_name(operation)
        client = self.driver.client(service)
        call = DriverCall(
            fn=getattr(client, method),
            setters=list(setters),
            description=description or self.description,
            name=f"{service}.{method}",
            logger=self.driver.logger,
        )
        return call, self.driver.request(service, operation)

    def simulate(self, params: Params, entity: str) -> str:
        call, request = self.build(params)
        fake_id, _ = call.simulate(request, entity, not_found=self.driver.dry_run_not_found)
        return fake_id

    def checker(self, description: str, fetch: Callable[[], str], expect: str, timeout: int) -> Checker:
        return Checker(
            description,
            fetch,
            expect,
            timeout,
            self.driver.poll_frequency,
            log=self.driver.logger,
        )
