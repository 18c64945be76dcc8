from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from .driver import NOT_FOUND_STATE, is_not_found, provider_error
from .errors import CloudwrightError, ConvergenceTimeout

logger = logging.getLogger(__name__)


class Checker:
    """Poll ``fetch`` at a constant frequency until it reports ``expect``.

    ``fetch`` returns the current state as a string. An exception it raises
    that ``is_absent`` recognises counts as the state ``not-found``; any
    other exception ends the check. When the next poll would land at or
    after the timeout the check fails without fetching again.
    """

    def __init__(
        self,
        description: str,
        fetch: Callable[[], str],
        expect: str,
        timeout: float,
        frequency: float = 5.0,
        *,
        log: Optional[logging.Logger] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        is_absent: Callable[[BaseException], bool] = is_not_found,
    ):
        if frequency <= 0:
            raise ValueError("check frequency must be positive")
        self.description = description
        self.fetch = fetch
        self.expect = expect
        self.timeout = float(timeout)
        self.frequency = float(frequency)
        self.logger = log or logger
        self.clock = clock
        self.sleep = sleep
        self.is_absent = is_absent

    def check(self) -> int:
        """Block until the expected state is seen; return the fetch count."""
        deadline = self.clock() + self.timeout
        attempts = 0
        last_state: Optional[str] = None
        while True:
            next_poll = self.clock() + self.frequency
            if next_poll >= deadline:
                self._sleep_until(deadline)
                raise ConvergenceTimeout(
                    f"timeout of {self.timeout:g}s expired",
                    last_state=last_state,
                    action=f"check {self.description}",
                )
            self._sleep_until(next_poll)
            attempts += 1
            got = self._fetch()
            last_state = got
            if got == self.expect:
                self.logger.info(
                    "check %s status '%s' done after %d attempt(s)", self.description, self.expect, attempts
                )
                return attempts
            self.logger.info(
                "%s status '%s', expect '%s', retry in %gs (timeout %gs).",
                self.description,
                got,
                self.expect,
                self.frequency,
                self.timeout,
            )

    def _fetch(self) -> str:
        try:
            return self.fetch()
        except Exception as exc:  # noqa: BLE001
            if self.is_absent(exc):
                return NOT_FOUND_STATE
            if isinstance(exc, CloudwrightError):
                raise
            raise provider_error(exc, action=f"check {self.description}") from exc

    def _sleep_until(self, when: float) -> None:
        remaining = when - self.clock()
        if remaining > 0:
            self.sleep(remaining)
