from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from .driver import Driver
from .operations import ACTION_REGISTRY
from .types import ActionResult, ActionSpec, Plan

logger = logging.getLogger(__name__)

READ_ONLY_VERBS = {"check"}


class ActionRunner:
    """Dry-runs every action of a plan, then executes them in order.

    Execution only starts when every action validated. The first failed
    execution stops the run; the remaining actions are reported as skipped.
    """

    def __init__(
        self,
        plan: Plan,
        driver: Driver,
        *,
        dry_run: bool = False,
        progress_callback: Optional[Callable[[ActionSpec], None]] = None,
    ):
        self.plan = plan
        self.driver = driver
        self.dry_run = dry_run
        self.progress_callback = progress_callback

    def run(self) -> list[ActionResult]:
        validations = [self._validate(spec) for spec in self.plan.actions]
        if self.dry_run or any(result.failed for result in validations):
            return validations

        results: list[ActionResult] = []
        stopped = False
        for spec in self.plan.actions:
            if stopped:
                results.append(
                    ActionResult(
                        action=spec.action,
                        changed=False,
                        details="skipped",
                        resource=self._resource_name(spec.params),
                    )
                )
                continue
            result = self._execute(spec)
            stopped = result.failed
            results.append(result)
        return results

    def _validate(self, spec: ActionSpec) -> ActionResult:
        action_cls = ACTION_REGISTRY.get((spec.verb, spec.resource_type))
        if not action_cls:
            return self._unknown(spec)
        self._progress(spec)
        try:
            fake_id = action_cls(self.driver).validate(spec.params)
        except Exception as exc:  # noqa: BLE001
            logger.error("action=%s dry run failed: %s", spec.action, exc)
            logger.debug("dry run traceback", exc_info=True)
            return self._failed(spec, exc)
        logger.debug("action=%s dry run ok id=%s", spec.action, fake_id)
        return ActionResult(
            action=spec.action,
            changed=False,
            details="dry run ok",
            resource=fake_id or self._resource_name(spec.params),
        )

    def _execute(self, spec: ActionSpec) -> ActionResult:
        action_cls = ACTION_REGISTRY.get((spec.verb, spec.resource_type))
        if not action_cls:
            return self._unknown(spec)
        self._progress(spec)
        try:
            output = action_cls(self.driver).execute(spec.params)
        except Exception as exc:  # noqa: BLE001
            logger.error("action=%s failed: %s", spec.action, exc)
            logger.debug("execution traceback", exc_info=True)
            return self._failed(spec, exc)
        read_only = spec.verb in READ_ONLY_VERBS
        resource = output if isinstance(output, str) else self._resource_name(spec.params)
        logger.debug("action=%s done changed=%s", spec.action, not read_only)
        return ActionResult(
            action=spec.action,
            changed=not read_only,
            details="converged" if read_only else "done",
            resource=resource,
        )

    def _unknown(self, spec: ActionSpec) -> ActionResult:
        detail = f"unknown action '{spec.action}'"
        logger.warning(detail)
        return ActionResult(
            action=spec.action,
            changed=False,
            details=detail,
            failed=True,
            resource=self._resource_name(spec.params),
        )

    def _failed(self, spec: ActionSpec, exc: Exception) -> ActionResult:
        return ActionResult(
            action=spec.action,
            changed=False,
            details=str(exc),
            failed=True,
            resource=self._resource_name(spec.params),
        )

    def _progress(self, spec: ActionSpec) -> None:
        if self.progress_callback:
            self.progress_callback(spec)

    @staticmethod
    def _resource_name(params: dict[str, Any]) -> Optional[str]:
        for key in ("id", "name", "resource", "user", "group", "bucket", "instance"):
            value = params.get(key)
            if value:
                return str(value)
        return None
