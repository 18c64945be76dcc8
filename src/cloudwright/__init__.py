"""Cloudwright cloud action toolkit."""

from .driver import Driver, DriverCall
from .checker import Checker
from .operations import ACTION_REGISTRY, lookup
from .runner import ActionRunner
from .plan import PlanLoader

__all__ = ["Driver", "DriverCall", "Checker", "ACTION_REGISTRY", "lookup", "ActionRunner", "PlanLoader"]
