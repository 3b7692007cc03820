from abc import ABC
from typing import Any, Callable, Dict, Optional
from dataclasses import dataclass
from enum import Enum
import logging


class RunState(Enum):
    """Lifecycle state of a single runner invocation"""
    CREATED = "created"
    INITIALIZED = "initialized"
    BOOTSTRAPPED = "bootstrapped"
    TESTS_LOADED = "tests_loaded"
    INTROSPECTED = "introspected"
    EXECUTED = "executed"
    TORN_DOWN = "torn_down"


@dataclass
class PluginInfo:
    """Information about a runner plugin"""
    name: str
    description: str
    rewrites_locators: bool = False


class Plugin(ABC):
    """
    Base class for all runner plugins.

    A plugin is instantiated once per invocation with its defaults merged
    with the user options from the ``plugins`` config section. Hooks are
    coroutines and do nothing unless overridden.
    """

    name: str = ""
    description: str = ""
    default_config: Dict[str, Any] = {}

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = {**self.default_config, **(config or {})}
        self.logger = logging.getLogger(self.__class__.__name__)

    def locator_filter(self) -> Optional[Callable]:
        """Return a locator rewrite function, or None"""
        return None

    async def before_all(self, context) -> None:
        pass

    async def before_test(self, context, test) -> None:
        pass

    async def after_test(self, context, test, result) -> None:
        pass

    async def after_all(self, context) -> None:
        pass

    def get_info(self) -> PluginInfo:
        return PluginInfo(
            name=self.name,
            description=self.description,
            rewrites_locators=self.locator_filter() is not None,
        )
