"""
QA Runner - BDD test runner for browser automation
"""

__version__ = "0.1.0"
__author__ = "QA Runner Contributors"

from .core import ConfigManager, merge_config, Plugin, RunState
from .executor import (
    Runner,
    RerunRunner,
    RunOptions,
    DataStore,
    TestContext,
    StepDefinitionRegistry,
    given,
    when,
    then,
    step,
)
from .locator import Locator, LocatorKind, FilterChain

__all__ = [
    "ConfigManager",
    "merge_config",
    "Plugin",
    "RunState",
    "Runner",
    "RerunRunner",
    "RunOptions",
    "DataStore",
    "TestContext",
    "StepDefinitionRegistry",
    "Locator",
    "LocatorKind",
    "FilterChain",
    "given",
    "when",
    "then",
    "step",
]
