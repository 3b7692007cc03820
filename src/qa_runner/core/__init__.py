from .base import (
    RunState,
    PluginInfo,
    Plugin,
)
from .config import (
    ConfigManager,
    merge_config,
    resolve_option,
    get_test_root,
)
from .exceptions import (
    QARunnerError,
    ConfigurationError,
    ConfigParseError,
    InitError,
    BootstrapError,
    TestFailure,
    TeardownError,
    DataStoreError,
    LifecycleError,
)

__all__ = [
    # Base classes
    "RunState",
    "PluginInfo",
    "Plugin",

    # Configuration
    "ConfigManager",
    "merge_config",
    "resolve_option",
    "get_test_root",

    # Exceptions
    "QARunnerError",
    "ConfigurationError",
    "ConfigParseError",
    "InitError",
    "BootstrapError",
    "TestFailure",
    "TeardownError",
    "DataStoreError",
    "LifecycleError",
]
