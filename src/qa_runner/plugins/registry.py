import importlib
import logging
from typing import Any, Dict, List, Optional, Set, Type

from ..core.base import Plugin
from ..core.exceptions import InitError
from ..locator import FilterChain
from .custom_locator import CustomLocatorPlugin
from .loader import LoaderPlugin
from .screenshot_on_fail import ScreenshotOnFailPlugin

logger = logging.getLogger(__name__)

BUILTIN_PLUGINS: Dict[str, Type[Plugin]] = {
    CustomLocatorPlugin.name: CustomLocatorPlugin,
    LoaderPlugin.name: LoaderPlugin,
    ScreenshotOnFailPlugin.name: ScreenshotOnFailPlugin,
}

# Keys that steer activation and are never handed to the plugin
_CONTROL_KEYS = ('enabled', 'require')


def select_enabled(plugins_config: Optional[Dict[str, Any]], selector: Optional[str]) -> Set[str]:
    """
    Decide which declared plugins run in this invocation

    Args:
        plugins_config: The ``plugins`` config section
        selector: None, ``"all"`` or a comma-separated allow-list

    Returns:
        Names of enabled plugins. Without a selector nothing is enabled,
        whatever the config says, so a run never depends on local defaults.
    """
    declared = list((plugins_config or {}).keys())
    if not selector:
        return set()

    selector = selector.strip()
    if selector.lower() == 'all':
        return set(declared)

    wanted = {name.strip() for name in selector.split(',') if name.strip()}
    unknown = wanted.difference(declared)
    if unknown:
        logger.warning(f"Selected plugins not declared in config: {', '.join(sorted(unknown))}")
    return wanted.intersection(declared)


def _load_plugin_class(name: str, options: Dict[str, Any]) -> Type[Plugin]:
    require = options.get('require')
    if not require:
        if name not in BUILTIN_PLUGINS:
            raise InitError(f"Unknown plugin '{name}' (set 'require: module:Class' for custom plugins)")
        return BUILTIN_PLUGINS[name]

    module_name, _, attr = require.partition(':')
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr or 'Plugin')
    except (ImportError, AttributeError) as e:
        raise InitError(f"Cannot load plugin '{name}' from '{require}': {e}") from e


class PluginRegistry:
    """Holds the plugins activated for one invocation, in activation order"""

    def __init__(self):
        self.plugins: List[Plugin] = []

    @property
    def names(self) -> List[str]:
        return [plugin.name for plugin in self.plugins]

    def get(self, name: str) -> Optional[Plugin]:
        for plugin in self.plugins:
            if plugin.name == name:
                return plugin
        return None

    def activate(
            self,
            plugins_config: Optional[Dict[str, Any]],
            selector: Optional[str],
            filter_chain: FilterChain
    ) -> List[str]:
        """Instantiate enabled plugins and install their locator filters"""
        plugins_config = plugins_config or {}
        if not isinstance(plugins_config, dict):
            raise InitError("The 'plugins' config section must be a mapping")
        enabled = select_enabled(plugins_config, selector)

        # Declaration order is activation order
        for name, options in plugins_config.items():
            if name not in enabled:
                continue
            options = dict(options or {})
            plugin_class = _load_plugin_class(name, options)
            user_options = {k: v for k, v in options.items() if k not in _CONTROL_KEYS}

            plugin = plugin_class(user_options)
            plugin.name = name
            self.plugins.append(plugin)

            locator_filter = plugin.locator_filter()
            if locator_filter is not None:
                filter_chain.add(locator_filter)

            logger.info(f"Activated plugin: {name}")

        return self.names

    async def dispatch(self, hook: str, *args) -> None:
        """Call a hook on every plugin in activation order"""
        for plugin in self.plugins:
            await getattr(plugin, hook)(*args)
