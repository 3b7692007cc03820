from .registry import PluginRegistry, BUILTIN_PLUGINS, select_enabled
from .custom_locator import CustomLocatorPlugin
from .loader import LoaderPlugin
from .screenshot_on_fail import ScreenshotOnFailPlugin

__all__ = [
    'PluginRegistry',
    'BUILTIN_PLUGINS',
    'select_enabled',
    'CustomLocatorPlugin',
    'LoaderPlugin',
    'ScreenshotOnFailPlugin',
]
