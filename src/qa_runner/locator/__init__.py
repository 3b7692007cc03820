from .locator import Locator, LocatorKind, FilterChain, xpath_literal

__all__ = [
    'Locator',
    'LocatorKind',
    'FilterChain',
    'xpath_literal',
]
