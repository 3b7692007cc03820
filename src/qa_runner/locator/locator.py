from dataclasses import dataclass, replace
import re
from enum import Enum
from typing import Any, Callable, List, Optional
import logging

logger = logging.getLogger(__name__)


class LocatorKind(Enum):
    """How the driver should interpret a locator value"""
    XPATH = "xpath"
    CSS = "css"
    ID = "id"
    TEXT = "text"
    OBJECT = "object"


_XPATH_PREFIXES = ('//', './/', '(//', '../')
_CSS_PREFIXES = ('#', '[')
_CSS_CLASS = re.compile(r'^\.[A-Za-z_-]')


@dataclass(frozen=True)
class Locator:
    """Describes how to find a single element"""
    kind: LocatorKind
    value: Any
    output: Optional[str] = None

    @property
    def display(self) -> str:
        """Human readable form used in step output and failure messages"""
        if self.output is not None:
            return self.output
        return str(self.value)

    def with_query(self, kind: LocatorKind, value: Any, output: Optional[str] = None) -> "Locator":
        """Return a rewritten copy, keeping the display form unless given"""
        return replace(self, kind=kind, value=value, output=output if output is not None else self.output)

    @classmethod
    def from_input(cls, raw: Any) -> "Locator":
        """Build an unresolved locator from a string or a structured descriptor"""
        if isinstance(raw, Locator):
            return raw

        if isinstance(raw, str):
            if raw.startswith(_XPATH_PREFIXES):
                kind = LocatorKind.XPATH
            elif raw.startswith(_CSS_PREFIXES) or _CSS_CLASS.match(raw):
                kind = LocatorKind.CSS
            else:
                kind = LocatorKind.TEXT
            return cls(kind=kind, value=raw, output=raw)

        if isinstance(raw, dict) and len(raw) == 1:
            key, value = next(iter(raw.items()))
            try:
                kind = LocatorKind(key)
            except ValueError:
                kind = None
            if kind is not None and kind is not LocatorKind.OBJECT:
                return cls(kind=kind, value=value, output=str(raw))

        return cls(kind=LocatorKind.OBJECT, value=raw, output=str(raw))


LocatorFilter = Callable[[Any, Locator], Locator]


class FilterChain:
    """
    Ordered locator rewrite functions.

    Each filter receives the raw caller input and the locator produced so
    far, and returns the locator to hand to the next filter. A filter whose
    precondition does not hold returns the locator it was given.
    """

    def __init__(self):
        self.filters: List[LocatorFilter] = []

    def add(self, locator_filter: LocatorFilter) -> None:
        self.filters.append(locator_filter)
        logger.debug(f"Registered locator filter: {getattr(locator_filter, '__qualname__', locator_filter)}")

    def clear(self) -> None:
        self.filters.clear()

    def __len__(self) -> int:
        return len(self.filters)

    def resolve(self, raw: Any) -> Locator:
        locator = Locator.from_input(raw)
        for locator_filter in self.filters:
            result = locator_filter(raw, locator)
            if result is not None:
                locator = result
        return locator


def xpath_literal(value: str) -> str:
    """Quote a string for use inside an XPath expression"""
    if '"' not in value:
        return f'"{value}"'
    if "'" not in value:
        return f"'{value}'"

    parts = []
    for i, chunk in enumerate(value.split('"')):
        if i > 0:
            parts.append("'\"'")
        if chunk:
            parts.append(f'"{chunk}"')
    return f"concat({', '.join(parts)})"
