import copy
import logging
from typing import Any, Dict, List, MutableMapping, MutableSequence

from ..core.exceptions import DataStoreError

logger = logging.getLogger(__name__)

LOCATOR_NAMESPACE = "LocatorList"
DATA_NAMESPACE = "DataList"


class _Unset:
    """Marker for a key path that holds no value"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "UNSET"


UNSET = _Unset()


def _split(path: str) -> List[str]:
    if not isinstance(path, str) or not path:
        raise DataStoreError(f"Key path must be a non-empty string, got {path!r}")
    return path.split('.')


def _child(container: Any, segment: str) -> Any:
    """Return the child under segment, or UNSET when absent or not a container"""
    if isinstance(container, MutableMapping):
        return container.get(segment, UNSET)
    if isinstance(container, MutableSequence) and segment.isdigit():
        index = int(segment)
        return container[index] if index < len(container) else UNSET
    return UNSET


class DataStore:
    """
    Dot-path addressed store for values passed between steps.

    ``LocatorList`` holds test-authored locator templates, ``DataList`` holds
    test-authored literal data, and every other top-level key is free-form
    runtime data captured by steps.
    """

    def __init__(self, initial: Dict[str, Any] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def set(self, path: str, value: Any) -> None:
        segments = _split(path)
        node = self._data

        for depth, segment in enumerate(segments[:-1]):
            child = _child(node, segment)
            if child is UNSET:
                if isinstance(node, MutableSequence):
                    raise DataStoreError(
                        f"Cannot create '{segment}' inside a list at "
                        f"'{'.'.join(segments[:depth])}'"
                    )
                child = {}
                node[segment] = child
            elif not isinstance(child, (MutableMapping, MutableSequence)):
                raise DataStoreError(
                    f"Cannot descend into '{'.'.join(segments[:depth + 1])}': "
                    f"holds {type(child).__name__}, not a container"
                )
            node = child

        last = segments[-1]
        if isinstance(node, MutableSequence):
            if not last.isdigit():
                raise DataStoreError(f"List index expected in '{path}', got '{last}'")
            index = int(last)
            if index < len(node):
                node[index] = copy.deepcopy(value)
            elif index == len(node):
                node.append(copy.deepcopy(value))
            else:
                raise DataStoreError(f"List index out of range in '{path}'")
        else:
            node[last] = copy.deepcopy(value)

        logger.debug(f"Stored value at '{path}'")

    def get(self, path: str, default: Any = UNSET) -> Any:
        node: Any = self._data
        for segment in _split(path):
            node = _child(node, segment)
            if node is UNSET:
                return default
        return node

    def has(self, path: str) -> bool:
        return self.get(path) is not UNSET

    def delete(self, path: str) -> None:
        segments = _split(path)
        parent = self.get('.'.join(segments[:-1])) if len(segments) > 1 else self._data
        if isinstance(parent, MutableMapping):
            parent.pop(segments[-1], None)

    def set_locators(self, value: Dict[str, Any]) -> None:
        self.set(LOCATOR_NAMESPACE, value)

    def set_test_data(self, value: Dict[str, Any]) -> None:
        self.set(DATA_NAMESPACE, value)

    def get_locator(self, path: str) -> Any:
        return self.get(f"{LOCATOR_NAMESPACE}.{path}")

    def get_data(self, path: str) -> Any:
        return self.get(f"{DATA_NAMESPACE}.{path}")

    def identify_locator(self, value: Any) -> Any:
        """Resolve a LocatorList entry, falling back to the value itself"""
        if not isinstance(value, str) or not value:
            return value
        found = self.get_locator(value)
        return value if found is UNSET else found

    def identify_data(self, value: Any) -> Any:
        """Resolve a free-form field, then a DataList entry, else the value itself"""
        if not isinstance(value, str) or not value:
            return value
        found = self.get(value)
        if found is UNSET:
            found = self.get_data(value)
        return value if found is UNSET else found

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def __contains__(self, path: str) -> bool:
        return self.has(path)
