import json
from pathlib import Path
from typing import Any, Dict, List

from ..core.base import Plugin
from ..core.config import merge_config


def _json_files(directory: Path) -> List[Path]:
    return sorted(p for p in directory.rglob('*.json') if p.is_file())


def merge_json_files(files: List[Path]) -> Dict[str, Any]:
    """Deep-merge JSON object files, later files winning"""
    merged: Dict[str, Any] = {}
    for path in files:
        with open(path, 'r', encoding='utf-8') as f:
            merged = merge_config(merged, json.load(f))
    return merged


class LoaderPlugin(Plugin):
    """
    Loads locator templates and test data from JSON files.

    Everything under ``locator_dir`` is merged into ``LocatorList`` and
    everything under ``test_data_dir`` into ``DataList``. Both are reloaded
    before every test so a scenario that edits them cannot leak its changes.
    """

    name = "loader"
    description = "Loads LocatorList and DataList JSON files into the data store"
    default_config = {
        'locator_dir': 'locators',
        'test_data_dir': 'data',
    }

    def _directory(self, context, key: str) -> Path:
        directory = Path(self.config[key])
        if not directory.is_absolute():
            directory = context.test_root / directory
        return directory

    def load(self, context) -> None:
        targets = (
            ('locator_dir', context.data.set_locators),
            ('test_data_dir', context.data.set_test_data),
        )
        for key, store in targets:
            directory = self._directory(context, key)
            if not directory.is_dir():
                self.logger.info(f"Data directory does not exist: {directory}")
                continue
            files = _json_files(directory)
            store(merge_json_files(files))
            self.logger.debug(f"Loaded {len(files)} files from {directory}")

    async def before_all(self, context) -> None:
        self.load(context)

    async def before_test(self, context, test) -> None:
        self.load(context)
