import glob
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from behave.parser import parse_file, ParserError

from ..core.exceptions import InitError

logger = logging.getLogger(__name__)


@dataclass
class TestCase:
    """A single scenario (or expanded outline example) ready to run"""
    __test__ = False

    title: str
    file: str
    line: int
    tags: List[str] = field(default_factory=list)
    steps: List[Any] = field(default_factory=list)
    background_steps: List[Any] = field(default_factory=list)

    @property
    def all_steps(self) -> List[Any]:
        return list(self.background_steps) + list(self.steps)

    def key(self) -> Dict[str, str]:
        return {'file': self.file, 'title': self.title}


@dataclass
class TestSuite:
    """All scenarios of one feature file"""
    __test__ = False

    title: str
    file: str
    tags: List[str] = field(default_factory=list)
    description: str = ""
    tests: List[TestCase] = field(default_factory=list)


def discover_feature_files(root: Path, pattern: Optional[str]) -> List[Path]:
    """
    Find feature files under root

    Args:
        root: Test root directory
        pattern: A glob, a .feature file or a directory, relative to root

    Returns:
        Sorted, de-duplicated feature file paths
    """
    if not pattern:
        return []

    target = Path(pattern)
    if not target.is_absolute():
        target = root / target

    if target.is_file():
        return [target]
    if target.is_dir():
        return sorted(target.glob('**/*.feature'))

    files = [Path(p) for p in glob.glob(str(target), recursive=True)]
    return sorted({f for f in files if f.is_file() and f.suffix == '.feature'})


def parse_suite(feature_file: Path) -> Optional[TestSuite]:
    """Parse one feature file into a suite; empty files yield None"""
    try:
        feature = parse_file(str(feature_file))
    except ParserError as e:
        raise InitError(f"Cannot parse {feature_file}: {e}", phase="discovery") from e

    if feature is None:
        return None

    background_steps = list(feature.background.steps) if feature.background else []
    feature_tags = [str(tag) for tag in feature.tags]

    suite = TestSuite(
        title=feature.name,
        file=str(feature_file),
        tags=feature_tags,
        description=' '.join(feature.description or []),
    )

    for scenario in feature.walk_scenarios():
        suite.tests.append(TestCase(
            title=scenario.name,
            file=str(feature_file),
            line=scenario.line,
            tags=feature_tags + [str(tag) for tag in scenario.tags],
            steps=list(scenario.steps),
            background_steps=background_steps,
        ))

    return suite


def load_suites(files: Iterable[Path], grep: Optional[str] = None) -> List[TestSuite]:
    """Parse feature files in order, keeping suites whose title contains grep"""
    needle = grep.lower() if grep else None
    suites = []

    for feature_file in files:
        suite = parse_suite(feature_file)
        if suite is None:
            logger.debug(f"Skipping empty feature file: {feature_file}")
            continue
        if needle and needle not in suite.title.lower():
            continue
        suites.append(suite)

    logger.info(f"Loaded {len(suites)} suites, {sum(len(s.tests) for s in suites)} tests")
    return suites


def select_recorded(suites: List[TestSuite], records: List[Dict[str, str]]) -> List[TestSuite]:
    """Narrow suites to recorded tests, in record order"""
    index = {}
    for suite in suites:
        for test in suite.tests:
            index.setdefault((str(Path(test.file).resolve()), test.title), (suite, test))

    selected: List[TestSuite] = []
    seen = set()
    for record in records:
        key = (str(Path(record.get('file', '')).resolve()), record.get('title', ''))
        if key not in index or key in seen:
            continue
        seen.add(key)
        suite, test = index[key]

        if selected and selected[-1].file == suite.file:
            selected[-1].tests.append(test)
        else:
            selected.append(TestSuite(
                title=suite.title,
                file=suite.file,
                tags=suite.tags,
                description=suite.description,
                tests=[test],
            ))

    return selected
