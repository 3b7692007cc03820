import re
import inspect
import importlib.util
from pathlib import Path
from typing import Dict, List, Callable, Pattern, Optional, Any, Iterable
from dataclasses import dataclass
import logging

from ..core.exceptions import InitError

logger = logging.getLogger(__name__)

STEP_KEYWORDS = ['given', 'when', 'then']


@dataclass
class StepDefinition:
    """Represents a step definition with its pattern and function"""
    keyword: str  # given, when, then
    pattern: Pattern
    function: Callable
    description: str = ""

    @property
    def location(self) -> str:
        """Source location of the handler, file:line"""
        try:
            source = inspect.getsourcefile(self.function)
            _, line = inspect.getsourcelines(self.function)
        except (OSError, TypeError):
            return ""
        return f"{source}:{line}"

    async def execute(self, context: Any, step_text: str) -> Any:
        """Execute the step function with extracted parameters"""
        match = self.pattern.search(step_text)
        if not match:
            raise ValueError(f"Step text doesn't match pattern: {step_text}")

        params = match.groups()

        # Execute function (handle both sync and async)
        outcome = self.function(context, *params)
        if inspect.isawaitable(outcome):
            return await outcome
        return outcome


class StepDefinitionRegistry:
    """
    Registry for step definitions.

    Lookup walks definitions in registration order and returns the first
    match, so an earlier pattern wins over a later overlapping one.
    """

    def __init__(self):
        self.definitions: List[StepDefinition] = []
        self._keyword_aliases = {
            'and': STEP_KEYWORDS,
            'but': STEP_KEYWORDS,
            '*': STEP_KEYWORDS,
        }

    def add_definition(self, keyword: str, pattern: str, function: Callable, description: str = ""):
        """Add a step definition to registry"""
        if isinstance(pattern, str):
            pattern = re.compile(pattern, re.IGNORECASE)

        definition = StepDefinition(
            keyword=keyword.lower(),
            pattern=pattern,
            function=function,
            description=description
        )

        self.definitions.append(definition)
        logger.debug(f"Registered step: {keyword} {pattern.pattern}")

    def given(self, pattern: str, description: str = ""):
        """Decorator for Given steps"""

        def decorator(func):
            self.add_definition('given', pattern, func, description)
            return func

        return decorator

    def when(self, pattern: str, description: str = ""):
        """Decorator for When steps"""

        def decorator(func):
            self.add_definition('when', pattern, func, description)
            return func

        return decorator

    def then(self, pattern: str, description: str = ""):
        """Decorator for Then steps"""

        def decorator(func):
            self.add_definition('then', pattern, func, description)
            return func

        return decorator

    def step(self, pattern: str, description: str = ""):
        """Decorator for any step type"""

        def decorator(func):
            for keyword in STEP_KEYWORDS:
                self.add_definition(keyword, pattern, func, description)
            return func

        return decorator

    def find_step_definition(self, keyword: str, step_text: str) -> Optional[StepDefinition]:
        """Find matching step definition for given step text"""
        keyword = keyword.lower().strip()
        possible_keywords = self._keyword_aliases.get(keyword, [keyword])

        for definition in self.definitions:
            if definition.keyword in possible_keywords:
                if definition.pattern.search(step_text):
                    logger.debug(f"Found matching step definition: {definition.pattern.pattern}")
                    return definition

        logger.warning(f"No step definition found for: {keyword} {step_text}")
        return None

    def list_definitions(self) -> List[Dict[str, str]]:
        """List all registered step definitions"""
        return [
            {
                'keyword': defn.keyword,
                'pattern': defn.pattern.pattern,
                'description': defn.description,
                'function': defn.function.__name__,
                'location': defn.location,
            }
            for defn in self.definitions
        ]

    def clear(self):
        """Clear all registered definitions"""
        self.definitions.clear()

    def __len__(self):
        return len(self.definitions)

    def register_from_module(self, module):
        """Register all step definitions marked in a module, in source order"""
        marked = []
        for name, obj in inspect.getmembers(module):
            # Steps imported from another step module register there
            if hasattr(obj, '_step_definitions') and getattr(obj, '__module__', None) == module.__name__:
                marked.append(obj)

        def source_line(func):
            try:
                return inspect.getsourcelines(func)[1]
            except (OSError, TypeError):
                return 0

        for obj in sorted(marked, key=source_line):
            # decorators apply bottom-up, the topmost pattern is listed last
            for step_info in reversed(obj._step_definitions):
                self.add_definition(
                    step_info['keyword'],
                    step_info['pattern'],
                    obj,
                    step_info.get('description', '')
                )

    def load_step_files(self, paths: Iterable[str], root: Path) -> None:
        """Import step definition files relative to root and register their steps"""
        for raw_path in paths:
            path = Path(raw_path)
            if not path.is_absolute():
                path = root / path

            if not path.is_file():
                raise InitError(f"Step definition file not found: {path}")

            module_name = f"qa_runner_steps_{path.stem}_{abs(hash(str(path)))}"
            spec = importlib.util.spec_from_file_location(module_name, path)
            module = importlib.util.module_from_spec(spec)
            try:
                spec.loader.exec_module(module)
            except Exception as e:
                raise InitError(f"Failed to import step definitions from {path}: {e}") from e

            before = len(self.definitions)
            self.register_from_module(module)
            logger.info(f"Loaded {len(self.definitions) - before} step definitions from {path}")


def _mark(keywords: List[str], pattern: str, description: str):
    def decorator(func):
        if not hasattr(func, '_step_definitions'):
            func._step_definitions = []
        for keyword in keywords:
            func._step_definitions.append({
                'keyword': keyword,
                'pattern': pattern,
                'description': description
            })
        return func

    return decorator


# Utility decorators for marking functions as step definitions
def given(pattern: str, description: str = ""):
    """Mark function as a Given step"""
    return _mark(['given'], pattern, description)


def when(pattern: str, description: str = ""):
    """Mark function as a When step"""
    return _mark(['when'], pattern, description)


def then(pattern: str, description: str = ""):
    """Mark function as a Then step"""
    return _mark(['then'], pattern, description)


def step(pattern: str, description: str = ""):
    """Mark function as a step usable with any keyword"""
    return _mark(list(reversed(STEP_KEYWORDS)), pattern, description)
