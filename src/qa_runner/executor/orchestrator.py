"""
Lifecycle orchestration for a single runner invocation.

A :class:`Runner` moves through ``CREATED -> INITIALIZED -> BOOTSTRAPPED ->
TESTS_LOADED -> (INTROSPECTED | EXECUTED) -> TORN_DOWN``. Callers drive it
with ``init``, ``bootstrap``, ``load_tests``, then ``dry_run`` or ``run``, and
must call ``teardown`` in a ``finally`` block; teardown runs at most once.
"""

import importlib.util
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from ..bdd import TestCase, TestSuite, discover_feature_files, load_suites, select_recorded
from ..core.base import RunState
from ..core.exceptions import (
    BootstrapError,
    InitError,
    LifecycleError,
    QARunnerError,
    TeardownError,
    TestFailure,
)
from ..locator import FilterChain
from ..plugins import PluginRegistry
from .builtin_steps import register_builtin_steps
from .data_store import DataStore
from .driver import ExecutorConfig, PlaywrightDriver
from .report_collector import ReportCollector
from .step_definitions import StepDefinitionRegistry
from .test_context import ItemInfo, TestContext

logger = logging.getLogger(__name__)


@dataclass
class RunOptions:
    """Per-invocation switches coming from the command line or environment"""
    profile: Optional[str] = None
    plugins: Optional[str] = None
    grep: Optional[str] = None
    verbose: bool = False


@dataclass
class StepResult:
    keyword: str
    name: str
    status: str = 'passed'
    error: Optional[str] = None
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())
    end_time: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'keyword': self.keyword,
            'name': self.name,
            'status': self.status,
            'error': self.error,
            'start_time': self.start_time,
            'end_time': self.end_time,
        }


@dataclass
class TestResult:
    __test__ = False

    title: str
    file: str
    line: int = 0
    tags: List[str] = field(default_factory=list)
    status: str = 'passed'
    steps: List[StepResult] = field(default_factory=list)
    failure: Optional[TestFailure] = None
    screenshot: Optional[str] = None
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())
    end_time: Optional[str] = None

    @property
    def error(self) -> Optional[str]:
        return self.failure.args[0] if self.failure else None

    def fail(self, message: str) -> None:
        """Record the first failure of this test"""
        self.status = 'failed'
        if self.failure is None:
            self.failure = TestFailure(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.title,
            'file': self.file,
            'line': self.line,
            'tags': self.tags,
            'status': self.status,
            'error': self.error,
            'screenshot': self.screenshot,
            'steps': [s.to_dict() for s in self.steps],
            'start_time': self.start_time,
            'end_time': self.end_time,
        }


@dataclass
class SuiteResult:
    title: str
    file: str
    tests: List[TestResult] = field(default_factory=list)
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())
    end_time: Optional[str] = None

    @property
    def status(self) -> str:
        return 'failed' if any(t.status == 'failed' for t in self.tests) else 'passed'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'feature': self.title,
            'file': self.file,
            'status': self.status,
            'scenarios': [t.to_dict() for t in self.tests],
            'start_time': self.start_time,
            'end_time': self.end_time,
        }


@dataclass
class RunResult:
    suites: List[SuiteResult] = field(default_factory=list)
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())
    end_time: Optional[str] = None

    @property
    def tests(self) -> List[TestResult]:
        return [t for s in self.suites for t in s.tests]

    @property
    def failures(self) -> List[TestResult]:
        return [t for t in self.tests if t.status == 'failed']

    @property
    def success(self) -> bool:
        return not self.failures

    def summary(self) -> Dict[str, int]:
        tests = self.tests
        return {
            'total': len(tests),
            'passed': sum(1 for t in tests if t.status == 'passed'),
            'failed': sum(1 for t in tests if t.status == 'failed'),
            'skipped': sum(1 for t in tests if t.status == 'skipped'),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'features': [s.to_dict() for s in self.suites],
            'summary': self.summary(),
            'start_time': self.start_time,
            'end_time': self.end_time,
        }


@dataclass
class DryRunReport:
    suites: List[TestSuite]

    @property
    def suite_count(self) -> int:
        return len(self.suites)

    @property
    def test_count(self) -> int:
        return sum(len(s.tests) for s in self.suites)

    @property
    def tests(self) -> List[TestCase]:
        return [t for s in self.suites for t in s.tests]


def default_driver_factory(config: ExecutorConfig, output_dir: Path) -> PlaywrightDriver:
    return PlaywrightDriver(config, output_dir)


class Runner:
    """Sequences one invocation from initialization to teardown"""

    def __init__(
            self,
            config: Dict[str, Any],
            options: Optional[RunOptions] = None,
            step_registry: Optional[StepDefinitionRegistry] = None,
            driver_factory: Optional[Callable[[ExecutorConfig, Path], Any]] = None
    ):
        self.config = config
        self.options = options or RunOptions()
        self.state = RunState.CREATED

        self.filter_chain = FilterChain()
        self.plugins = PluginRegistry()
        self.step_registry = step_registry or StepDefinitionRegistry()
        self.data = DataStore()
        self.driver_factory = driver_factory or default_driver_factory
        self.driver = None

        self.test_root: Optional[Path] = None
        self.output_dir: Optional[Path] = None
        self.suites: List[TestSuite] = []
        self.result: Optional[RunResult] = None

        self._bootstrap_attempted = False
        self._before_all_done = False
        self._torn_down = False
        self._hook_modules: Dict[Path, Any] = {}

    # -- lifecycle ---------------------------------------------------------

    def _require(self, *states: RunState) -> None:
        if self.state not in states:
            expected = ', '.join(s.value for s in states)
            raise LifecycleError(f"Runner is {self.state.value}, expected one of: {expected}")

    def _enter(self, state: RunState) -> None:
        logger.debug(f"Runner state {self.state.value} -> {state.value}")
        self.state = state

    def init(self, test_root: Union[str, Path]) -> None:
        """Bind the test root, activate plugins and load step definitions"""
        self._require(RunState.CREATED)

        root = Path(test_root)
        if not root.is_dir():
            raise InitError(f"Test root is not a directory: {root}")
        self.test_root = root.resolve()

        output = Path(self.config.get('output') or 'output')
        self.output_dir = output if output.is_absolute() else self.test_root / output

        self.plugins.activate(self.config.get('plugins'), self.options.plugins, self.filter_chain)

        gherkin = self.config.get('gherkin') or {}
        if gherkin.get('builtin_steps', True):
            register_builtin_steps(self.step_registry)
        self.step_registry.load_step_files(gherkin.get('steps') or [], self.test_root)

        logger.info(
            f"Initialized in {self.test_root} with {len(self.step_registry)} step definitions, "
            f"plugins: {', '.join(self.plugins.names) or 'none'}"
        )
        self._enter(RunState.INITIALIZED)

    async def bootstrap(self) -> None:
        """Run the user bootstrap hook, if configured"""
        self._require(RunState.INITIALIZED)
        self._bootstrap_attempted = True

        hook = self.config.get('bootstrap')
        if hook:
            logger.info("Running bootstrap hook")
            try:
                await self._call_hook(hook)
            except Exception as e:
                raise BootstrapError(f"Bootstrap hook failed: {e}") from e

        self._enter(RunState.BOOTSTRAPPED)

    def load_tests(self, pattern: Optional[str] = None, grep: Optional[str] = None) -> List[TestSuite]:
        """Discover suites under the test root, narrowed by grep (defaults to the run options)"""
        self._require(RunState.INITIALIZED, RunState.BOOTSTRAPPED)

        pattern = pattern or (self.config.get('gherkin') or {}).get('features')
        files = discover_feature_files(self.test_root, pattern)
        if not files:
            logger.warning(f"No feature files match '{pattern}' under {self.test_root}")

        self.suites = self._select(load_suites(files, grep=grep or self.options.grep))
        self._enter(RunState.TESTS_LOADED)
        return self.suites

    def _select(self, suites: List[TestSuite]) -> List[TestSuite]:
        return suites

    def dry_run(self) -> DryRunReport:
        """Enumerate loaded suites without running anything"""
        self._require(RunState.TESTS_LOADED)
        report = DryRunReport(suites=self.suites)
        self._enter(RunState.INTROSPECTED)
        return report

    async def run(self) -> RunResult:
        """Execute every loaded test in discovery order"""
        self._require(RunState.TESTS_LOADED)
        self.result = RunResult()

        executor_config = self.config.get('executor')
        if executor_config is not None and executor_config.get('enabled', True):
            self.driver = self.driver_factory(ExecutorConfig.from_dict(executor_config), self.output_dir)
            try:
                await self.driver.start()
            except Exception as e:
                raise QARunnerError(f"Browser driver failed to start: {e}", phase="driver") from e

        await self.plugins.dispatch('before_all', self._new_context())
        self._before_all_done = True

        for suite in self.suites:
            suite_result = SuiteResult(title=suite.title, file=suite.file)
            self.result.suites.append(suite_result)
            logger.info(f"Suite: {suite.title}")

            for test in suite.tests:
                suite_result.tests.append(await self._run_test(suite, test))

            suite_result.end_time = datetime.now().isoformat()

        self.result.end_time = datetime.now().isoformat()
        self._enter(RunState.EXECUTED)
        self._write_reports(self.result)
        return self.result

    async def teardown(self) -> None:
        """Release everything acquired so far; safe to call from any state"""
        if self._torn_down:
            return
        self._torn_down = True

        errors = []

        if self._before_all_done:
            try:
                await self.plugins.dispatch('after_all', self._new_context())
            except Exception as e:
                errors.append(f"plugin after_all: {e}")

        hook = self.config.get('teardown')
        if hook and self._bootstrap_attempted:
            try:
                await self._call_hook(hook)
            except Exception as e:
                errors.append(f"teardown hook: {e}")

        if self.driver is not None:
            try:
                await self.driver.stop()
            except Exception as e:
                errors.append(f"driver stop: {e}")

        self._enter(RunState.TORN_DOWN)

        if errors:
            raise TeardownError('; '.join(errors))

    # -- execution ---------------------------------------------------------

    def _new_context(self, suite: Optional[TestSuite] = None, test: Optional[TestCase] = None) -> TestContext:
        executor_config = self.config.get('executor') or {}
        context = TestContext(
            data=self.data,
            filter_chain=self.filter_chain,
            config=self.config,
            base_url=executor_config.get('base_url', ''),
            profile=self.options.profile,
            test_root=self.test_root or Path.cwd(),
            output_dir=self.output_dir or Path('output'),
        )
        if suite is not None:
            context.feature = ItemInfo.from_title(suite.title, suite.tags, suite.description)
        if test is not None:
            context.scenario = ItemInfo.from_title(test.title, test.tags)
        return context

    async def _run_test(self, suite: TestSuite, test: TestCase) -> TestResult:
        result = TestResult(title=test.title, file=test.file, line=test.line, tags=test.tags)
        context = self._new_context(suite, test)
        logger.info(f"Executing scenario: {context.scenario.title}")

        try:
            if self.driver is not None:
                context.session = await self.driver.new_session()
            await self.plugins.dispatch('before_test', context, test)
            await self._execute_steps(context, test, result)
        except Exception as e:
            logger.error(f"Scenario '{test.title}' aborted: {e}")
            result.fail(str(e))

        try:
            await self.plugins.dispatch('after_test', context, test, result)
        except Exception as e:
            logger.error(f"after_test hook failed for '{test.title}': {e}")
            result.fail(f"after_test hook failed: {e}")
        finally:
            if context.session is not None:
                try:
                    await context.session.close()
                except Exception as e:
                    logger.warning(f"Could not close session of '{test.title}': {e}")

        result.end_time = datetime.now().isoformat()
        logger.info(f"Scenario {result.status}: {test.title}")
        return result

    async def _execute_steps(self, context: TestContext, test: TestCase, result: TestResult) -> None:
        for step in test.all_steps:
            if result.status == 'failed':
                result.steps.append(StepResult(step.keyword, step.name, status='skipped'))
                continue

            step_result = await self._execute_step(context, step)
            result.steps.append(step_result)
            if step_result.status != 'passed':
                result.fail(f"{step.keyword} {step.name}: {step_result.error}")

    async def _execute_step(self, context: TestContext, step: Any) -> StepResult:
        step_result = StepResult(keyword=step.keyword, name=step.name)
        context.current_step = step

        step_type = getattr(step, 'step_type', None) or step.keyword
        step_def = self.step_registry.find_step_definition(step_type, step.name)

        if not step_def:
            step_result.status = 'undefined'
            step_result.error = f"No step definition found for: {step.keyword} {step.name}"
        else:
            try:
                await step_def.execute(context, step.name)
            except Exception as e:
                step_result.status = 'failed'
                step_result.error = str(e) or type(e).__name__
                logger.debug(f"Step failed: {step.keyword} {step.name}", exc_info=True)

        step_result.end_time = datetime.now().isoformat()
        return step_result

    # -- helpers -----------------------------------------------------------

    def _write_reports(self, result: RunResult) -> None:
        collector = ReportCollector(self.output_dir)
        for report_format in self.config.get('reports') or []:
            try:
                collector.generate_report(result.to_dict(), report_format)
            except Exception as e:
                logger.error(f"Could not write {report_format} report: {e}")
        collector.write_failed_record([{'file': t.file, 'title': t.title} for t in result.failures])

    def _resolve_hook(self, hook: Union[str, Callable]) -> Callable:
        if callable(hook):
            return hook

        target, _, attr = str(hook).partition(':')
        if not attr:
            raise InitError(f"Hook must look like 'module:function' or 'path.py:function', got '{hook}'")

        path = Path(target)
        if not path.is_absolute():
            path = (self.test_root or Path.cwd()) / path

        if path.suffix == '.py' and path.is_file():
            module = self._load_hook_module(path.resolve())
        else:
            module = importlib.import_module(target)

        return getattr(module, attr)

    def _load_hook_module(self, path: Path) -> Any:
        """Import a hook file at most once per runner"""
        if path not in self._hook_modules:
            spec = importlib.util.spec_from_file_location(f"qa_runner_hooks_{path.stem}", path)
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
            self._hook_modules[path] = module
        return self._hook_modules[path]

    async def _call_hook(self, hook: Union[str, Callable]) -> None:
        """Hooks receive the effective config and may be coroutines"""
        outcome = self._resolve_hook(hook)(self.config)
        if inspect.isawaitable(outcome):
            await outcome


class RerunRunner(Runner):
    """Runner restricted to a previously recorded set of failed tests"""

    def __init__(self, config: Dict[str, Any], failed_records: List[Dict[str, str]], **kwargs):
        super().__init__(config, **kwargs)
        self.failed_records = failed_records

    def _select(self, suites: List[TestSuite]) -> List[TestSuite]:
        selected = select_recorded(suites, self.failed_records)
        logger.info(f"Re-running {sum(len(s.tests) for s in selected)} of {len(self.failed_records)} recorded failures")
        return selected
