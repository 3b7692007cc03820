"""
Command handlers behind the CLI.

Each handler drives one :class:`~qa_runner.executor.Runner` through its
lifecycle and returns the process exit code; teardown always runs, and its
failure only turns a successful exit into a failing one.
"""

import logging
import platform
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click

from .core.config import ConfigManager, get_test_root
from .core.exceptions import ConfigParseError, QARunnerError, TeardownError
from .executor import Runner, RerunRunner, RunOptions, RunResult
from .executor.report_collector import FAILED_RECORD_NAME, load_failed_record

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def print_error(error: Exception, phase: Optional[str] = None) -> None:
    if isinstance(error, QARunnerError):
        click.echo(f"❌ {error}", err=True)
    else:
        click.echo(f"❌ [{phase or 'runner'}] {type(error).__name__}: {error}", err=True)


def load_effective_config(
        config_path: Optional[str],
        override: Optional[str],
        profile: Optional[str] = None
) -> Tuple[Dict[str, Any], Path]:
    """Load the config file, apply the JSON override and return it with the test root"""
    manager = ConfigManager(Path(config_path) if config_path else None)
    config = manager.merged(override)
    if profile:
        config['profile'] = profile
    return config, get_test_root(manager.config_path)


def _print_machine_info() -> None:
    click.echo("Environment information:")
    click.echo(f"  Python: {sys.version.split()[0]}")
    click.echo(f"  Platform: {platform.platform()}")
    click.echo(f"  Machine: {platform.machine()}")
    click.echo()


def _print_summary(result: RunResult) -> None:
    summary = result.summary()
    click.echo()
    for test in result.failures:
        click.echo(f"  ✗ {test.title} -- {test.file}")
        click.echo(f"      {test.error}")
    click.echo(
        f"📊 Total: {summary['total']} | Passed: {summary['passed']} | Failed: {summary['failed']}"
    )


async def _drive(runner: Runner, test_root: Path, pattern: Optional[str], verbose: bool) -> int:
    exit_code = EXIT_OK
    try:
        runner.init(test_root)
        await runner.bootstrap()
        runner.load_tests(pattern)

        if verbose:
            _print_machine_info()

        result = await runner.run()
        _print_summary(result)
        if not result.success:
            exit_code = EXIT_FAILED
    except QARunnerError as e:
        print_error(e)
        exit_code = EXIT_FAILED
    except Exception as e:
        logger.debug("Runner failed", exc_info=True)
        print_error(e, phase=runner.state.value)
        exit_code = EXIT_FAILED
    finally:
        try:
            await runner.teardown()
        except TeardownError as e:
            print_error(e)
            if exit_code == EXIT_OK:
                exit_code = EXIT_FAILED

    return exit_code


async def run(
        pattern: Optional[str] = None,
        config_path: Optional[str] = None,
        override: Optional[str] = None,
        profile: Optional[str] = None,
        plugins: Optional[str] = None,
        grep: Optional[str] = None,
        verbose: bool = False,
        **runner_kwargs
) -> int:
    """Execute discovered tests"""
    try:
        config, test_root = load_effective_config(config_path, override, profile)
    except ConfigParseError as e:
        print_error(e)
        return EXIT_CONFIG
    except QARunnerError as e:
        print_error(e)
        return EXIT_FAILED

    options = RunOptions(profile=profile, plugins=plugins, grep=grep, verbose=verbose)
    runner = Runner(config, options, **runner_kwargs)
    return await _drive(runner, test_root, pattern, verbose)


async def run_rerun(
        pattern: Optional[str] = None,
        config_path: Optional[str] = None,
        override: Optional[str] = None,
        profile: Optional[str] = None,
        plugins: Optional[str] = None,
        failed_record: Optional[str] = None,
        **runner_kwargs
) -> int:
    """Execute only the tests recorded as failed by the previous run"""
    try:
        config, test_root = load_effective_config(config_path, override, profile)
    except ConfigParseError as e:
        print_error(e)
        return EXIT_CONFIG
    except QARunnerError as e:
        print_error(e)
        return EXIT_FAILED

    if failed_record:
        record_path = Path(failed_record)
    else:
        output = Path(config.get('output') or 'output')
        record_path = (output if output.is_absolute() else test_root / output) / FAILED_RECORD_NAME

    try:
        records = load_failed_record(record_path)
    except ValueError as e:
        print_error(e, phase="rerun")
        return EXIT_FAILED

    click.echo(f"🔁 Re-running {len(records)} recorded failures from {record_path}")
    options = RunOptions(profile=profile, plugins=plugins)
    runner = RerunRunner(config, records, options=options, **runner_kwargs)
    return await _drive(runner, test_root, pattern, verbose=False)


async def dry_run(
        pattern: Optional[str] = None,
        config_path: Optional[str] = None,
        override: Optional[str] = None,
        plugins: Optional[str] = None,
        grep: Optional[str] = None,
        bootstrap: bool = False,
        show_steps: bool = False,
        **runner_kwargs
) -> int:
    """List suites and tests without executing any step"""
    try:
        config, test_root = load_effective_config(config_path, override)
    except ConfigParseError as e:
        print_error(e)
        return EXIT_CONFIG
    except QARunnerError as e:
        print_error(e)
        return EXIT_FAILED

    options = RunOptions(plugins=plugins, grep=grep)
    runner = Runner(config, options, **runner_kwargs)
    exit_code = EXIT_OK
    try:
        runner.init(test_root)
        if bootstrap:
            await runner.bootstrap()
        runner.load_tests(pattern)
        report = runner.dry_run()

        click.echo(f"Tests from {runner.test_root}:")
        click.echo()
        for suite in report.suites:
            click.echo(f"{click.style(suite.title, bold=True)} -- {suite.file} -- {len(suite.tests)} tests")
            for test in suite.tests:
                click.echo(f"  ☐ {test.title}")
                if show_steps:
                    for test_step in test.all_steps:
                        click.echo(f"      {test_step.keyword} {test_step.name}")
        click.echo()
        click.echo(f"  Total: {report.suite_count} suites | {report.test_count} tests  ")
        click.echo()
        click.echo("--- DRY MODE: No tests were executed ---")
    except QARunnerError as e:
        print_error(e)
        exit_code = EXIT_FAILED
    except Exception as e:
        print_error(e, phase=runner.state.value)
        exit_code = EXIT_FAILED
    finally:
        try:
            await runner.teardown()
        except TeardownError as e:
            print_error(e)
            if exit_code == EXIT_OK:
                exit_code = EXIT_FAILED

    return exit_code


def gherkin_steps(path: Optional[str] = None, config_path: Optional[str] = None) -> int:
    """Print every registered step pattern"""
    try:
        config, test_root = load_effective_config(config_path or path, None)
        runner = Runner(config)
        runner.init(test_root)
    except ConfigParseError as e:
        print_error(e)
        return EXIT_CONFIG
    except QARunnerError as e:
        print_error(e)
        return EXIT_FAILED

    definitions = runner.step_registry.list_definitions()

    click.echo("Gherkin Step Definitions:")
    click.echo()
    for defn in definitions:
        click.echo(f"  {click.style(defn['keyword'].capitalize(), bold=True)} {defn['pattern']} "
                   f"{click.style(defn['location'], fg='green')}")
    click.echo()

    if not definitions:
        click.echo("❌ No Gherkin steps defined", err=True)
        return EXIT_FAILED
    return EXIT_OK
