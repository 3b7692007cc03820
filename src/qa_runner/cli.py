import asyncio
import logging
import sys

import click

from . import __version__
from . import commands
from .core.config import GREP_ENV_VAR, PROFILE_ENV_VAR, resolve_option


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@click.group()
@click.version_option(__version__, prog_name="QA Runner")
def cli():
    """QA Runner - BDD test runner for browser automation"""
    pass


@cli.command()
@click.argument('test_pattern', required=False)
@click.option('--config', '-c', 'config_path', type=click.Path(), help='Configuration file path')
@click.option('--override', '-o', help='JSON object merged over the config file')
@click.option('--profile', help=f'Profile name (env: {PROFILE_ENV_VAR})')
@click.option('--grep', '-g', help=f'Only suites whose title contains this text (env: {GREP_ENV_VAR})')
@click.option('--plugins', '-p', help="Enable plugins: 'all' or a comma-separated list")
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def run(test_pattern, config_path, override, profile, grep, plugins, verbose):
    """Run BDD tests"""
    _setup_logging(verbose)
    exit_code = asyncio.run(commands.run(
        test_pattern,
        config_path=config_path,
        override=override,
        profile=resolve_option(profile, PROFILE_ENV_VAR),
        plugins=plugins,
        grep=resolve_option(grep, GREP_ENV_VAR),
        verbose=verbose,
    ))
    sys.exit(exit_code)


@cli.command('run-rerun')
@click.argument('test_pattern', required=False)
@click.option('--config', '-c', 'config_path', type=click.Path(), help='Configuration file path')
@click.option('--override', '-o', help='JSON object merged over the config file')
@click.option('--profile', help=f'Profile name (env: {PROFILE_ENV_VAR})')
@click.option('--plugins', '-p', help="Enable plugins: 'all' or a comma-separated list")
@click.option('--failed-record', type=click.Path(), help='Failed-test record of a previous run')
def run_rerun(test_pattern, config_path, override, profile, plugins, failed_record):
    """Re-run tests that failed in the previous run"""
    _setup_logging(False)
    exit_code = asyncio.run(commands.run_rerun(
        test_pattern,
        config_path=config_path,
        override=override,
        profile=resolve_option(profile, PROFILE_ENV_VAR),
        plugins=plugins,
        failed_record=failed_record,
    ))
    sys.exit(exit_code)


@cli.command('dry-run')
@click.argument('test_pattern', required=False)
@click.option('--config', '-c', 'config_path', type=click.Path(), help='Configuration file path')
@click.option('--override', '-o', help='JSON object merged over the config file')
@click.option('--plugins', '-p', help="Enable plugins: 'all' or a comma-separated list")
@click.option('--grep', '-g', help=f'Only suites whose title contains this text (env: {GREP_ENV_VAR})')
@click.option('--bootstrap', is_flag=True, help='Run the bootstrap hook before listing')
@click.option('--steps', is_flag=True, help='Show steps of every test')
@click.option('--verbose', '-v', is_flag=True, help='Show steps and verbose logging')
@click.option('--debug', is_flag=True, help='Show steps and debug logging')
def dry_run(test_pattern, config_path, override, plugins, grep, bootstrap, steps, verbose, debug):
    """List tests without executing them"""
    _setup_logging(verbose or debug)
    exit_code = asyncio.run(commands.dry_run(
        test_pattern,
        config_path=config_path,
        override=override,
        plugins=plugins,
        grep=resolve_option(grep, GREP_ENV_VAR),
        bootstrap=bootstrap,
        show_steps=steps or verbose or debug,
    ))
    sys.exit(exit_code)


@cli.command('gherkin:steps')
@click.argument('path', required=False, type=click.Path())
@click.option('--config', '-c', 'config_path', type=click.Path(), help='Configuration file path')
def gherkin_steps(path, config_path):
    """List all registered step definitions"""
    _setup_logging(False)
    sys.exit(commands.gherkin_steps(path, config_path=config_path))


def main():
    """Main entry point"""
    cli()


if __name__ == "__main__":
    main()
