from .data_store import DataStore, UNSET
from .step_definitions import StepDefinitionRegistry, given, when, then, step
from .test_context import TestContext
from .report_collector import ReportCollector
from .orchestrator import Runner, RerunRunner, RunOptions, RunResult, DryRunReport

__all__ = [
    'DataStore',
    'UNSET',
    'StepDefinitionRegistry',
    'TestContext',
    'ReportCollector',
    'Runner',
    'RerunRunner',
    'RunOptions',
    'RunResult',
    'DryRunReport',
    'given',
    'when',
    'then',
    'step',
]
