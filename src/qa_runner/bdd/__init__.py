from .loader import TestCase, TestSuite, discover_feature_files, load_suites, parse_suite, select_recorded

__all__ = [
    'TestCase',
    'TestSuite',
    'discover_feature_files',
    'load_suites',
    'parse_suite',
    'select_recorded',
]
