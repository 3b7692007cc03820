import pytest

from qa_runner.bdd import TestCase, TestSuite, discover_feature_files, load_suites, parse_suite, select_recorded
from qa_runner.core.exceptions import InitError

from conftest import write


OUTLINE_FEATURE = """\
@catalog
Feature: Catalog filters
  Shoppers narrow the catalog.

  Scenario Outline: Filter by <color>
    Given I store "<color>" in "filter"
    Then I check value of "filter" is "<color>"

    Examples:
      | color |
      | red   |
      | blue  |
"""


class TestDiscovery:
    """Test feature file discovery"""

    def test_glob(self, project):
        files = discover_feature_files(project, 'features/**/*.feature')

        assert [f.name for f in files] == ['checkout.feature', 'search.feature']

    def test_directory(self, project):
        files = discover_feature_files(project, 'features/search')
        assert [f.name for f in files] == ['search.feature']

    def test_single_file(self, project):
        files = discover_feature_files(project, 'features/checkout.feature')
        assert files == [project / 'features' / 'checkout.feature']

    @pytest.mark.parametrize("pattern", [None, '', 'nothing/**/*.feature'])
    def test_no_match(self, project, pattern):
        assert discover_feature_files(project, pattern) == []


class TestParsing:
    """Test parsing feature files into suites"""

    def test_parse_suite(self, project):
        suite = parse_suite(project / 'features' / 'checkout.feature')

        assert isinstance(suite, TestSuite)
        assert suite.title == 'Checkout'
        assert suite.tags == ['shop']
        assert [t.title for t in suite.tests] == ['Pay with card @smoke', 'Pay with voucher']

        test = suite.tests[0]
        assert isinstance(test, TestCase)
        assert [s.name for s in test.background_steps] == ['I store "alice" in "user.name"']
        assert len(test.all_steps) == 3
        assert test.key() == {'file': suite.file, 'title': 'Pay with card @smoke'}

    def test_scenario_outline_expanded(self, tmp_path):
        path = write(tmp_path / 'catalog.feature', OUTLINE_FEATURE)

        suite = parse_suite(path)

        assert len(suite.tests) == 2
        assert suite.description == 'Shoppers narrow the catalog.'
        assert all('catalog' in t.tags for t in suite.tests)
        assert [t.steps[0].name for t in suite.tests] == ['I store "red" in "filter"', 'I store "blue" in "filter"']

    def test_empty_file(self, tmp_path):
        path = write(tmp_path / 'empty.feature', '')
        assert parse_suite(path) is None

    def test_parse_error(self, tmp_path):
        path = write(tmp_path / 'broken.feature', 'Feature: Broken\n  Scenario: x\n    Given a\n  Nonsense line here\n')

        with pytest.raises(InitError) as exc_info:
            parse_suite(path)
        assert exc_info.value.phase == 'discovery'


class TestSelection:
    """Test grep and recorded-failure selection"""

    def test_grep_is_case_insensitive(self, project):
        files = discover_feature_files(project, 'features/**/*.feature')

        assert [s.title for s in load_suites(files, grep='SEARCH')] == ['Search products']
        assert load_suites(files, grep='payments') == []
        assert len(load_suites(files)) == 2

    def test_select_recorded_keeps_record_order(self, project):
        suites = load_suites(discover_feature_files(project, 'features/**/*.feature'))
        checkout = str(project / 'features' / 'checkout.feature')
        records = [
            {'file': checkout, 'title': 'Pay with voucher'},
            {'file': checkout, 'title': 'Pay with card @smoke'},
            {'file': checkout, 'title': 'No longer exists'},
        ]

        selected = select_recorded(suites, records)

        assert len(selected) == 1
        assert [t.title for t in selected[0].tests] == ['Pay with voucher', 'Pay with card @smoke']
        assert len(suites[0].tests) == 2

    def test_select_recorded_ignores_duplicates(self, project):
        suites = load_suites(discover_feature_files(project, 'features/**/*.feature'))
        record = {'file': str(project / 'features' / 'search' / 'search.feature'), 'title': 'Find by name'}

        selected = select_recorded(suites, [record, record])

        assert sum(len(s.tests) for s in selected) == 1
