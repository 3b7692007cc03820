import json
import xml.etree.ElementTree as ET

import pytest

from qa_runner.executor.orchestrator import RunResult, StepResult, SuiteResult, TestResult
from qa_runner.executor.report_collector import ReportCollector, load_failed_record


@pytest.fixture
def results():
    passed = TestResult(title='Pay with card', file='features/checkout.feature', line=6, tags=['smoke'])
    passed.steps.append(StepResult('When', 'I pay by card', end_time=passed.start_time))
    failed = TestResult(title='Pay with voucher', file='features/checkout.feature', line=10)
    failed.steps.append(StepResult('Then', 'I see "Paid"', status='failed', error='Text not found'))
    failed.fail('Then I see "Paid": Text not found')

    run = RunResult(suites=[SuiteResult(title='Checkout', file='features/checkout.feature', tests=[passed, failed])])
    run.end_time = run.start_time
    return run.to_dict()


class TestReportCollector:
    """Test report generation"""

    def test_json_report(self, tmp_path, results):
        path = ReportCollector(tmp_path / "out").generate_report(results, "json")

        with open(path) as f:
            data = json.load(f)
        assert data['summary'] == {'total': 2, 'passed': 1, 'failed': 1, 'skipped': 0}
        assert data['features'][0]['scenarios'][1]['error'] == 'Then I see "Paid": Text not found'

    def test_html_report(self, tmp_path, results):
        path = ReportCollector(tmp_path).generate_report(results, "html")

        with open(path) as f:
            html = f.read()
        assert 'Pay with voucher' in html
        assert 'Pass rate: 50.0%' in html

    def test_junit_report(self, tmp_path, results):
        path = ReportCollector(tmp_path).generate_report(results, "junit")

        root = ET.parse(path).getroot()
        suite = root.find('testsuite')
        assert suite.get('failures') == '1'
        cases = suite.findall('testcase')
        assert [c.get('name') for c in cases] == ['Pay with card', 'Pay with voucher']
        assert cases[1].find('failure') is not None

    def test_unsupported_format(self, tmp_path, results):
        with pytest.raises(ValueError):
            ReportCollector(tmp_path).generate_report(results, "pdf")


class TestFailedRecord:
    """Test the failed-test record used by re-runs"""

    def test_write_and_load(self, tmp_path):
        collector = ReportCollector(tmp_path)
        records = [{'file': 'features/a.feature', 'title': 'A'}]

        collector.write_failed_record(records)

        assert load_failed_record(collector.failed_record_path) == records

    def test_missing_record(self, tmp_path):
        assert load_failed_record(tmp_path / "failed-tests.json") == []

    def test_invalid_record(self, tmp_path):
        path = tmp_path / "failed-tests.json"
        path.write_text('{"file": "a"}')

        with pytest.raises(ValueError):
            load_failed_record(path)
