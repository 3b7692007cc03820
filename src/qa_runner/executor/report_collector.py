import json
from pathlib import Path
from datetime import datetime
from typing import Dict, List, Any, Union
import logging
from jinja2 import Template

logger = logging.getLogger(__name__)

FAILED_RECORD_NAME = "failed-tests.json"

HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>QA Runner Report - {{ timestamp }}</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 20px; background: #f5f5f5; }
        .header { background: #333; color: white; padding: 20px; border-radius: 5px; }
        .summary span { display: inline-block; margin: 15px 25px 15px 0; font-size: 20px; }
        .passed { color: #28a745; }
        .failed, .undefined { color: #dc3545; }
        .skipped { color: #b8860b; }
        .feature { background: white; margin-bottom: 15px; padding: 10px 20px; border-radius: 5px; }
        .step { margin-left: 20px; font-family: monospace; }
        .error { background: #f8d7da; color: #721c24; margin-left: 20px; padding: 6px; }
    </style>
</head>
<body>
    <div class="header">
        <h1>Test Execution Report</h1>
        <p>Generated: {{ timestamp }} | Duration: {{ duration }}</p>
    </div>
    <div class="summary">
        <span>Total: {{ summary.total }}</span>
        <span class="passed">Passed: {{ summary.passed }}</span>
        <span class="failed">Failed: {{ summary.failed }}</span>
        <span>Pass rate: {{ pass_rate }}%</span>
    </div>
    {% for feature in features %}
    <div class="feature">
        <h2 class="{{ feature.status }}">{{ feature.feature }}</h2>
        <small>{{ feature.file }}</small>
        {% for scenario in feature.scenarios %}
        <h3 class="{{ scenario.status }}">{{ scenario.name }}
            {% for tag in scenario.tags %}<small>@{{ tag }}</small> {% endfor %}</h3>
        {% for step in scenario.steps %}
        <div class="step {{ step.status }}">{{ step.keyword }} {{ step.name }}</div>
        {% if step.error %}<div class="error">{{ step.error }}</div>{% endif %}
        {% endfor %}
        {% endfor %}
    </div>
    {% endfor %}
</body>
</html>
"""

JUNIT_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<testsuites name="QA Runner Results" time="{{ duration }}" tests="{{ summary.total }}" failures="{{ summary.failed }}">
{% for feature in features %}
    <testsuite name="{{ feature.feature|e }}" tests="{{ feature.scenarios|length }}" failures="{{ feature.failures }}">
    {% for scenario in feature.scenarios %}
        <testcase classname="{{ feature.feature|replace(' ', '_')|e }}" name="{{ scenario.name|e }}" time="{{ scenario.duration }}">
        {% if scenario.status == 'failed' %}
            <failure message="{{ scenario.error|default('Test failed', true)|e }}"/>
        {% endif %}
        </testcase>
    {% endfor %}
    </testsuite>
{% endfor %}
</testsuites>
"""


def _seconds(start: str, end: str) -> float:
    if not start or not end:
        return 0
    return (datetime.fromisoformat(end) - datetime.fromisoformat(start)).total_seconds()


class ReportCollector:
    """Writes run reports and the failed-test record into the output directory"""

    def __init__(self, output_dir: Union[str, Path] = "output"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def generate_report(self, results: Dict[str, Any], format: str = "html") -> str:
        """
        Generate test report in specified format

        Args:
            results: Test execution results
            format: Report format (html, json, junit)

        Returns:
            Path to generated report
        """
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

        if format == "html":
            return self._generate_html_report(results, timestamp)
        elif format == "json":
            return self._generate_json_report(results, timestamp)
        elif format == "junit":
            return self._generate_junit_report(results, timestamp)
        else:
            raise ValueError(f"Unsupported report format: {format}")

    def _generate_html_report(self, results: Dict[str, Any], timestamp: str) -> str:
        summary = results.get('summary', {})
        total = summary.get('total', 0)
        pass_rate = round((summary.get('passed', 0) / total * 100) if total > 0 else 0, 1)

        html_content = Template(HTML_TEMPLATE).render(
            timestamp=timestamp,
            duration=f"{_seconds(results.get('start_time'), results.get('end_time')):.1f}s",
            summary=summary,
            pass_rate=pass_rate,
            features=results.get('features', [])
        )

        report_path = self.output_dir / f"report_{timestamp}.html"
        report_path.write_text(html_content, encoding='utf-8')

        logger.info(f"HTML report generated: {report_path}")
        return str(report_path)

    def _generate_json_report(self, results: Dict[str, Any], timestamp: str) -> str:
        report_path = self.output_dir / f"report_{timestamp}.json"

        with open(report_path, 'w', encoding='utf-8') as f:
            json.dump(results, f, indent=2)

        logger.info(f"JSON report generated: {report_path}")
        return str(report_path)

    def _generate_junit_report(self, results: Dict[str, Any], timestamp: str) -> str:
        features = []
        for feature in results.get('features', []):
            scenarios = [
                {**s, 'duration': _seconds(s.get('start_time'), s.get('end_time'))}
                for s in feature.get('scenarios', [])
            ]
            features.append({
                **feature,
                'scenarios': scenarios,
                'failures': sum(1 for s in scenarios if s.get('status') == 'failed'),
            })

        junit_content = Template(JUNIT_TEMPLATE).render(
            duration=_seconds(results.get('start_time'), results.get('end_time')),
            summary=results.get('summary', {}),
            features=features
        )

        report_path = self.output_dir / f"report_{timestamp}.xml"
        report_path.write_text(junit_content, encoding='utf-8')

        logger.info(f"JUnit report generated: {report_path}")
        return str(report_path)

    @property
    def failed_record_path(self) -> Path:
        return self.output_dir / FAILED_RECORD_NAME

    def write_failed_record(self, records: List[Dict[str, str]]) -> str:
        """Persist failed tests for a later re-run"""
        with open(self.failed_record_path, 'w', encoding='utf-8') as f:
            json.dump(records, f, indent=2)
        logger.info(f"Recorded {len(records)} failed tests in {self.failed_record_path}")
        return str(self.failed_record_path)


def load_failed_record(path: Union[str, Path]) -> List[Dict[str, str]]:
    """Read a failed-test record; a missing file means nothing to re-run"""
    path = Path(path)
    if not path.exists():
        logger.warning(f"No failed-test record at {path}")
        return []

    with open(path, 'r', encoding='utf-8') as f:
        records = json.load(f)

    if not isinstance(records, list):
        raise ValueError(f"Failed-test record must be a list: {path}")
    return records
