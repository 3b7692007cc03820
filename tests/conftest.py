import textwrap
from pathlib import Path

import pytest


CHECKOUT_FEATURE = """\
@shop
Feature: Checkout

  Background:
    Given I store "alice" in "user.name"

  Scenario: Pay with card @smoke
    When I store "card" in "payment.method"
    Then I check value of "payment.method" is "card"

  Scenario: Pay with voucher
    When I store "voucher" in "payment.method"
    Then I check value of "payment.method" is "cash"
"""

SEARCH_FEATURE = """\
Feature: Search products

  Scenario: Find by name
    Given I store "shoes" in "query"
    Then I check value of "query" is "shoes"
"""

STEPS_MODULE = """\
from qa_runner import given, then


@given(r'^a product named "([^"]*)"$')
def product_named(context, name):
    context.store_data('product.name', name)


@then(r'^the product is "([^"]*)"$')
def product_is(context, name):
    assert context.get_data('product.name') == name
"""


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content), encoding='utf-8')
    return path


@pytest.fixture
def project(tmp_path):
    """A test root with two feature files and a step module"""
    write(tmp_path / "features" / "checkout.feature", CHECKOUT_FEATURE)
    write(tmp_path / "features" / "search" / "search.feature", SEARCH_FEATURE)
    write(tmp_path / "steps" / "product_steps.py", STEPS_MODULE)
    return tmp_path


@pytest.fixture
def config():
    return {
        'gherkin': {'features': 'features/**/*.feature', 'steps': []},
        'output': 'output',
        'reports': ['json'],
        'plugins': {},
    }
