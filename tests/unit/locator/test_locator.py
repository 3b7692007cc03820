from dataclasses import FrozenInstanceError

import pytest

from qa_runner.locator import FilterChain, Locator, LocatorKind, xpath_literal


class TestLocator:
    """Test Locator construction"""

    @pytest.mark.parametrize("raw,kind", [
        ('//button[@id="go"]', LocatorKind.XPATH),
        ('.//span', LocatorKind.XPATH),
        ('(//li)[2]', LocatorKind.XPATH),
        ('#submit', LocatorKind.CSS),
        ('.cart-item', LocatorKind.CSS),
        ('[data-qa=login]', LocatorKind.CSS),
        ('Sign in', LocatorKind.TEXT),
        ('..//div', LocatorKind.XPATH),
        ('...Loading', LocatorKind.TEXT),
        ('.5 items', LocatorKind.TEXT),
        ('. done', LocatorKind.TEXT),
    ])
    def test_string_inference(self, raw, kind):
        locator = Locator.from_input(raw)

        assert locator.kind is kind
        assert locator.value == raw
        assert locator.display == raw

    @pytest.mark.parametrize("key,kind", [
        ('xpath', LocatorKind.XPATH),
        ('css', LocatorKind.CSS),
        ('id', LocatorKind.ID),
        ('text', LocatorKind.TEXT),
    ])
    def test_structured_input(self, key, kind):
        locator = Locator.from_input({key: 'value'})

        assert locator.kind is kind
        assert locator.value == 'value'

    def test_unknown_structure_is_object(self):
        raw = {'role': 'button', 'name': 'Save'}
        locator = Locator.from_input(raw)

        assert locator.kind is LocatorKind.OBJECT
        assert locator.value == raw

    def test_with_query_keeps_output(self):
        locator = Locator.from_input('$save')
        rewritten = locator.with_query(LocatorKind.CSS, '[data-qa=save]')

        assert rewritten.value == '[data-qa=save]'
        assert rewritten.display == '$save'
        assert locator.kind is LocatorKind.TEXT

    def test_locator_is_immutable(self):
        locator = Locator.from_input('#a')
        with pytest.raises(FrozenInstanceError):
            locator.value = '#b'


class TestFilterChain:
    """Test filter ordering"""

    def test_empty_chain_returns_parsed_input(self):
        chain = FilterChain()
        assert chain.resolve('#x') == Locator.from_input('#x')

    def test_filters_applied_in_order(self):
        chain = FilterChain()
        seen = []

        def first(raw, locator):
            seen.append(('first', locator.value))
            return locator.with_query(LocatorKind.CSS, locator.value + '-1')

        def second(raw, locator):
            seen.append(('second', locator.value))
            return locator.with_query(LocatorKind.CSS, locator.value + '-2')

        chain.add(first)
        chain.add(second)

        assert chain.resolve('.a').value == '.a-1-2'
        assert seen == [('first', '.a'), ('second', '.a-1')]

    def test_filter_returning_none_is_ignored(self):
        chain = FilterChain()
        chain.add(lambda raw, locator: None)

        assert chain.resolve('#x').value == '#x'

    def test_filter_receives_raw_input(self):
        chain = FilterChain()
        received = []
        chain.add(lambda raw, locator: received.append(raw) or locator)

        chain.resolve({'css': '.x'})

        assert received == [{'css': '.x'}]


class TestXpathLiteral:

    def test_plain(self):
        assert xpath_literal('user') == '"user"'

    def test_double_quote(self):
        assert xpath_literal('say "hi"') == "'say \"hi\"'"

    def test_both_quotes(self):
        assert xpath_literal('it\'s "x"') == 'concat("it\'s ", \'"\', "x", \'"\')'
