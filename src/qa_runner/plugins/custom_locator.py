"""
Custom locators built from special test attributes.

With a convention of marking elements with ``data-test-id`` (or ``data-qa``)
attributes, enabling this plugin lets steps refer to them by a short prefixed
name::

    # qa-runner.yaml
    plugins:
      custom_locator:
        prefix: "="
        attribute: [data-qa, data-test]
        strategy: xpath

    When I click "=sign-up"
    # => .//*[@data-qa="sign-up" or @data-test="sign-up"]

With ``strategy: css`` the same reference becomes
``[data-qa=sign-up],[data-test=sign-up]``.

Options:

* ``prefix`` (default ``$``) marks a custom locator.
* ``attribute`` (default ``data-test-id``) is one attribute name or a list.
* ``strategy`` (default ``xpath``) is ``xpath`` or ``css``.
* ``show_actual`` (default false) shows the produced query in step output
  instead of the prefixed reference.
"""

from typing import Any, Callable, Optional

from ..core.base import Plugin
from ..locator import Locator, LocatorKind, xpath_literal


class CustomLocatorPlugin(Plugin):
    name = "custom_locator"
    description = "Rewrites prefixed references into attribute locators"
    default_config = {
        'prefix': '$',
        'attribute': 'data-test-id',
        'strategy': 'xpath',
        'show_actual': False,
    }

    def locator_filter(self) -> Optional[Callable]:
        return self.rewrite

    def rewrite(self, raw: Any, locator: Locator) -> Locator:
        prefix = self.config['prefix']
        attribute = self.config['attribute']

        # Malformed options leave the locator for other strategies
        if not isinstance(prefix, str) or not prefix or not isinstance(attribute, (str, list)):
            return locator
        if not isinstance(raw, str) or not raw.startswith(prefix):
            return locator

        attributes = [attribute] if isinstance(attribute, str) else attribute
        val = raw[len(prefix):]
        strategy = str(self.config['strategy']).lower()

        if strategy == 'xpath':
            query = './/*[{}]'.format(
                ' or '.join(f"@{attr}={xpath_literal(val)}" for attr in attributes)
            )
            kind = LocatorKind.XPATH
        elif strategy == 'css':
            query = ','.join(f"[{attr}={val}]" for attr in attributes)
            kind = LocatorKind.CSS
        else:
            self.logger.debug(f"Unknown custom locator strategy: {strategy}")
            return locator

        output = query if self.config['show_actual'] else None
        return locator.with_query(kind, query, output=output)
