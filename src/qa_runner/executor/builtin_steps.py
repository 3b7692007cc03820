import logging

from .step_definitions import StepDefinitionRegistry
from .test_context import TestContext

logger = logging.getLogger(__name__)


def register_builtin_steps(registry: StepDefinitionRegistry):
    """Register built-in step definitions"""

    # Data steps
    @registry.step(r'^I store "([^"]*)" in "([^"]*)"$')
    def store_value(context: TestContext, value: str, out_var: str):
        context.store_data(out_var, context.resolve_value(value))

    @registry.then(r'^I check value of "([^"]*)" is "([^"]*)"$')
    def check_values_equal(context: TestContext, first: str, second: str):
        first = context.resolve_value(first)
        second = context.resolve_value(second)
        if first != second:
            raise AssertionError(f"Expected {first!r} to equal {second!r}")

    @registry.then(r'^I check for the duplicate value in "([^"]*)"$')
    def check_no_duplicates(context: TestContext, out_var: str):
        values = context.resolve_value(out_var)
        if not isinstance(values, list):
            raise AssertionError(f"'{out_var}' does not hold a list")
        duplicates = sorted({str(v) for v in values if values.count(v) > 1})
        if duplicates:
            raise AssertionError(f"'{out_var}' contains duplicate values: {', '.join(duplicates)}")

    # Navigation steps
    @registry.given(r'^I navigate to "([^"]*)"$')
    @registry.when(r'^I navigate to "([^"]*)"$')
    async def navigate_to(context: TestContext, path: str):
        await context.page.goto(context.absolute_url(context.resolve_value(path)))

    # Interaction steps
    @registry.when(r'^I click "([^"]*)"$')
    async def click_element(context: TestContext, element: str):
        await context.page.click(context.find(element))

    @registry.when(r'^I fill field "([^"]*)" with value "([^"]*)"$')
    async def fill_field(context: TestContext, element: str, value: str):
        await context.page.fill(context.find(element), str(context.resolve_value(value)))

    # Verification steps
    @registry.then(r'^I should see "([^"]*)"$')
    async def see_text(context: TestContext, text: str):
        text = str(context.resolve_value(text))
        if not await context.page.has_text(text):
            raise AssertionError(f"Text not found on page: {text}")

    @registry.then(r'^I should see element "([^"]*)"$')
    async def see_element(context: TestContext, element: str):
        await context.page.wait_visible(context.find(element))

    # Grab and store steps
    @registry.then(r'^I get value of "([^"]*)" and store in "([^"]*)"$')
    async def grab_text(context: TestContext, element: str, out_var: str):
        locator = context.find(element)
        await context.page.wait_visible(locator)
        value = await context.page.text_of(locator)
        context.store_data(out_var, value)
        logger.info(f"Stored value {value!r} of {locator.display} in {out_var}")

    @registry.then(r'^I get all values of "([^"]*)" and store it in "([^"]*)"$')
    async def grab_all_texts(context: TestContext, element: str, out_var: str):
        context.store_data(out_var, await context.page.texts_of(context.find(element)))

    @registry.then(r'^I get attribute "([^"]*)" from "([^"]*)" and store it in "([^"]*)"$')
    async def grab_attribute(context: TestContext, attribute: str, element: str, out_var: str):
        context.store_data(out_var, await context.page.attribute_of(context.find(element), attribute))

    @registry.then(r'^I get current url and store it in "([^"]*)"$')
    def grab_current_url(context: TestContext, out_var: str):
        context.store_data(out_var, context.page.current_url)
