from qa_runner import when, then


@when(r'^I add "([^"]*)" to the cart$')
async def add_to_cart(context, product):
    await context.page.click(context.find(f"$add-to-cart-{product}"))


@then(r'^the cart badge shows "([^"]*)"$')
async def cart_badge(context, count):
    text = await context.page.text_of(context.find("cart.badge"))
    assert text == count, f"Expected {count} items in the cart, badge shows {text}"
