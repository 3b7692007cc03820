import re
from datetime import datetime

from ..core.base import Plugin


class ScreenshotOnFailPlugin(Plugin):
    """Saves a page screenshot into the output directory when a test fails"""

    name = "screenshot_on_fail"
    description = "Captures a screenshot of failed tests"
    default_config = {
        'directory': 'screenshots',
    }

    async def after_test(self, context, test, result) -> None:
        if result.status != 'failed' or context.session is None:
            return

        safe_title = re.sub(r'[^\w\-]+', '_', test.title).strip('_') or 'test'
        filename = f"{safe_title}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.png"
        path = context.output_dir / self.config['directory'] / filename

        try:
            result.screenshot = await context.session.screenshot(path)
            self.logger.info(f"Screenshot saved: {path}")
        except Exception as e:
            self.logger.warning(f"Could not capture screenshot for '{test.title}': {e}")
