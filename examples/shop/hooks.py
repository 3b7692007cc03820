import logging

logger = logging.getLogger(__name__)


async def bootstrap(config):
    logger.info(f"Testing against {config['executor']['base_url']} (profile: {config.get('profile') or 'default'})")


def teardown(config):
    logger.info("Shop suite finished")
