import asyncio
from pathlib import Path

from qa_runner import ConfigManager, Runner, RunOptions


async def main():
    """Example of driving the runner lifecycle from Python"""

    project = Path(__file__).parent / "shop"
    config = ConfigManager(project / "qa-runner.yaml").merged({"executor": {"headless": False}})

    runner = Runner(config, RunOptions(plugins="all", grep="login"))
    try:
        runner.init(project)
        await runner.bootstrap()
        runner.load_tests()

        result = await runner.run()
    finally:
        await runner.teardown()

    summary = result.summary()
    print(f"\nExecution Summary:")
    print(f"  Total: {summary['total']}")
    print(f"  Passed: {summary['passed']}")
    print(f"  Failed: {summary['failed']}")

    for test in result.failures:
        print(f"\n  Failed: {test.title}")
        print(f"  Error: {test.error}")


if __name__ == '__main__':
    asyncio.run(main())
