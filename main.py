#main.py

"""
treewatch - run configured commands when files under a directory change
"""
import os
import sys
import asyncio
import logging
import subprocess

from treewatch.utils.config import load_config, RuleConfig
from treewatch.utils.logger import setup_logging
from treewatch.watchdog import Watcher, WatcherError

logger = logging.getLogger(__name__)


def make_handler(rule: RuleConfig):
    """Build the handler for a configured rule"""
    def handle(path: str):
        logger.info(f"Changed: {path} (pattern: {rule.pattern})")
        if not rule.command:
            return

        env = {**os.environ, 'TREEWATCH_PATH': path}
        result = subprocess.run(rule.command, shell=True, env=env)
        if result.returncode != 0:
            logger.warning(f"Command exited with {result.returncode}: {rule.command}")

    return handle


async def main(config_path: str = None):
    """Main entry point"""
    config = load_config(config_path)
    setup_logging(
        log_level=config.logging.level,
        log_file=config.logging.file,
        log_format=config.logging.format,
    )

    watcher = Watcher.from_config(config.watch)
    for rule in config.watch.rules:
        watcher.add(rule.pattern, make_handler(rule))

    if not config.watch.rules:
        logger.warning("No rules configured, changes will only be logged at DEBUG level")

    await watcher.start()


if __name__ == "__main__":
    try:
        asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else None))
    except KeyboardInterrupt:
        print("\nShutting down...")
    except (WatcherError, FileNotFoundError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
