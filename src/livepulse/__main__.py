"""Run the livepulse agent: ``python -m livepulse``."""

import asyncio
import sys

from livepulse.config import Settings
from livepulse.core.errors import ConfigurationError
from livepulse.core.logs import configure_logging, get_logger
from livepulse.runtime.agent import Agent

logger = get_logger(__name__)


def main() -> int:
    """Load settings from the environment and serve until interrupted.

    Returns:
        Process exit status; 2 for configuration errors.
    """
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        configure_logging()
        logger.error("Configuration error: %s", e)
        return 2

    configure_logging(settings.log_level)
    try:
        asyncio.run(Agent(settings).serve())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
