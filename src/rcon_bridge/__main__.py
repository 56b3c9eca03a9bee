"""Entry point for the RCON bridge.

Usage:
    python -m rcon_bridge
    rcon-bridge

Configuration is read from the environment and an optional .env file;
see rcon_bridge.config for the full list of variables.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from pydantic import ValidationError

from rcon_bridge.bot import run_bridge
from rcon_bridge.config import get_config


def main() -> int:
    """Main entry point."""
    logger = logging.getLogger("rcon_bridge")

    try:
        config = get_config()
    except ValidationError as e:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            stream=sys.stderr,
        )
        logger.error("Missing or invalid configuration. Check .env.\n%s", e)
        return 1

    config.setup_logging()
    logger.debug("Configuration: %s", config.to_dict())

    try:
        return asyncio.run(run_bridge(config))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
