"""Command line entry point."""

import argparse
import asyncio
import logging
import sys

from .bridge import Bridge
from .config import ConfigError, default_config_path, load_config

_LOGGER = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="linux-ha-bridge",
        description="Expose this Linux desktop to Home Assistant over MQTT.",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help=f"configuration file (default: {default_config_path()})",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="enable debug logging"
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    try:
        config = load_config(args.config)
    except ConfigError as err:
        _LOGGER.error("%s", err)
        return 1

    if not args.verbose:
        logging.getLogger().setLevel(config.log_level)

    asyncio.run(Bridge(config).run())
    return 0


if __name__ == "__main__":
    sys.exit(main())
