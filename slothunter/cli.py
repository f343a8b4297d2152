# slothunter/cli.py
# --------------------------------------------------------------------------- #
# Command-line entry point: load the configuration, then hunt until killed.   #
# --------------------------------------------------------------------------- #

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Iterable, Optional

from slothunter import __version__
from slothunter.chain.graphql import GraphQLBidLookup
from slothunter.chain.substrate import SubstrateChainClient, is_connectivity_error
from slothunter.config import CONFIG_PATH, LOG_LEVEL
from slothunter.configuration import Configuration, load_configuration
from slothunter.errors import HunterError
from slothunter.hunter.cursor import ConnectionSupervisor
from slothunter.hunter.hunter import Hunter
from slothunter.hunter.logging import hunter_logger
from slothunter.notification import Notifier
from slothunter.utils.colors import ColoredLogger as clog
from slothunter.utils.colors import setup_logging


def _arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="slothunter",
        description="Autonomous Polkadot / Kusama parachain slot auction bidder",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("--config", default=CONFIG_PATH,
                   help="configuration file (.yml) or directory holding config.yml")
    p.add_argument("--log-level", default=LOG_LEVEL,
                   choices=["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR"],
                   type=str.upper)
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def build_supervisor(configuration: Configuration) -> ConnectionSupervisor:
    lookup = GraphQLBidLookup(configuration.graphql_endpoint)
    hunter = Hunter(configuration, Notifier(configuration.notification))

    async def connect() -> SubstrateChainClient:
        return await SubstrateChainClient.connect(configuration, lookup)

    return ConnectionSupervisor(connect, hunter.run, connectivity_error=is_connectivity_error)


async def _hunt(configuration: Configuration) -> None:
    await build_supervisor(configuration).run()


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = _arg_parser().parse_args(argv)
    setup_logging(args.log_level)
    hunter_logger.verbose = args.log_level in ("TRACE", "DEBUG")

    try:
        configuration = load_configuration(args.config)
        asyncio.run(_hunt(configuration))
    except KeyboardInterrupt:
        clog.info("interrupted, bye")
        return 0
    except HunterError as e:
        clog.error(f"{type(e).__name__}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
