#!/usr/bin/env python3
"""PC321 MQTT bridge.

Subscribes to the raw register topic published by the meter gateway,
republishes scaled metrics on ``smacker/pc321`` and advertises the energy
and power sensors to Home Assistant.

Every option can also be set through a ``PC321_*`` environment variable or a
``.env`` file in the working directory. Command-line flags win.

Usage:
    pc321-bridge --topic zigbee2mqtt/pc321/raw --broker tcp://10.10.1.1:1883
    pc321-bridge --help
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from collections.abc import Sequence

from dotenv import load_dotenv

from pc321mqtt import __version__
from pc321mqtt.bridge import Pc321Bridge
from pc321mqtt.transports.config import BridgeConfig
from pc321mqtt.transports.exceptions import TransportError
from pc321mqtt.transports.mqtt import MqttTransport

_LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="pc321-bridge",
        description="Republish Owon PC321 register readings as scaled MQTT metrics.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pc321-bridge --topic zigbee2mqtt/pc321/raw
      Connect to tcp://localhost:1883 and bridge the given topic

  pc321-bridge --topic pc321/raw --broker tcp://10.10.1.1:1883 \\
      --user meter --password secret --id pc321-bridge --clean
      Authenticated connection with a clean session

  PC321_TOPIC=pc321/raw pc321-bridge -v
      Topic from the environment, debug logging
""",
    )

    conn_group = parser.add_argument_group("Connection Options")
    conn_group.add_argument(
        "--topic",
        "-t",
        help="Topic to subscribe to for raw register payloads (env: PC321_TOPIC)",
    )
    conn_group.add_argument(
        "--broker",
        "-b",
        help="Broker URI, e.g. tcp://10.10.1.1:1883 (env: PC321_BROKER)",
    )
    conn_group.add_argument(
        "--user",
        "-u",
        help="Broker username (env: PC321_USER)",
    )
    conn_group.add_argument(
        "--password",
        "-p",
        help="Broker password (env: PC321_PASSWORD)",
    )
    conn_group.add_argument(
        "--id",
        dest="client_id",
        help="MQTT client id (env: PC321_CLIENT_ID)",
    )
    conn_group.add_argument(
        "--clean",
        action="store_true",
        default=None,
        help="Start with a clean session (env: PC321_CLEAN_SESSION)",
    )
    conn_group.add_argument(
        "--timeout",
        type=float,
        help="Connect/subscribe/publish timeout in seconds (env: PC321_TIMEOUT)",
    )

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--no-discovery",
        action="store_true",
        help="Do not publish Home Assistant discovery configs at startup",
    )
    output_group.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (env: PC321_LOG_LEVEL, default: INFO)",
    )
    output_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Shortcut for --log-level DEBUG",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def build_config(args: argparse.Namespace) -> BridgeConfig:
    """Merge parsed arguments over the environment configuration.

    Raises:
        ValueError: If an environment variable cannot be parsed
    """
    config = BridgeConfig.from_env()
    if args.topic is not None:
        config.topic = args.topic
    if args.broker is not None:
        config.broker = args.broker
    if args.user is not None:
        config.username = args.user
    if args.password is not None:
        config.password = args.password
    if args.client_id is not None:
        config.client_id = args.client_id
    if args.clean is not None:
        config.clean_session = args.clean
    if args.timeout is not None:
        config.timeout = args.timeout
    if args.no_discovery:
        config.publish_discovery = False
    return config


def configure_logging(args: argparse.Namespace, default: str = "INFO") -> None:
    """Configure the root logger from --verbose / --log-level.

    Raises:
        ValueError: If PC321_LOG_LEVEL is not a known level name
    """
    level = "DEBUG" if args.verbose else args.log_level or os.getenv("PC321_LOG_LEVEL", default)
    level = level.upper()
    if level not in logging.getLevelNamesMapping():
        raise ValueError(f"Unknown log level: {level!r}")
    logging.basicConfig(level=level, format=LOG_FORMAT)


async def run_bridge(config: BridgeConfig) -> int:
    """Connect, subscribe and process messages until a stop signal arrives.

    Returns:
        Process exit code
    """
    transport = MqttTransport.from_config(config)
    try:
        await transport.connect()
    except TransportError as err:
        _LOGGER.error("Connect failed: %s", err)
        return 1

    bridge = Pc321Bridge(
        transport,
        config.topic,
        publish_discovery=config.publish_discovery,
    )
    try:
        await bridge.start()
    except TransportError as err:
        _LOGGER.error("Subscription failed: %s", err)
        await transport.disconnect()
        return 1

    loop = asyncio.get_running_loop()
    worker = asyncio.create_task(bridge.run())
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, worker.cancel)

    try:
        await worker
    except asyncio.CancelledError:
        _LOGGER.info("Shutdown requested")
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        await transport.disconnect()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    load_dotenv()
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(args)
        config = build_config(args)
        config.validate()
    except ValueError as err:
        _LOGGER.error("Invalid configuration: %s", err)
        return 1

    return asyncio.run(run_bridge(config))


if __name__ == "__main__":
    sys.exit(main())
