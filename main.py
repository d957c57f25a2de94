"""Command-line interface for checking the fintech database configuration."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Sequence

from fintech.config import ENV_CONFIG_PATH, DatabaseConfig, load_config_from_env
from fintech.connection import ConnectionFailure, ConnectionProvider

logger = logging.getLogger("fintech.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fintech database utilities")
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to the YAML configuration file (default: ${ENV_CONFIG_PATH} or config/database.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="check")

    subparsers.add_parser("check", help="Open a connection and run a test query")
    subparsers.add_parser("show-config", help="Print the effective configuration with the password masked")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    return parser.parse_args(args_list)


def _load_config(config_path: str | None) -> DatabaseConfig:
    path = Path(config_path).expanduser() if config_path else None
    return load_config_from_env(os.environ, config_path=path)


def _check(config: DatabaseConfig) -> int:
    provider = ConnectionProvider(config)
    target = provider.endpoint.describe()
    logger.info("Connecting to %s as %s", target, config.user)

    try:
        provider.ping()
    except ConnectionFailure as exc:
        logger.error("Connection check failed: %s", exc)
        if exc.cause is not None:
            logger.debug("Underlying error: %r", exc.cause)
        return 1

    logger.info("Connection to %s succeeded", target)
    return 0


def _show_config(config: DatabaseConfig) -> int:
    for key, value in config.masked().items():
        print(f"{key:<9}{value}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)

    try:
        config = _load_config(args.config)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    try:
        if args.command == "show-config":
            return _show_config(config)
        return _check(config)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
