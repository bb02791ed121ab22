"""
Command-line interface: run the MCP server or perform a single paid fetch.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Dict, Iterable, Sequence, Tuple

import requests

from .api import ConfigError, create_fetch_client, fetch, wallet_info
from .core.config import load_fetch_config
from .server import run_server


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [x402-fetch] %(message)s",
        stream=sys.stderr,
    )


def _env_override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _header(value: str) -> Tuple[str, str]:
    if ":" not in value:
        raise argparse.ArgumentTypeError("Headers must look like 'Name: value'")
    name, val = value.split(":", 1)
    name = name.strip()
    if not name:
        raise argparse.ArgumentTypeError("Header name must not be empty")
    return name, val.strip()


def _collect(pairs: Iterable[Tuple[str, str]]) -> Dict[str, str]:
    return {key: value for key, value in pairs}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="x402-fetch",
        description="Fetch URLs and pay x402 challenges in USDC on Base",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file with PRIVATE_KEY, NETWORK, MAX_PAYMENT_USDC (default: .env)",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_env_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )

    commands = parser.add_subparsers(dest="command")
    commands.add_parser("serve", help="Run the MCP server on stdio (default)")
    commands.add_parser("wallet", help="Print the configured wallet address and network")

    get = commands.add_parser("get", help="Fetch a single URL and print the result")
    get.add_argument("url")
    get.add_argument("-X", "--method", default="GET", help="HTTP method (default: GET)")
    get.add_argument(
        "-H",
        "--header",
        action="append",
        type=_header,
        default=None,
        metavar="'NAME: VALUE'",
        help="Request header, may be repeated",
    )
    get.add_argument("-d", "--data", default=None, help="Request body for POST/PUT/PATCH")
    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    overrides = _collect(args.set or ())

    try:
        config = load_fetch_config(env_file=args.env_file, overrides=overrides)
    except (ConfigError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    if args.command == "wallet":
        print(json.dumps(wallet_info(config), indent=2))
        return 0

    client = create_fetch_client(config=config, session=requests.Session())

    if args.command == "get":
        result = fetch(
            args.url,
            method=args.method,
            headers=_collect(args.header or ()),
            body=args.data,
            client=client,
        )
        print(json.dumps(result, indent=2))
        return 0 if result["success"] else 1

    try:
        run_server(client)
    except KeyboardInterrupt:
        logging.info("Server stopped")
    return 0


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
