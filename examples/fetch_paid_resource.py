"""
Minimal script that uses the public API to fetch an x402-protected resource.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from x402_fetch import ConfigError, create_fetch_client, fetch, load_fetch_config


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch a URL, paying any x402 challenge")
    parser.add_argument("url", help="Resource to fetch")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing PRIVATE_KEY and friends",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    parser.add_argument(
        "--private-key",
        help="Provide the wallet key without relying on environment data",
    )
    parser.add_argument(
        "--network",
        help="Network to pay on: base or baseSepolia (default: baseSepolia)",
    )
    parser.add_argument(
        "--max-payment",
        type=int,
        help="Spend ceiling in USDC base units (default: 1000000 = 1 USDC)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        config = load_fetch_config(
            env_file=args.env_file,
            private_key=args.private_key,
            network=args.network,
            max_payment=args.max_payment,
        )
    except (ConfigError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    client = create_fetch_client(config=config)
    logging.info("Fetching %s from wallet %s", args.url, config.address)

    result = fetch(args.url, client=client)
    if not result["success"]:
        logging.error("Fetch failed: %s", result["error"])
        return 1

    if result["paymentMade"]:
        logging.info("Paid for %s: %s", args.url, json.dumps(result["payment"]))
    print(result["content"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
