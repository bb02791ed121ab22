"""
MCP tool surface: exposes ``x402_fetch`` and ``x402_wallet_info`` to a host
agent over stdio.
"""

from __future__ import annotations

import json
import logging
from typing import Dict, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from .api import fetch, wallet_info
from .core.client import PaymentClient

__all__ = ["SERVER_NAME", "build_server", "run_server"]

logger = logging.getLogger(__name__)

SERVER_NAME = "x402-fetch-mcp"


def build_server(client: PaymentClient) -> FastMCP:
    network = client.config.network
    mcp = FastMCP(
        SERVER_NAME,
        instructions=(
            "Fetch URLs with automatic x402 payment handling. HTTP 402 Payment "
            f"Required responses are paid in {network.asset_symbol} on {network.chain_name}, "
            f"up to {client.config.max_payment} base units per request."
        ),
    )

    @mcp.tool(
        name="x402_fetch",
        description=(
            "Fetch content from a URL with automatic x402 payment handling. Supports "
            "HTTP 402 Payment Required responses and automatically processes USDC "
            "payments on Base network."
        ),
    )
    def x402_fetch(
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Optional[str] = None,
    ) -> str:
        result = fetch(url, method=method, headers=headers, body=body, client=client)
        text = json.dumps(result, indent=2)
        if not result["success"]:
            # Same JSON document, flagged as a tool error for the host.
            raise ToolError(text)
        return text

    @mcp.tool(
        name="x402_wallet_info",
        description=(
            "Get information about the configured x402 payment wallet: its address, "
            "the canonical network id (\"base\" or \"base-sepolia\", which is also what "
            "NETWORK=baseSepolia resolves to) and the chain display name."
        ),
    )
    def x402_wallet_info() -> str:
        return json.dumps(wallet_info(client.config), indent=2)

    return mcp


def run_server(client: PaymentClient) -> None:
    logger.info("Starting %s", SERVER_NAME)
    logger.info("Wallet: %s", client.address)
    logger.info("Network: %s", client.config.network.chain_name)
    build_server(client).run()
