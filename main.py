#!/usr/bin/env python3
"""Entry point for the escrow relayer service.

Serves the meta-transaction relay and the onboarding drip over HTTP, in
either production (ROFL key) or local (environment key) mode.
"""

import argparse
import logging
import os
import sys


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level: int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


logger = logging.getLogger(__name__)

import uvicorn

from escrow_relayer.api.server import create_app
from escrow_relayer.config import RelayerConfig


def main() -> None:
    """Parse startup arguments, load configuration and serve.

    Raises:
        SystemExit: On configuration errors
    """
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Escrow Relayer - gas-sponsored escrow actions and first-time gas drips",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Environment Variables:
  RPC_URL               - RPC endpoint (fallback: ARBITRUM_RPC_URL)
  RELAYER_PRIVATE_KEY   - Relayer key for local mode (fallback: DEPLOYER_PRIVATE_KEY)
  ROFL_KEY_ID           - Key id requested from ROFL (default: escrow-relayer)
  CHAIN_ID              - Chain id (default: fetched from RPC)
  DRIP_AMOUNT_WEI       - Drip payout (default: 0.001 ETH)
  DRIP_MIN_BALANCE_WEI  - Balance at which an address stops qualifying (default: 0.0005 ETH)
  VERIFY_SIGNATURES     - Check EIP-712 signatures before relaying (default: false)
  REQUEST_TIMEOUT       - Per-request deadline in seconds (default: 30)
  HOST / PORT           - Listen address (default: 0.0.0.0:8000)
  LOG_LEVEL             - Logging level (can be overridden with --log-level)
        """
    )
    parser.add_argument(
        "--local",
        action="store_true",
        default=False,
        help="Read the relayer key from the environment instead of ROFL"
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: INFO)"
    )
    parser.add_argument("--host", default=None, help="Override HOST")
    parser.add_argument("--port", type=int, default=None, help="Override PORT")
    args: argparse.Namespace = parser.parse_args()

    setup_logging(args.log_level)
    logger.info(f"=== Escrow Relayer Starting ({'LOCAL' if args.local else 'ROFL'} mode) ===")

    try:
        config: RelayerConfig = RelayerConfig.from_env(local_mode=args.local)
    except ValueError as e:
        logger.error(f"Configuration Error: {e}")
        logger.error("Please check your environment variables:")
        logger.error("  - RPC_URL: RPC endpoint of the escrow chain")
        logger.error("  - DRIP_AMOUNT_WEI / DRIP_MIN_BALANCE_WEI: positive integers")
        if args.local:
            logger.error("  - RELAYER_PRIVATE_KEY: 64 hex characters")
        sys.exit(1)

    if args.local and not config.relayer_key.private_key:
        logger.warning("RELAYER_PRIVATE_KEY not set; relay and drip requests will fail until it is")

    app = create_app(config)
    uvicorn.run(
        app,
        host=args.host or config.server.host,
        port=args.port or config.server.port,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
