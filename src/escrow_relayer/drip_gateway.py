"""
Onboarding drip.

Sends a small, fixed amount of native currency to first-time addresses so
they can pay for their first approval. Each address is served at most once
per store lifetime. The address is claimed before the transfer is sent and
released again if the transfer fails, which stands in for an atomic
claim-and-spend. A request cancelled mid-transfer does not release the
claim while the transfer may still be accepted by the node.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from web3 import Web3

from .amount import NATIVE_DECIMALS, format_amount
from .config import DripConfig
from .errors import (
    AlreadyFundedError,
    RateLimitError,
    ResourceExhaustionError,
    ValidationError,
)
from .models import DripResult
from .rate_limit import InMemoryRateLimitStore, RateLimitStore

if TYPE_CHECKING:
    from .chain import ChainConnection

logger = logging.getLogger(__name__)


class DripGateway:
    """Validates, rate-limits and funds first-time addresses."""

    def __init__(
        self,
        chain: "ChainConnection",
        drip: DripConfig | None = None,
        store: RateLimitStore | None = None,
    ) -> None:
        """
        Initialize the DripGateway.

        Args:
            chain: Shared connection and relayer identity
            drip: Payout amount and eligibility threshold
            store: Served-address store; defaults to an in-memory one
        """
        self.chain = chain
        self.drip = drip or DripConfig()
        self.store: RateLimitStore = store if store is not None else InMemoryRateLimitStore()

    @property
    def amount_display(self) -> str:
        return format_amount(self.drip.amount_wei, NATIVE_DECIMALS)

    async def handle_payload(self, body: Any) -> DripResult:
        address = body.get("address") if isinstance(body, Mapping) else None
        return await self.handle(address)

    async def handle(self, address: Any) -> DripResult:
        """
        Fund `address` with the drip amount.

        Raises:
            ValidationError: Malformed address
            RateLimitError: Address already served
            AlreadyFundedError: Address already holds the minimum balance
            ResourceExhaustionError: Relayer cannot cover the drip
            ConfigurationError: Relayer identity unavailable
            ChainError: Balance query or transfer failed
        """
        if not isinstance(address, str) or not Web3.is_address(address):
            raise ValidationError("Invalid address")

        recipient = Web3.to_checksum_address(address)
        key = recipient.lower()
        if self.store.contains(key):
            logger.info(f"[drip] rejected {address}: already served")
            raise RateLimitError("Already dripped to this address")

        await self.chain.ensure_identity()

        balance = await self.chain.get_balance(recipient)
        if balance >= self.drip.min_balance_wei:
            logger.info(f"[drip] rejected {address}: balance {balance} wei")
            raise AlreadyFundedError("Address already has enough ETH", balance=balance)

        relayer_balance = await self.chain.relayer_balance()
        if relayer_balance < self.drip.amount_wei:
            logger.warning(
                f"[drip] relayer balance {relayer_balance} wei below drip amount "
                f"{self.drip.amount_wei} wei"
            )
            raise ResourceExhaustionError("Relayer ETH balance insufficient")

        # A concurrent request may have claimed the address while the
        # balance queries were in flight; only one claim wins.
        if not self.store.claim(key):
            logger.info(f"[drip] rejected {address}: claimed by a concurrent request")
            raise RateLimitError("Already dripped to this address")

        # The transfer outlives a cancelled request; the mark is dropped only
        # when the transfer itself fails or is cancelled.
        send = asyncio.ensure_future(self.chain.send_value(recipient, self.drip.amount_wei))
        send.add_done_callback(lambda task: self._settle(key, address, task))
        tx_hash = await asyncio.shield(send)

        logger.info(f"[drip] sent {self.amount_display} ETH to {address} tx={tx_hash}")
        return DripResult(
            tx_hash=tx_hash,
            amount=self.amount_display,
            amount_wei=self.drip.amount_wei,
        )

    def _settle(self, key: str, address: str, send: "asyncio.Future[str]") -> None:
        if send.cancelled() or send.exception() is not None:
            self.store.release(key)
            logger.warning(f"[drip] transfer to {address} failed, released rate-limit mark")
