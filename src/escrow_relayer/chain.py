"""
Shared chain connection and relayer identity.

One ChainConnection per process holds the RPC client and the relayer's
signing key. The key is resolved lazily on first use so a missing key is
reported per request as a configuration fault instead of preventing the
service from starting.
"""

import asyncio
import logging
from typing import Any

from web3 import Web3

from .config import RelayerConfig
from .errors import ChainError, ConfigurationError, describe_chain_failure
from .utils.contract_utility import ContractUtility
from .utils.rofl_utility import RoflUtility

logger = logging.getLogger(__name__)


class ChainConnection:
    """RPC access plus the relayer identity that pays for every submission."""

    def __init__(
        self,
        config: RelayerConfig,
        rofl_util: RoflUtility | None = None,
    ) -> None:
        """
        Initialize the ChainConnection.

        Args:
            config: Relayer configuration
            rofl_util: ROFL utility used to fetch the key (ROFL mode only)
        """
        self.config = config
        self.local_mode = config.local_mode
        self.rofl_util = rofl_util if rofl_util is not None or self.local_mode else RoflUtility()

        self._contract_util: ContractUtility | None = None
        self._identity_lock = asyncio.Lock()
        # Relayer-account submissions go out one at a time so the signing
        # middleware never hands the same account nonce to two transactions.
        self._send_lock = asyncio.Lock()
        self._chain_id: int | None = config.chain.chain_id

    @property
    def relayer_address(self) -> str | None:
        """Relayer address once the identity has been resolved, else None."""
        return self._contract_util.address if self._contract_util else None

    async def ensure_identity(self) -> ContractUtility:
        """
        Resolve the signing identity, once.

        Raises:
            ConfigurationError: If no signing key is available
        """
        if self._contract_util is not None:
            return self._contract_util

        async with self._identity_lock:
            if self._contract_util is None:
                secret = await self._resolve_secret()
                try:
                    contract_util = ContractUtility(self.config.chain.rpc_url, secret)
                except ValueError as e:
                    raise ConfigurationError(f"Relayer key rejected: {e}") from None
                self._contract_util = contract_util
                logger.info(f"Relayer identity loaded: {contract_util.address}")
        return self._contract_util

    async def _resolve_secret(self) -> str:
        if self.local_mode:
            if not self.config.relayer_key.private_key:
                logger.error("RELAYER_PRIVATE_KEY is not set; refusing to relay")
                raise ConfigurationError("RELAYER_PRIVATE_KEY is not set")
            return self.config.relayer_key.private_key

        key_id = self.config.relayer_key.rofl_key_id
        logger.debug(f"Fetching relayer key '{key_id}' from ROFL...")
        try:
            secret = await self.rofl_util.fetch_key(key_id)
        except Exception as e:
            logger.error(f"ROFL key fetch failed: {e}", exc_info=True)
            raise ConfigurationError(f"ROFL key fetch failed: {e}") from e
        if not secret:
            raise ConfigurationError("ROFL key service returned an empty key")
        return secret

    async def get_balance(self, address: str) -> int:
        """Native balance of `address` in wei."""
        contract_util = await self.ensure_identity()
        try:
            return await contract_util.w3.eth.get_balance(Web3.to_checksum_address(address))
        except Exception as e:
            raise self._chain_error("balance query", e) from e

    async def relayer_balance(self) -> int:
        contract_util = await self.ensure_identity()
        return await self.get_balance(contract_util.address)

    async def chain_id(self) -> int:
        if self._chain_id is None:
            contract_util = await self.ensure_identity()
            try:
                self._chain_id = await contract_util.w3.eth.chain_id
            except Exception as e:
                raise self._chain_error("chain id query", e) from e
        return self._chain_id

    async def send_value(self, to: str, value: int) -> str:
        """Transfer `value` wei from the relayer to `to`; returns the tx hash."""
        contract_util = await self.ensure_identity()
        tx = {
            "from": contract_util.address,
            "to": Web3.to_checksum_address(to),
            "value": value,
        }
        try:
            async with self._send_lock:
                tx_hash = await contract_util.w3.eth.send_transaction(tx)
        except Exception as e:
            raise self._chain_error("transfer", e) from e
        return Web3.to_hex(tx_hash)

    async def transact(self, escrow_address: str, entry_point: str, args: list[Any]) -> str:
        """
        Call a state-changing escrow function as the relayer.

        Returns once the node has accepted the transaction into its pool;
        reverts detected during gas estimation surface as ChainError with
        the revert reason.
        """
        contract_util = await self.ensure_identity()
        try:
            contract = contract_util.escrow_contract(escrow_address)
            function = getattr(contract.functions, entry_point)(*args)
            async with self._send_lock:
                tx_hash = await function.transact({"from": contract_util.address})
        except Exception as e:
            raise self._chain_error(entry_point, e) from e
        return Web3.to_hex(tx_hash)

    @staticmethod
    def _chain_error(operation: str, exc: Exception) -> ChainError:
        reason = describe_chain_failure(exc)
        logger.error(f"Chain {operation} failed: {reason}", exc_info=exc)
        return ChainError(reason)
