"""Configuration management for the escrow relayer.

This module provides type-safe configuration dataclasses with validation.
Configuration is loaded from environment variables with sensible defaults
where appropriate. A missing signing key is deliberately not a load-time
failure: it is reported per request once a gateway needs the identity.
"""

import logging
import os
from dataclasses import dataclass, field
from urllib.parse import urlparse

from web3 import Web3

logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = "https://arb1.arbitrum.io/rpc"
DEFAULT_DRIP_AMOUNT_WEI = Web3.to_wei("0.001", "ether")
DEFAULT_MIN_BALANCE_WEI = Web3.to_wei("0.0005", "ether")

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class ChainConfig:
    """Connection settings for the chain hosting the escrow contract.

    Attributes:
        rpc_url: HTTP(S) RPC endpoint
        chain_id: Chain ID, or None to fetch it from the RPC when needed
        request_timeout: Upper bound in seconds for one gateway request
    """

    rpc_url: str = DEFAULT_RPC_URL
    chain_id: int | None = None
    request_timeout: int = 30

    def __post_init__(self) -> None:
        if not self.rpc_url:
            raise ValueError("RPC URL is required (RPC_URL)")

        parsed = urlparse(self.rpc_url)
        if parsed.scheme not in ("http", "https"):
            raise ValueError(
                f"Invalid RPC URL scheme: {parsed.scheme}. "
                "Expected http or https"
            )

        if self.chain_id is not None and self.chain_id <= 0:
            raise ValueError(f"Chain ID must be positive, got {self.chain_id}")

        if self.request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {self.request_timeout}")
        if self.request_timeout > 120:
            raise ValueError(f"Request timeout too long (max 120s), got {self.request_timeout}")


@dataclass(frozen=True, slots=True)
class RelayerKeyConfig:
    """Where the relayer's signing key comes from.

    In local mode the key is read from the environment; otherwise it is
    generated by the ROFL key service under `rofl_key_id`.
    """

    private_key: str | None = None
    rofl_key_id: str = "escrow-relayer"

    def __post_init__(self) -> None:
        if self.private_key:
            key = self.private_key.removeprefix("0x")
            if len(key) != 64:
                raise ValueError(
                    f"Invalid private key length. Expected 64 hex characters, got {len(key)}"
                )
            try:
                int(key, 16)
            except ValueError:
                raise ValueError("Invalid private key format. Must be hexadecimal") from None

        if not self.rofl_key_id:
            raise ValueError("ROFL key id must not be empty (ROFL_KEY_ID)")


@dataclass(frozen=True, slots=True)
class DripConfig:
    """Faucet thresholds, in wei."""

    amount_wei: int = DEFAULT_DRIP_AMOUNT_WEI
    min_balance_wei: int = DEFAULT_MIN_BALANCE_WEI

    def __post_init__(self) -> None:
        if self.amount_wei <= 0:
            raise ValueError(f"Drip amount must be positive, got {self.amount_wei}")
        if self.min_balance_wei <= 0:
            raise ValueError(f"Minimum balance must be positive, got {self.min_balance_wei}")


@dataclass(frozen=True, slots=True)
class AuthorizationConfig:
    """EIP-712 domain of the escrow contract and the optional local pre-check."""

    verify_signatures: bool = False
    domain_name: str = "MiniSwapEscrow"
    domain_version: str = "1"


@dataclass(frozen=True, slots=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: tuple[str, ...] = ("*",)

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise ValueError(f"Port out of range, got {self.port}")


@dataclass(frozen=True, slots=True)
class RelayerConfig:
    """Main configuration for the escrow relayer.

    Attributes:
        chain: RPC connection settings
        relayer_key: Signing key source
        drip: Faucet thresholds
        authorization: Escrow signing domain and pre-check switch
        server: HTTP listener settings
        local_mode: Read the key from the environment instead of ROFL
    """

    chain: ChainConfig = field(default_factory=ChainConfig)
    relayer_key: RelayerKeyConfig = field(default_factory=RelayerKeyConfig)
    drip: DripConfig = field(default_factory=DripConfig)
    authorization: AuthorizationConfig = field(default_factory=AuthorizationConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    local_mode: bool = False

    @classmethod
    def from_env(cls, local_mode: bool = False) -> "RelayerConfig":
        """Load configuration from environment variables.

        Args:
            local_mode: Whether the signing key comes from the environment

        Returns:
            RelayerConfig instance with loaded values

        Raises:
            ValueError: If an environment variable is present but invalid
        """
        rpc_url = os.environ.get("RPC_URL") or os.environ.get("ARBITRUM_RPC_URL") or DEFAULT_RPC_URL
        chain_id = os.environ.get("CHAIN_ID")

        chain_config = ChainConfig(
            rpc_url=rpc_url,
            chain_id=int(chain_id) if chain_id else None,
            request_timeout=int(os.environ.get("REQUEST_TIMEOUT", "30")),
        )

        key_config = RelayerKeyConfig(
            private_key=(
                os.environ.get("RELAYER_PRIVATE_KEY")
                or os.environ.get("DEPLOYER_PRIVATE_KEY")
                or None
            ),
            rofl_key_id=os.environ.get("ROFL_KEY_ID", "escrow-relayer"),
        )

        drip_config = DripConfig(
            amount_wei=int(os.environ.get("DRIP_AMOUNT_WEI", str(DEFAULT_DRIP_AMOUNT_WEI))),
            min_balance_wei=int(os.environ.get("DRIP_MIN_BALANCE_WEI", str(DEFAULT_MIN_BALANCE_WEI))),
        )

        auth_config = AuthorizationConfig(
            verify_signatures=os.environ.get("VERIFY_SIGNATURES", "").lower() in _TRUE_VALUES,
            domain_name=os.environ.get("ESCROW_DOMAIN_NAME", "MiniSwapEscrow"),
            domain_version=os.environ.get("ESCROW_DOMAIN_VERSION", "1"),
        )

        origins = os.environ.get("CORS_ORIGINS", "*")
        server_config = ServerConfig(
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "8000")),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) or ("*",),
        )

        return cls(
            chain=chain_config,
            relayer_key=key_config,
            drip=drip_config,
            authorization=auth_config,
            server=server_config,
            local_mode=local_mode,
        )

    def log_config(self) -> None:
        """Log configuration settings (hiding sensitive data)."""
        logger.info("=" * 60)
        logger.info("Escrow Relayer Configuration")
        logger.info("=" * 60)

        logger.info("Chain:")
        logger.info(f"  RPC URL: {self.chain.rpc_url}")
        logger.info(f"  Chain ID: {self.chain.chain_id or '[FROM RPC]'}")
        logger.info(f"  Request Timeout: {self.chain.request_timeout} seconds")

        logger.info("Relayer Identity:")
        logger.info(f"  Mode: {'LOCAL' if self.local_mode else 'ROFL'}")
        if self.local_mode:
            logger.info(f"  Private Key: {'[SET]' if self.relayer_key.private_key else '[NOT SET]'}")
        else:
            logger.info(f"  ROFL Key ID: {self.relayer_key.rofl_key_id}")

        logger.info("Drip:")
        logger.info(f"  Amount: {Web3.from_wei(self.drip.amount_wei, 'ether')} ETH")
        logger.info(f"  Minimum Balance: {Web3.from_wei(self.drip.min_balance_wei, 'ether')} ETH")

        logger.info("Authorization:")
        logger.info(f"  Domain: {self.authorization.domain_name} v{self.authorization.domain_version}")
        logger.info(f"  Local Signature Check: {'ON' if self.authorization.verify_signatures else 'OFF'}")

        logger.info("Server:")
        logger.info(f"  Listen: {self.server.host}:{self.server.port}")
        logger.info(f"  CORS Origins: {', '.join(self.server.cors_origins)}")
        logger.info("=" * 60)
