"""
Client for the relay and drip endpoints.

Signs escrow actions with the user's key and hands them to a relayer, which
pays the gas. Mirrors what the browser wallet does: read the signer's
current meta-nonce from the escrow, give the authorization a one-hour
deadline, sign the typed data, POST it.
"""

import logging
import time
from collections.abc import Mapping
from typing import Any

import httpx
from eth_account.signers.local import LocalAccount
from web3 import Web3

from .actions import ActionKind, get_spec
from .amount import TOKEN_DECIMALS, parse_amount
from .authorization import build_domain, build_typed_data, sign_authorization
from .utils.contract_utility import ContractUtility

logger = logging.getLogger(__name__)

AUTHORIZATION_TTL = 3600  # seconds


class RelayClientError(Exception):
    """The relayer rejected a request."""

    def __init__(self, message: str, status_code: int, payload: Mapping[str, Any] | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = dict(payload or {})


def sign_action(
    account: LocalAccount,
    action: ActionKind | str,
    params: Mapping[str, Any],
    nonce: int,
    deadline: int,
    chain_id: int,
    escrow_address: str,
    domain_name: str = "MiniSwapEscrow",
    domain_version: str = "1",
) -> str:
    """
    Produce the EIP-712 signature the escrow expects for a relay action.

    `params` holds the action-specific fields (buyer/amount or tradeId);
    the account's address is used as the signer.

    Returns:
        0x-prefixed signature
    """
    spec = get_spec(ActionKind.parse(action))
    full_params = {"from": account.address, "escrowAddress": escrow_address, **params}
    call_args = spec.call_args(full_params, nonce, deadline, b"")
    domain = build_domain(chain_id, Web3.to_checksum_address(escrow_address), domain_name, domain_version)
    return Web3.to_hex(sign_authorization(account, build_typed_data(spec, call_args, domain)))


class RelayClient:
    """Async HTTP client for a relayer deployment."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the RelayClient.

        Args:
            base_url: Relayer root URL, e.g. https://relayer.example.com
            timeout: Per-request timeout in seconds
            http_client: Pre-configured client to use instead of a new one
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_client = http_client

    async def _post(self, path: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        if self._http_client is not None:
            response = await self._http_client.post(
                self.base_url + path, json=payload, timeout=self.timeout
            )
        else:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.base_url + path, json=payload, timeout=self.timeout
                )

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_error:
            message = data.get("error") if isinstance(data, dict) else None
            raise RelayClientError(
                message or f"Request failed ({response.status_code})",
                response.status_code,
                data if isinstance(data, dict) else None,
            )
        return data

    async def relay(
        self,
        action: ActionKind | str,
        params: Mapping[str, Any],
        nonce: int,
        deadline: int,
        signature: str,
    ) -> str:
        """
        Submit an already-signed action.

        `params` must include `from` and `escrowAddress`. Integer values are
        sent as decimal strings so large amounts survive JSON.

        Returns:
            Transaction hash
        """
        action = ActionKind.parse(action)
        payload = {
            "action": action.value,
            "params": {key: _wire_value(value) for key, value in params.items()},
            "nonce": str(nonce),
            "deadline": str(deadline),
            "signature": signature,
        }
        data = await self._post("/relay", payload)
        logger.info(f"Relayed {action.value}: {data['txHash']}")
        return data["txHash"]

    async def drip(self, address: str) -> tuple[str, str]:
        """
        Ask for the first-time gas allowance.

        Returns:
            (transaction hash, amount sent as a decimal string)
        """
        data = await self._post("/drip", {"address": address})
        return data["txHash"], data["amount"]

    async def sign_and_relay(
        self,
        account: LocalAccount,
        action: ActionKind | str,
        params: Mapping[str, Any],
        escrow_address: str,
        rpc_url: str,
        chain_id: int | None = None,
        deadline: int | None = None,
    ) -> str:
        """
        Read the signer's meta-nonce, sign the action and relay it.

        Args:
            account: The user's key
            action: Action to perform
            params: Action-specific fields (buyer/amount or tradeId)
            escrow_address: Escrow contract address
            rpc_url: RPC endpoint used to read the nonce and chain id
            chain_id: Chain id; fetched from the RPC when omitted
            deadline: Expiry timestamp; defaults to one hour from now

        Returns:
            Transaction hash
        """
        contract_util = ContractUtility(rpc_url)
        w3 = contract_util.w3
        escrow = contract_util.escrow_contract(escrow_address)
        nonce = await escrow.functions.metaNonces(account.address).call()
        if chain_id is None:
            chain_id = await w3.eth.chain_id
        if deadline is None:
            deadline = int(time.time()) + AUTHORIZATION_TTL

        signature = sign_action(
            account, action, params, nonce, deadline, chain_id, escrow_address
        )
        full_params = {"from": account.address, "escrowAddress": escrow_address, **params}
        return await self.relay(action, full_params, nonce, deadline, signature)

    async def deposit(
        self,
        account: LocalAccount,
        buyer: str,
        amount: str,
        escrow_address: str,
        rpc_url: str,
        chain_id: int | None = None,
        deadline: int | None = None,
    ) -> str:
        """
        Sign and relay a deposit given a human-readable token amount.

        `amount` is a decimal string such as "100.5"; it is converted to
        6-decimal base units here, since the relay only accepts base units.

        Raises:
            ValueError: If `amount` is not a positive decimal amount
        """
        base_units = parse_amount(amount, TOKEN_DECIMALS)
        if base_units <= 0:
            raise ValueError(f"Invalid deposit amount: {amount!r}")
        return await self.sign_and_relay(
            account,
            ActionKind.DEPOSIT,
            {"buyer": buyer, "amount": base_units},
            escrow_address,
            rpc_url,
            chain_id=chain_id,
            deadline=deadline,
        )


def _wire_value(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, bytes):
        return Web3.to_hex(value)
    return value
