"""
Shared data models for the escrow relayer.

This module contains the request and result types passed between the HTTP
layer and the gateways.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .actions import ActionKind


@dataclass(frozen=True, slots=True)
class MetaTxRequest:
    """A signed escrow action waiting to be forwarded.

    Attributes:
        action: Which relay entry point to call
        params: Action parameters, including `from` and `escrowAddress`
        nonce: The signer's meta-transaction nonce, forwarded untouched
        deadline: Unix timestamp after which the authorization expires
        signature: EIP-712 signature bytes
    """
    action: ActionKind
    params: Mapping[str, Any] = field(hash=False)
    nonce: int
    deadline: int
    signature: bytes


@dataclass(frozen=True, slots=True)
class RelayResult:
    tx_hash: str
    action: ActionKind
    sender: str


@dataclass(frozen=True, slots=True)
class DripResult:
    """Outcome of a successful drip.

    Attributes:
        tx_hash: Hash of the funding transfer
        amount: Drip amount as a decimal string in native units
        amount_wei: Drip amount in wei
    """
    tx_hash: str
    amount: str
    amount_wei: int
