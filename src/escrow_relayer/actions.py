"""
Relay action table.

Each ActionKind maps to exactly one relay-enabled escrow entry point, the
parameters it requires, and how those parameters become call arguments. The
escrow contract signs over the same argument list (minus the signature), so
the EIP-712 field names live here too.
"""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from hexbytes import HexBytes
from web3 import Web3

from .amount import TOKEN_DECIMALS, is_decimal_string
from .errors import ValidationError

# Every action carries these in `params` in addition to its own fields.
COMMON_PARAMS: tuple[str, ...] = ("from", "escrowAddress")

_DIGITS = re.compile(r"[0-9]+")


class ActionKind(str, Enum):
    DEPOSIT = "deposit"
    RELEASE = "release"
    DISPUTE = "dispute"
    REFUND = "refund"

    @classmethod
    def parse(cls, value: Any) -> "ActionKind":
        """Resolve a wire value to an ActionKind; unknown values are rejected."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Unknown action: {value}") from None


def to_address(name: str, value: Any) -> str:
    if not isinstance(value, str) or not Web3.is_address(value):
        raise ValidationError(f"Invalid {name}: {value!r}")
    return Web3.to_checksum_address(value)


def to_uint(name: str, value: Any) -> int:
    """Coerce a JSON integer or decimal-digit string to a non-negative int."""
    match value:
        case bool():
            pass
        case int() if value >= 0:
            return value
        case str() if _DIGITS.fullmatch(value.strip()):
            return int(value.strip())
        case str() if value.strip().lower().startswith("0x"):
            try:
                return int(value.strip(), 16)
            except ValueError:
                pass
    raise ValidationError(f"Invalid {name}: {value!r}")


def to_token_amount(name: str, value: Any) -> int:
    """
    Coerce a token amount given in base units (6 decimals) to an int.

    Human-readable decimal strings such as "1.5" are rejected instead of
    scaled, so the same digits always mean the same on-chain value.
    """
    if isinstance(value, str) and "." in value and is_decimal_string(value):
        raise ValidationError(
            f"Invalid {name}: {value!r} is a decimal amount, expected integer base units "
            f"({TOKEN_DECIMALS} decimals)"
        )
    return to_uint(name, value)


def to_bytes32(name: str, value: Any) -> bytes:
    try:
        raw = HexBytes(value) if isinstance(value, (str, bytes)) else None
    except ValueError:
        raw = None
    if raw is None or len(raw) != 32:
        raise ValidationError(f"Invalid {name}: expected 32-byte hex value")
    return bytes(raw)


def to_signature(value: Any) -> bytes:
    try:
        raw = HexBytes(value) if isinstance(value, (str, bytes)) else None
    except ValueError:
        raw = None
    if not raw:
        raise ValidationError("Invalid signature: expected hex-encoded bytes")
    return bytes(raw)


def _deposit_args(params: Mapping[str, Any]) -> tuple[Any, ...]:
    return (
        to_address("buyer", params["buyer"]),
        to_token_amount("amount", params["amount"]),
    )


def _trade_args(params: Mapping[str, Any]) -> tuple[Any, ...]:
    return (to_bytes32("tradeId", params["tradeId"]),)


@dataclass(frozen=True, slots=True)
class ActionSpec:
    """Everything the relay needs to forward one kind of action.

    Attributes:
        kind: The action this entry describes
        entry_point: Relay-enabled contract function name
        required: Parameters required beyond COMMON_PARAMS
        build_args: Turns validated params into the action-specific arguments
        primary_type: EIP-712 struct name the signer authorized
        typed_fields: EIP-712 (name, type) pairs, signer first, nonce and
            deadline last
    """
    kind: ActionKind
    entry_point: str
    required: tuple[str, ...]
    build_args: Callable[[Mapping[str, Any]], tuple[Any, ...]]
    primary_type: str
    typed_fields: tuple[tuple[str, str], ...]

    def missing_params(self, params: Mapping[str, Any]) -> list[str]:
        return [name for name in self.required if is_blank(params.get(name))]

    def call_args(
        self,
        params: Mapping[str, Any],
        nonce: int,
        deadline: int,
        signature: bytes,
    ) -> list[Any]:
        """Full argument list for the entry point, in contract order."""
        sender = to_address("from", params["from"])
        return [sender, *self.build_args(params), nonce, deadline, signature]


def _trade_spec(kind: ActionKind, entry_point: str, primary_type: str) -> ActionSpec:
    return ActionSpec(
        kind=kind,
        entry_point=entry_point,
        required=("tradeId",),
        build_args=_trade_args,
        primary_type=primary_type,
        typed_fields=(
            ("actor", "address"),
            ("tradeId", "bytes32"),
            ("nonce", "uint256"),
            ("deadline", "uint256"),
        ),
    )


ACTION_SPECS: dict[ActionKind, ActionSpec] = {
    ActionKind.DEPOSIT: ActionSpec(
        kind=ActionKind.DEPOSIT,
        entry_point="depositFor",
        required=("buyer", "amount"),
        build_args=_deposit_args,
        primary_type="DepositFor",
        typed_fields=(
            ("seller", "address"),
            ("buyer", "address"),
            ("amount", "uint256"),
            ("nonce", "uint256"),
            ("deadline", "uint256"),
        ),
    ),
    ActionKind.RELEASE: _trade_spec(ActionKind.RELEASE, "releaseFor", "ReleaseFor"),
    ActionKind.DISPUTE: _trade_spec(ActionKind.DISPUTE, "disputeFor", "DisputeFor"),
    ActionKind.REFUND: _trade_spec(ActionKind.REFUND, "refundFor", "RefundFor"),
}


def get_spec(action: ActionKind) -> ActionSpec:
    return ACTION_SPECS[action]


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
