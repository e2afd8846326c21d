"""
EIP-712 authorizations for escrow relay actions.

The escrow contract verifies a typed-data signature binding the action, its
parameters, the signer's meta-nonce and a deadline. These helpers build that
structure, sign it on the client side and recover the signer for the
relay's optional pre-check.
"""

import time
from typing import Any

from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_account.signers.local import LocalAccount

from .actions import ActionSpec
from .errors import ValidationError


def build_domain(
    chain_id: int,
    escrow_address: str,
    name: str = "MiniSwapEscrow",
    version: str = "1",
) -> dict[str, Any]:
    return {
        "name": name,
        "version": version,
        "chainId": chain_id,
        "verifyingContract": escrow_address,
    }


def build_typed_data(
    spec: ActionSpec,
    call_args: list[Any],
    domain: dict[str, Any],
) -> dict[str, Any]:
    """
    Build the typed-data document for a relay call.

    Args:
        spec: Action being authorized
        call_args: Entry-point arguments as produced by ActionSpec.call_args;
            the trailing signature is ignored
        domain: EIP-712 domain of the escrow contract

    Returns:
        Dict with domain, types, primaryType and message keys
    """
    signed_values = call_args[: len(spec.typed_fields)]
    message = {
        name: value for (name, _), value in zip(spec.typed_fields, signed_values)
    }
    return {
        "domain": domain,
        "types": {
            spec.primary_type: [
                {"name": name, "type": type_} for name, type_ in spec.typed_fields
            ],
        },
        "primaryType": spec.primary_type,
        "message": message,
    }


def encode_authorization(typed_data: dict[str, Any]) -> SignableMessage:
    return encode_typed_data(
        typed_data["domain"],
        typed_data["types"],
        typed_data["message"],
    )


def sign_authorization(account: LocalAccount, typed_data: dict[str, Any]) -> bytes:
    signed = account.sign_message(encode_authorization(typed_data))
    return bytes(signed.signature)


def recover_signer(typed_data: dict[str, Any], signature: bytes) -> str:
    """Return the checksummed address that produced `signature`."""
    try:
        return Account.recover_message(encode_authorization(typed_data), signature=signature)
    except Exception as e:
        raise ValidationError(f"Invalid signature: {e}") from e


def verify_authorization(
    spec: ActionSpec,
    call_args: list[Any],
    domain: dict[str, Any],
    now: int | None = None,
) -> None:
    """
    Check a relay request the way the escrow contract will.

    Rejects an authorization whose deadline has already passed or whose
    signature does not recover to the declared sender. Nonce freshness is
    left to the contract, which owns the nonce state.

    Raises:
        ValidationError: If the authorization would be rejected on-chain
    """
    sender, deadline, signature = call_args[0], call_args[-2], call_args[-1]
    current = int(time.time()) if now is None else now
    if deadline < current:
        raise ValidationError(f"Authorization expired at {deadline}")

    recovered = recover_signer(build_typed_data(spec, call_args, domain), signature)
    if recovered.lower() != sender.lower():
        raise ValidationError(
            f"Signer mismatch: expected {sender}, got {recovered}"
        )
