"""Tests for EIP-712 authorization building, signing and recovery."""

import pytest
from eth_account import Account
from web3 import Web3

from escrow_relayer.actions import ActionKind, get_spec
from escrow_relayer.authorization import (
    build_domain,
    build_typed_data,
    recover_signer,
    sign_authorization,
    verify_authorization,
)
from escrow_relayer.errors import ValidationError

SIGNER_KEY = "0x" + "11" * 32
OTHER_KEY = "0x" + "22" * 32
ESCROW = Web3.to_checksum_address("0x" + "cc" * 20)
BUYER = "0x" + "bb" * 20
TRADE_ID = "0x" + "44" * 32
DEADLINE = 2_000_000_000


@pytest.fixture
def signer():
    return Account.from_key(SIGNER_KEY)


@pytest.fixture
def domain():
    return build_domain(42161, ESCROW)


def _deposit_args(sender, signature=b""):
    spec = get_spec(ActionKind.DEPOSIT)
    params = {"from": sender, "escrowAddress": ESCROW, "buyer": BUYER, "amount": 5_000_000}
    return spec, spec.call_args(params, 4, DEADLINE, signature)


class TestTypedData:
    """Tests for build_domain and build_typed_data."""

    def test_domain(self, domain):
        assert domain == {
            "name": "MiniSwapEscrow",
            "version": "1",
            "chainId": 42161,
            "verifyingContract": ESCROW,
        }

    def test_deposit_message(self, signer, domain):
        spec, args = _deposit_args(signer.address)
        typed = build_typed_data(spec, args, domain)

        assert typed["primaryType"] == "DepositFor"
        assert [f["name"] for f in typed["types"]["DepositFor"]] == [
            "seller", "buyer", "amount", "nonce", "deadline",
        ]
        assert typed["message"] == {
            "seller": signer.address,
            "buyer": Web3.to_checksum_address(BUYER),
            "amount": 5_000_000,
            "nonce": 4,
            "deadline": DEADLINE,
        }

    def test_trade_message(self, signer, domain):
        spec = get_spec(ActionKind.DISPUTE)
        params = {"from": signer.address, "escrowAddress": ESCROW, "tradeId": TRADE_ID}
        typed = build_typed_data(spec, spec.call_args(params, 1, DEADLINE, b""), domain)

        assert typed["primaryType"] == "DisputeFor"
        assert typed["message"] == {
            "actor": signer.address,
            "tradeId": b"\x44" * 32,
            "nonce": 1,
            "deadline": DEADLINE,
        }


class TestSignatures:
    """Tests for signing, recovery and the local pre-check."""

    def test_recover_returns_signer(self, signer, domain):
        spec, args = _deposit_args(signer.address)
        typed = build_typed_data(spec, args, domain)
        signature = sign_authorization(signer, typed)

        assert len(signature) == 65
        assert recover_signer(typed, signature) == signer.address

    def test_verify_accepts_valid_authorization(self, signer, domain):
        spec, unsigned = _deposit_args(signer.address)
        signature = sign_authorization(signer, build_typed_data(spec, unsigned, domain))
        _, args = _deposit_args(signer.address, signature)

        verify_authorization(spec, args, domain, now=DEADLINE - 1)

    def test_verify_rejects_other_signer(self, signer, domain):
        other = Account.from_key(OTHER_KEY)
        spec, unsigned = _deposit_args(signer.address)
        signature = sign_authorization(other, build_typed_data(spec, unsigned, domain))
        _, args = _deposit_args(signer.address, signature)

        with pytest.raises(ValidationError, match="Signer mismatch"):
            verify_authorization(spec, args, domain, now=0)

    def test_verify_rejects_other_domain(self, signer, domain):
        spec, unsigned = _deposit_args(signer.address)
        signature = sign_authorization(signer, build_typed_data(spec, unsigned, domain))
        _, args = _deposit_args(signer.address, signature)

        with pytest.raises(ValidationError, match="Signer mismatch"):
            verify_authorization(spec, args, build_domain(1, ESCROW), now=0)

    def test_verify_rejects_expired(self, signer, domain):
        spec, unsigned = _deposit_args(signer.address)
        signature = sign_authorization(signer, build_typed_data(spec, unsigned, domain))
        _, args = _deposit_args(signer.address, signature)

        with pytest.raises(ValidationError, match=f"expired at {DEADLINE}"):
            verify_authorization(spec, args, domain, now=DEADLINE + 1)

    def test_recover_rejects_garbage_signature(self, signer, domain):
        spec, args = _deposit_args(signer.address)
        with pytest.raises(ValidationError, match="Invalid signature"):
            recover_signer(build_typed_data(spec, args, domain), b"\x00" * 10)
