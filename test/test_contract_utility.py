#!/usr/bin/env python3
"""Tests for ContractUtility class.

This module tests both full mode (with signing) and read-only mode
of the ContractUtility class, plus loading of the escrow relay ABI.
"""

import unittest
from unittest.mock import MagicMock, Mock, patch

import pytest
from eth_account import Account
from web3 import Web3

from escrow_relayer.utils.contract_utility import ContractUtility

ESCROW = "0x" + "cc" * 20


class TestContractUtility(unittest.TestCase):
    """Test cases for ContractUtility class."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_rpc_url = "https://test.rpc.url"
        self.test_private_key = "0x" + "1" * 64
        self.test_address = Account.from_key(self.test_private_key).address

    @patch('escrow_relayer.utils.contract_utility.AsyncHTTPProvider')
    @patch('escrow_relayer.utils.contract_utility.AsyncWeb3')
    def test_init_read_only_mode(self, mock_web3, mock_provider):
        """Test initialization in read-only mode (no private key)."""
        mock_w3_instance = MagicMock()
        mock_web3.return_value = mock_w3_instance
        mock_provider.return_value = "mock_provider"

        utility = ContractUtility(self.test_rpc_url)

        mock_provider.assert_called_once_with(self.test_rpc_url)
        mock_web3.assert_called_once_with("mock_provider")
        assert utility.w3 == mock_w3_instance
        assert utility.account is None
        assert utility.address is None
        mock_w3_instance.middleware_onion.add.assert_not_called()

    @patch('escrow_relayer.utils.contract_utility.AsyncHTTPProvider')
    @patch('escrow_relayer.utils.contract_utility.AsyncWeb3')
    @patch('escrow_relayer.utils.contract_utility.SignAndSendRawMiddlewareBuilder')
    @patch('escrow_relayer.utils.contract_utility.Account')
    def test_init_full_mode(self, mock_account, mock_middleware_builder, mock_web3, mock_provider):
        """Test initialization in full mode (with private key)."""
        mock_w3_instance = MagicMock()
        mock_web3.return_value = mock_w3_instance

        mock_account_instance = MagicMock()
        mock_account_instance.address = self.test_address
        mock_account.from_key.return_value = mock_account_instance

        mock_middleware = MagicMock()
        mock_middleware_builder.build.return_value = mock_middleware

        utility = ContractUtility(self.test_rpc_url, self.test_private_key)

        mock_account.from_key.assert_called_once_with(self.test_private_key)
        mock_middleware_builder.build.assert_called_once_with(mock_account_instance)
        mock_w3_instance.middleware_onion.add.assert_called_once_with(mock_middleware)
        assert mock_w3_instance.eth.default_account == self.test_address
        assert utility.address == self.test_address

    def test_init_with_real_key(self):
        """A real key yields the matching relayer address."""
        utility = ContractUtility("http://localhost:8545", self.test_private_key)
        assert utility.address == self.test_address
        assert utility.w3.eth.default_account == self.test_address

    def test_init_no_rpc_url(self):
        """Test initialization fails without RPC URL."""
        with pytest.raises(ValueError, match="RPC URL is required"):
            ContractUtility("")

        with pytest.raises(ValueError, match="RPC URL is required"):
            ContractUtility(None)

    @patch('escrow_relayer.utils.contract_utility.AsyncWeb3')
    def test_add_signing_middleware_no_secret(self, mock_web3):
        """Test adding signing middleware fails without secret."""
        mock_web3.return_value = MagicMock()
        utility = ContractUtility(self.test_rpc_url)

        with pytest.raises(ValueError, match="Private key is required for signing transactions"):
            utility._add_signing_middleware("")

    def test_get_contract_abi(self):
        """The packaged escrow ABI exposes every relay entry point."""
        utility = ContractUtility(self.test_rpc_url)
        abi = utility.get_contract_abi("EscrowRelay")

        names = {entry["name"] for entry in abi if entry.get("type") == "function"}
        assert {"depositFor", "releaseFor", "disputeFor", "refundFor", "metaNonces"} <= names

    def test_get_contract_abi_missing(self):
        utility = ContractUtility(self.test_rpc_url)
        with pytest.raises(FileNotFoundError):
            utility.get_contract_abi("DoesNotExist")

    def test_escrow_contract(self):
        """escrow_contract binds the ABI at a checksummed address, loading it once."""
        utility = ContractUtility(self.test_rpc_url)

        with patch.object(utility, "get_contract_abi", wraps=utility.get_contract_abi) as spy:
            contract = utility.escrow_contract(ESCROW)
            utility.escrow_contract(ESCROW)

        assert contract.address == Web3.to_checksum_address(ESCROW)
        assert hasattr(contract.functions, "depositFor")
        spy.assert_called_once_with("EscrowRelay")


if __name__ == '__main__':
    unittest.main()
