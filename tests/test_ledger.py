"""
Tests for Web3LedgerClient error mapping and receipt conversion

The web3 handle is a MagicMock, so no node is contacted.

Run with: pytest tests/test_ledger.py -v
"""

from unittest.mock import MagicMock

import pytest
import requests
from eth_abi import encode as abi_encode
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted

from winzzers.core.errors import ReadFailure, WriteRejected
from winzzers.core.events import MARKET_CREATED_TOPIC, decode_market_created
from winzzers.services.ledger import Web3LedgerClient

from conftest import BETTOR, CONTRACT, CREATOR, summary

USDC = "0xe4ab69c077896252fafbd49efd26b5d171a32410"
TX_HASH = HexBytes(b"\x12" * 32)


@pytest.fixture
def w3():
    mock = MagicMock()
    mock.eth.contract.side_effect = [MagicMock(name="winzzers"), MagicMock(name="usdc")]
    return mock


@pytest.fixture
def client(w3):
    return Web3LedgerClient(w3=w3, contract_address=CONTRACT, usdc_address=USDC, account=BETTOR)


def _fn(contract, name):
    """The bound contract function ``contract.functions.<name>(...)``."""
    fn = getattr(contract.functions, name).return_value
    fn.fn_name = name
    return fn


def test_contracts_bound_to_checksummed_addresses(w3, client):
    assert client.contract_address == Web3.to_checksum_address(CONTRACT)
    assert client.account == Web3.to_checksum_address(BETTOR)
    addresses = [c.kwargs["address"] for c in w3.eth.contract.call_args_list]
    assert addresses == [Web3.to_checksum_address(CONTRACT), Web3.to_checksum_address(USDC)]


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

class TestReads:

    def test_market_summary(self, client):
        _fn(client._contract, "getMarketSummary").call.return_value = summary()
        assert client.get_market_summary(4) == summary()
        client._contract.functions.getMarketSummary.assert_called_once_with(4)

    def test_market_odds(self, client):
        _fn(client._contract, "getMarketOdds").call.return_value = [[1_850_000, 2_100_000], ["Yes", "No"]]
        odds, names = client.get_market_odds(1)
        assert odds == [1_850_000, 2_100_000]
        assert names == ["Yes", "No"]

    def test_counter_and_balances(self, client):
        _fn(client._contract, "marketCounter").call.return_value = 7
        _fn(client._usdc, "balanceOf").call.return_value = 25_000_000
        _fn(client._usdc, "allowance").call.return_value = 1_000_000

        assert client.market_counter() == 7
        assert client.balance_of(BETTOR) == 25_000_000
        assert client.allowance(BETTOR, CONTRACT) == 1_000_000
        client._usdc.functions.balanceOf.assert_called_once_with(Web3.to_checksum_address(BETTOR))

    @pytest.mark.parametrize("error", [
        ContractLogicError("execution reverted: no such market"),
        requests.exceptions.ConnectionError("connection refused"),
        ValueError({"code": -32000, "message": "header not found"}),
    ])
    def test_read_errors_become_read_failure(self, client, error):
        _fn(client._contract, "getMarketSummary").call.side_effect = error
        with pytest.raises(ReadFailure) as excinfo:
            client.get_market_summary(9)
        assert excinfo.value.market_id == 9
        assert "getMarketSummary for market 9" in str(excinfo.value)

    def test_unexpected_error_propagates(self, client):
        _fn(client._contract, "marketCounter").call.side_effect = KeyError("bug")
        with pytest.raises(KeyError):
            client.market_counter()


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def _receipt(status=1, logs=()):
    return {"status": status, "logs": list(logs)}


class TestWrites:

    def test_place_bet_sends_from_account(self, w3, client):
        fn = _fn(client._contract, "placeBet")
        fn.transact.return_value = TX_HASH
        w3.eth.wait_for_transaction_receipt.return_value = _receipt()

        receipt = client.place_bet(3, 1, 25_000_000, 1_995_000)

        client._contract.functions.placeBet.assert_called_once_with(3, 1, 25_000_000, 1_995_000)
        fn.transact.assert_called_once_with({"from": Web3.to_checksum_address(BETTOR)})
        w3.eth.wait_for_transaction_receipt.assert_called_once_with(
            TX_HASH, timeout=client.receipt_timeout
        )
        assert receipt.tx_hash == "0x" + "12" * 32
        assert receipt.succeeded

    def test_reverted_status_is_reported(self, w3, client):
        _fn(client._contract, "claim").transact.return_value = TX_HASH
        w3.eth.wait_for_transaction_receipt.return_value = _receipt(status=0)

        receipt = client.claim(5)

        assert receipt.status == 0
        assert not receipt.succeeded

    def test_approve_targets_spender_on_token(self, w3, client):
        _fn(client._usdc, "approve").transact.return_value = TX_HASH
        w3.eth.wait_for_transaction_receipt.return_value = _receipt()

        client.approve(CONTRACT, 50_000_000)

        client._usdc.functions.approve.assert_called_once_with(
            Web3.to_checksum_address(CONTRACT), 50_000_000
        )

    def test_no_account_configured(self, w3, monkeypatch):
        monkeypatch.delenv("WINZZERS_ACCOUNT", raising=False)
        client = Web3LedgerClient(w3=w3, contract_address=CONTRACT, usdc_address=USDC)
        fn = _fn(client._contract, "claim")

        with pytest.raises(WriteRejected, match="no sending account"):
            client.claim(1)
        fn.transact.assert_not_called()

    def test_refused_submission(self, w3, client):
        _fn(client._contract, "placeBet").transact.side_effect = ValueError(
            {"code": -32000, "message": "insufficient funds for gas"}
        )

        with pytest.raises(WriteRejected) as excinfo:
            client.place_bet(1, 0, 1, 1)

        assert excinfo.value.tx_hash is None
        w3.eth.wait_for_transaction_receipt.assert_not_called()

    def test_receipt_timeout(self, w3, client):
        _fn(client._contract, "placeBet").transact.return_value = TX_HASH
        w3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("not mined in 120s")

        with pytest.raises(WriteRejected) as excinfo:
            client.place_bet(1, 0, 1, 1)

        assert excinfo.value.tx_hash == "0x" + "12" * 32

    def test_create_market_logs_are_decodable(self, w3, client):
        _fn(client._contract, "createMarket").transact.return_value = TX_HASH
        w3.eth.wait_for_transaction_receipt.return_value = _receipt(logs=[{
            "address": Web3.to_checksum_address(CONTRACT),
            "topics": [
                MARKET_CREATED_TOPIC,
                HexBytes(abi_encode(["uint256"], [12])),
                HexBytes(abi_encode(["address"], [CREATOR])),
            ],
            "data": HexBytes(abi_encode(["uint256", "uint256"], [2, 100])),
        }])

        receipt = client.create_market(("Yes", "No"), 1_000_000_000, 100)

        client._contract.functions.createMarket.assert_called_once_with(
            ["Yes", "No"], 1_000_000_000, 100
        )
        entry = receipt.logs[0]
        assert isinstance(entry, dict)
        assert entry["data"].startswith("0x")
        assert decode_market_created(receipt.logs, client.contract_address) == 12
