"""
web3.py implementation of the ledger interface.

Talks JSON-RPC to a Base node and wraps two contracts:

  WINZZERS_CONTRACT_ADDRESS  - the betting contract (markets, bets, claims)
  WINZZERS_USDC_ADDRESS      - the 6-decimal stake token (balance, allowance, approve)

Writes are sent with ``eth_sendTransaction`` from WINZZERS_ACCOUNT, i.e. the
node or an injected signer owns the key.  This module never sees a private
key.  Every write blocks until the receipt is available.

Error mapping:
  read RPC / transport / decode error   → ReadFailure
  write refused, reverted or timed out  → WriteRejected
"""

import logging
import os
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests
from dotenv import load_dotenv
from web3 import Web3
from web3.exceptions import Web3Exception

from winzzers.core.errors import ReadFailure, WriteRejected
from winzzers.core.ledger_interface import LedgerClient, TxReceipt

load_dotenv()

logger = logging.getLogger(__name__)

RPC_URL = os.getenv("WINZZERS_RPC_URL", "https://mainnet.base.org")
CONTRACT_ADDRESS = os.getenv(
    "WINZZERS_CONTRACT_ADDRESS", "0x6e2456c991fc5d2d0835d4d75558e7ddf28d6956"
)
USDC_ADDRESS = os.getenv(
    "WINZZERS_USDC_ADDRESS", "0xE4aB69C077896252FAFBD49EFD26B5D171A32410"
)
RECEIPT_TIMEOUT_SEC = int(os.getenv("WINZZERS_RECEIPT_TIMEOUT_SEC", "120"))

# Errors a read or write may surface from web3 and its HTTP transport.
# Older web3 releases raise bare ValueError for JSON-RPC error responses.
_LEDGER_ERRORS = (Web3Exception, requests.exceptions.RequestException, ValueError)

WINZZERS_ABI: List[Dict[str, Any]] = [
    {
        "name": "marketCounter",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "getMarketSummary",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "marketId", "type": "uint256"}],
        "outputs": [
            {"name": "creator", "type": "address"},
            {"name": "state", "type": "uint8"},
            {"name": "creatorFee", "type": "uint256"},
            {"name": "virtualLiquidity", "type": "uint256"},
            {"name": "outcomeCount", "type": "uint256"},
            {"name": "outcomeNames", "type": "string[]"},
            {"name": "totalStaked", "type": "uint256"},
            {"name": "winningOutcome", "type": "uint256"},
            {"name": "distributable", "type": "uint256"},
        ],
    },
    {
        "name": "getMarketOdds",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "marketId", "type": "uint256"}],
        "outputs": [
            {"name": "odds", "type": "uint256[]"},
            {"name": "names", "type": "string[]"},
        ],
    },
    {
        "name": "createMarket",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "outcomeNames", "type": "string[]"},
            {"name": "virtualLiquidityPerOutcome", "type": "uint256"},
            {"name": "creatorFeeBps", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "placeBet",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "marketId", "type": "uint256"},
            {"name": "outcomeId", "type": "uint256"},
            {"name": "amount", "type": "uint256"},
            {"name": "minOdds", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "claim",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "ticketId", "type": "uint256"}],
        "outputs": [],
    },
    {
        "name": "MarketCreated",
        "type": "event",
        "anonymous": False,
        "inputs": [
            {"name": "marketId", "type": "uint256", "indexed": True},
            {"name": "creator", "type": "address", "indexed": True},
            {"name": "outcomeCount", "type": "uint256", "indexed": False},
            {"name": "creatorFeeBps", "type": "uint256", "indexed": False},
        ],
    },
]

ERC20_ABI: List[Dict[str, Any]] = [
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "allowance",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "approve",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
]


class Web3LedgerClient(LedgerClient):
    """Ledger client backed by a web3.py ``HTTPProvider``."""

    def __init__(
        self,
        w3: Optional[Web3] = None,
        rpc_url: Optional[str] = None,
        contract_address: Optional[str] = None,
        usdc_address: Optional[str] = None,
        account: Optional[str] = None,
        receipt_timeout: int = RECEIPT_TIMEOUT_SEC,
    ):
        self.w3 = w3 or Web3(
            Web3.HTTPProvider(rpc_url or RPC_URL, request_kwargs={"timeout": 20})
        )
        self.contract_address = Web3.to_checksum_address(contract_address or CONTRACT_ADDRESS)
        self.usdc_address = Web3.to_checksum_address(usdc_address or USDC_ADDRESS)
        account = account or os.getenv("WINZZERS_ACCOUNT")
        self.account = Web3.to_checksum_address(account) if account else None
        self.receipt_timeout = receipt_timeout

        self._contract = self.w3.eth.contract(address=self.contract_address, abi=WINZZERS_ABI)
        self._usdc = self.w3.eth.contract(address=self.usdc_address, abi=ERC20_ABI)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_market_summary(self, market_id: int) -> Sequence[Any]:
        return self._call(self._contract.functions.getMarketSummary(market_id), market_id)

    def get_market_odds(self, market_id: int) -> Tuple[Sequence[int], Sequence[str]]:
        odds, names = self._call(self._contract.functions.getMarketOdds(market_id), market_id)
        return odds, names

    def market_counter(self) -> int:
        return int(self._call(self._contract.functions.marketCounter()))

    def balance_of(self, address: str) -> int:
        return int(self._call(self._usdc.functions.balanceOf(Web3.to_checksum_address(address))))

    def allowance(self, owner: str, spender: str) -> int:
        fn = self._usdc.functions.allowance(
            Web3.to_checksum_address(owner), Web3.to_checksum_address(spender)
        )
        return int(self._call(fn))

    def _call(self, fn, market_id: Optional[int] = None):
        try:
            return fn.call()
        except _LEDGER_ERRORS as exc:
            label = f" for market {market_id}" if market_id is not None else ""
            raise ReadFailure(f"{fn.fn_name}{label} failed: {exc}", market_id) from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_market(
        self,
        outcome_names: Sequence[str],
        virtual_liquidity_per_outcome: int,
        creator_fee_bps: int,
    ) -> TxReceipt:
        fn = self._contract.functions.createMarket(
            list(outcome_names), virtual_liquidity_per_outcome, creator_fee_bps
        )
        return self._transact(fn)

    def place_bet(self, market_id: int, outcome_id: int, amount: int, min_odds: int) -> TxReceipt:
        return self._transact(
            self._contract.functions.placeBet(market_id, outcome_id, amount, min_odds)
        )

    def approve(self, spender: str, amount: int) -> TxReceipt:
        return self._transact(
            self._usdc.functions.approve(Web3.to_checksum_address(spender), amount)
        )

    def claim(self, ticket_id: int) -> TxReceipt:
        return self._transact(self._contract.functions.claim(ticket_id))

    def _transact(self, fn) -> TxReceipt:
        if self.account is None:
            raise WriteRejected(f"{fn.fn_name}: no sending account configured (WINZZERS_ACCOUNT)")

        try:
            tx_hash = fn.transact({"from": self.account})
        except _LEDGER_ERRORS as exc:
            raise WriteRejected(f"{fn.fn_name} was not submitted: {exc}") from exc

        hex_hash = Web3.to_hex(tx_hash)
        logger.info("%s submitted: %s", fn.fn_name, hex_hash)

        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except _LEDGER_ERRORS as exc:
            raise WriteRejected(f"{fn.fn_name} receipt unavailable: {exc}", hex_hash) from exc

        logs = [
            {
                "address": entry["address"],
                "topics": list(entry["topics"]),
                "data": Web3.to_hex(entry["data"]),
            }
            for entry in receipt["logs"]
        ]
        return TxReceipt(tx_hash=hex_hash, status=int(receipt["status"]), logs=logs)
