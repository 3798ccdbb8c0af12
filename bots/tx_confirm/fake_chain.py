#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""In-memory chain client and sample ABIs used by the unit tests."""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from eth_abi import encode as abi_encode
from web3 import Web3

sys.path.insert(0, str(Path(__file__).parent))

from chain_client import Receipt, TxDetails  # noqa: E402
from tx_errors import CallRevertedError, ReceiptNotFoundError  # noqa: E402
from tx_policy import ConfirmationPolicy  # noqa: E402

TX_HASH = "0x" + "ab" * 32
SENDER = "0x" + "11" * 20
TOKEN = "0x" + "22" * 20

INSUFFICIENT_BALANCE = {
    "type": "error",
    "name": "InsufficientBalance",
    "inputs": [
        {"name": "available", "type": "uint256"},
        {"name": "required", "type": "uint256"},
    ],
}

UNAUTHORIZED = {"type": "error", "name": "Unauthorized", "inputs": []}

TOKEN_ABI = [
    {"type": "function", "name": "transfer", "inputs": [], "outputs": [], "stateMutability": "nonpayable"},
    INSUFFICIENT_BALANCE,
    UNAUTHORIZED,
]


def encode_error(signature: str, types: List[str], values: List[Any]) -> bytes:
    return bytes(Web3.keccak(text=signature)[:4]) + abi_encode(types, values)


class FakeChainClient:
    """Scripted ChainClient: receipts appear after ``receipt_after`` polls (never when None)."""

    def __init__(
        self,
        chain_id: int = 31337,
        receipt: Optional[Receipt] = None,
        receipt_after: int = 0,
        transaction: Optional[TxDetails] = None,
        gas_price: int = 0,
        call_outcomes: Optional[Dict[Any, Any]] = None,
        receipt_error: Optional[Exception] = None,
        receipt_errors: Sequence[Exception] = (),
        transaction_error: Optional[Exception] = None,
    ):
        self.chain_id = chain_id
        self.receipt = receipt
        self.receipt_after = receipt_after
        self.transaction = transaction
        self.gas_price = gas_price
        self.call_outcomes = call_outcomes or {}
        self.receipt_error = receipt_error
        self.receipt_errors = list(receipt_errors)
        self.transaction_error = transaction_error
        self.receipt_calls = 0
        self.transaction_calls = 0
        self.static_calls: List[tuple] = []
        self.on_receipt_call = None

    async def get_chain_id(self) -> int:
        return self.chain_id

    async def get_receipt(self, tx_hash: str) -> Optional[Receipt]:
        self.receipt_calls += 1
        if self.on_receipt_call is not None:
            self.on_receipt_call(self.receipt_calls)
        if self.receipt_error is not None:
            raise self.receipt_error
        if self.receipt_errors:
            raise self.receipt_errors.pop(0)
        if self.receipt is None or self.receipt_calls <= self.receipt_after:
            raise ReceiptNotFoundError(f"Transaction receipt {tx_hash} not found", tx_hash)
        return self.receipt

    async def get_transaction(self, tx_hash: str) -> Optional[TxDetails]:
        self.transaction_calls += 1
        if self.transaction_error is not None:
            raise self.transaction_error
        return self.transaction

    async def get_gas_price(self) -> int:
        return self.gas_price

    async def get_block(self, number) -> Dict[str, Any]:
        return {"number": number}

    async def static_call(self, params: Dict[str, Any], block_identifier) -> bytes:
        self.static_calls.append((params, block_identifier))
        key = (block_identifier, "gas" in params)
        outcome = self.call_outcomes.get(key, self.call_outcomes.get(block_identifier, b""))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_receipt(status: str = "success", block_number: int = 10, revert_data: Optional[bytes] = None) -> Receipt:
    return Receipt(tx_hash=TX_HASH, status=status, block_number=block_number, gas_used=21000, revert_data=revert_data)


def make_tx(gas_price: int = 900, max_fee_per_gas: Optional[int] = None) -> TxDetails:
    return TxDetails(
        tx_hash=TX_HASH,
        sender=SENDER,
        to=TOKEN,
        data=bytes.fromhex("a9059cbb"),
        value=0,
        gas=100_000,
        gas_price=gas_price,
        max_fee_per_gas=max_fee_per_gas,
    )


def reverted(data: Optional[bytes] = None) -> CallRevertedError:
    return CallRevertedError("execution reverted", data=data)


def fast_policy(chain_id, is_ci, override_seconds=None) -> ConfirmationPolicy:
    return ConfirmationPolicy(poll_interval_ms=0, max_attempts=3, description="test window")


class SleepRecorder:
    """Stands in for ``asyncio.sleep`` and records the requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
