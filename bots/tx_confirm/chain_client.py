#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Chain client interface used by the confirmation engine, and its web3.py implementation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Union

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import BlockNotFound, ContractLogicError, TransactionNotFound

from input_validation import validate_tx_hash
from logging_config import get_logger
from tx_errors import CallRevertedError, ReceiptNotFoundError, to_bytes

logger = get_logger(__name__)

BlockIdentifier = Union[int, str]

STATUS_SUCCESS = "success"
STATUS_REVERTED = "reverted"


@dataclass(frozen=True)
class TransactionRef:
    tx_hash: str

    def __post_init__(self) -> None:
        if not validate_tx_hash(self.tx_hash):
            raise ValueError(f"Invalid transaction hash: {self.tx_hash!r}")
        object.__setattr__(self, "tx_hash", self.tx_hash.lower())

    def __str__(self) -> str:
        return self.tx_hash


@dataclass(frozen=True)
class Receipt:
    tx_hash: str
    status: str
    block_number: int
    gas_used: int = 0
    # Only some nodes (Besu, a few L2s) attach the revert payload to the receipt
    revert_data: Optional[bytes] = None


@dataclass(frozen=True)
class TxDetails:
    tx_hash: str
    sender: str
    to: Optional[str]
    data: bytes = b""
    value: int = 0
    gas: int = 0
    gas_price: int = 0
    max_fee_per_gas: Optional[int] = None
    block_number: Optional[int] = None

    @property
    def effective_gas_price(self) -> int:
        """Gas price offered by the transaction (legacy or EIP-1559 max fee)."""
        if self.gas_price:
            return self.gas_price
        return self.max_fee_per_gas or 0


class ChainClient(Protocol):
    async def get_chain_id(self) -> int: ...

    async def get_receipt(self, tx_hash: str) -> Optional[Receipt]: ...

    async def get_transaction(self, tx_hash: str) -> Optional[TxDetails]: ...

    async def get_gas_price(self) -> int: ...

    async def get_block(self, number: BlockIdentifier) -> Dict[str, Any]: ...

    async def static_call(self, params: Dict[str, Any], block_identifier: BlockIdentifier) -> bytes: ...


def _hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    return str(value)


def _status_label(raw: Any) -> str:
    if raw in (1, "0x1", True):
        return STATUS_SUCCESS
    if raw in (0, "0x0", False):
        return STATUS_REVERTED
    return str(raw).lower()


def receipt_from_web3(raw: Any) -> Receipt:
    tx_hash = raw.get("transactionHash")
    return Receipt(
        tx_hash=_hex(tx_hash),
        status=_status_label(raw.get("status")),
        block_number=int(raw.get("blockNumber") or 0),
        gas_used=int(raw.get("gasUsed") or 0),
        revert_data=to_bytes(raw.get("revertReason")) or None,
    )


def tx_from_web3(raw: Any) -> TxDetails:
    tx_hash = raw.get("hash")
    data = raw.get("input") or raw.get("data") or b""
    block_number = raw.get("blockNumber")
    max_fee = raw.get("maxFeePerGas")
    return TxDetails(
        tx_hash=_hex(tx_hash),
        sender=str(raw.get("from")),
        to=raw.get("to"),
        data=to_bytes(data),
        value=int(raw.get("value") or 0),
        gas=int(raw.get("gas") or 0),
        gas_price=int(raw.get("gasPrice") or 0),
        max_fee_per_gas=int(max_fee) if max_fee is not None else None,
        block_number=int(block_number) if block_number is not None else None,
    )


class Web3ChainClient:
    """ChainClient backed by an ``AsyncWeb3`` HTTP connection."""

    def __init__(self, rpc_url: Optional[str] = None, *, timeout_s: float = 20.0, w3: Optional[AsyncWeb3] = None):
        if w3 is None:
            if not rpc_url:
                raise RuntimeError("RPC configuration missing: set RPC_URL or pass --rpc")
            w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": timeout_s}))
        self.w3 = w3

    async def get_chain_id(self) -> int:
        return int(await self.w3.eth.chain_id)

    async def get_receipt(self, tx_hash: str) -> Optional[Receipt]:
        try:
            raw = await self.w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound as exc:
            raise ReceiptNotFoundError(f"Transaction receipt {tx_hash} not found", tx_hash) from exc
        if raw is None:
            return None
        return receipt_from_web3(raw)

    async def get_transaction(self, tx_hash: str) -> Optional[TxDetails]:
        try:
            raw = await self.w3.eth.get_transaction(tx_hash)
        except TransactionNotFound:
            return None
        if raw is None:
            return None
        return tx_from_web3(raw)

    async def get_gas_price(self) -> int:
        return int(await self.w3.eth.gas_price)

    async def get_block(self, number: BlockIdentifier) -> Dict[str, Any]:
        try:
            return dict(await self.w3.eth.get_block(number))
        except BlockNotFound:
            return {}

    async def static_call(self, params: Dict[str, Any], block_identifier: BlockIdentifier) -> bytes:
        try:
            result = await self.w3.eth.call(params, block_identifier)
        except ContractLogicError as exc:
            data = exc.data
            if isinstance(data, dict):
                data = data.get("data")
            logger.debug("eth_call at %s reverted: %s", block_identifier, exc)
            raise CallRevertedError(str(exc), data=to_bytes(data) or None) from exc
        return bytes(result)
