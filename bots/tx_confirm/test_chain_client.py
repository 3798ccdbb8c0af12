#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Tests for the web3.py chain client adapter (no network; AsyncWeb3 is mocked)."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from web3.exceptions import ContractLogicError, TransactionNotFound

from chain_client import TransactionRef, Web3ChainClient, receipt_from_web3, tx_from_web3
from tx_errors import CallRevertedError, ReceiptNotFoundError

RAW_HASH = bytes.fromhex("ab" * 32)


async def _value(v):
    return v


def _client(**eth) -> Web3ChainClient:
    return Web3ChainClient(w3=SimpleNamespace(eth=SimpleNamespace(**eth)))


def test_transaction_ref_validation():
    assert TransactionRef("0x" + "AB" * 32).tx_hash == "0x" + "ab" * 32
    for bad in ("", "0x1234", "ab" * 32, "0x" + "zz" * 32, "0x" + "ab" * 32 + "\n"):
        with pytest.raises(ValueError):
            TransactionRef(bad)


def test_receipt_normalisation():
    receipt = receipt_from_web3({"transactionHash": RAW_HASH, "status": 0, "blockNumber": 10, "gasUsed": 21000})
    assert receipt.tx_hash == "0x" + "ab" * 32
    assert receipt.status == "reverted"
    assert receipt.block_number == 10
    assert receipt.revert_data is None

    assert receipt_from_web3({"transactionHash": RAW_HASH, "status": 1, "blockNumber": 3}).status == "success"


def test_receipt_keeps_node_revert_reason():
    receipt = receipt_from_web3({"transactionHash": RAW_HASH, "status": 0, "blockNumber": 1, "revertReason": "0xdeadbeef"})
    assert receipt.revert_data == bytes.fromhex("deadbeef")


def test_transaction_normalisation():
    tx = tx_from_web3({
        "hash": RAW_HASH,
        "from": "0x" + "11" * 20,
        "to": "0x" + "22" * 20,
        "input": bytes.fromhex("a9059cbb"),
        "value": 0,
        "gas": 50_000,
        "maxFeePerGas": 3 * 10**9,
        "blockNumber": None,
    })
    assert tx.data == bytes.fromhex("a9059cbb")
    assert tx.gas_price == 0
    assert tx.effective_gas_price == 3 * 10**9
    assert tx.block_number is None


def test_missing_rpc_url_is_an_error():
    with pytest.raises(RuntimeError):
        Web3ChainClient(None)


@pytest.mark.asyncio
async def test_missing_receipt_maps_to_not_found():
    client = _client(get_transaction_receipt=AsyncMock(side_effect=TransactionNotFound("nope")))
    with pytest.raises(ReceiptNotFoundError):
        await client.get_receipt("0x" + "ab" * 32)


@pytest.mark.asyncio
async def test_missing_transaction_is_none():
    client = _client(get_transaction=AsyncMock(side_effect=TransactionNotFound("nope")))
    assert await client.get_transaction("0x" + "ab" * 32) is None


@pytest.mark.asyncio
async def test_static_call_revert_carries_data():
    client = _client(call=AsyncMock(side_effect=ContractLogicError("execution reverted", data="0xcafebabe")))
    with pytest.raises(CallRevertedError) as info:
        await client.static_call({"to": "0x" + "22" * 20}, 9)
    assert info.value.data == bytes.fromhex("cafebabe")


@pytest.mark.asyncio
async def test_static_call_success_and_chain_data():
    call = AsyncMock(return_value=b"\x01")
    client = _client(call=call, chain_id=_value(31337), gas_price=_value(7))
    assert await client.static_call({"to": "0x" + "22" * 20}, "latest") == b"\x01"
    call.assert_awaited_once_with({"to": "0x" + "22" * 20}, "latest")
    assert await client.get_chain_id() == 31337
    assert await client.get_gas_price() == 7
