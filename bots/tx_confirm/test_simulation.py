#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Tests for replaying reverted transactions at several chain states."""

import asyncio

import pytest

from fake_chain import TOKEN_ABI, FakeChainClient, encode_error, make_tx, reverted
from revert_decoder import RevertDecoder
from simulation import SimulationAnalyzer, call_params, simulation_anchors

BALANCE_ERROR = encode_error("InsufficientBalance(uint256,uint256)", ["uint256", "uint256"], [5, 10])


def test_anchor_order():
    assert simulation_anchors(10) == [
        ("previous block", 9, False),
        ("inclusion block", 10, False),
        ("latest", "latest", False),
        ("latest with original gas", "latest", True),
    ]


def test_genesis_block_has_no_previous_anchor():
    assert [a[1] for a in simulation_anchors(0)] == [0, "latest", "latest"]


def test_call_params():
    tx = make_tx()
    assert call_params(tx) == {"from": tx.sender, "to": tx.to, "data": "0xa9059cbb", "value": 0}
    assert call_params(tx, with_gas=True)["gas"] == 100_000


@pytest.mark.asyncio
async def test_simulate_records_every_anchor():
    client = FakeChainClient(call_outcomes={9: reverted(BALANCE_ERROR), 10: RuntimeError("missing trie node")})
    attempts = await SimulationAnalyzer(client).simulate(make_tx(), 10)

    assert [a.block_identifier for a in attempts] == [9, 10, "latest", "latest"]
    assert attempts[0].revert_data == BALANCE_ERROR and not attempts[0].succeeded
    assert attempts[1].revert_data is None and "missing trie node" in attempts[1].error_message
    assert attempts[2].succeeded and attempts[3].succeeded
    assert "gas" in client.static_calls[3][0]


@pytest.mark.asyncio
async def test_diagnose_uses_first_decodable_failure():
    client = FakeChainClient(call_outcomes={
        9: reverted(None),
        10: reverted(BALANCE_ERROR),
        "latest": reverted(encode_error("Unauthorized()", [], [])),
    })
    analyzer = SimulationAnalyzer(client)
    attempts = await analyzer.simulate(make_tx(), 10)
    report = analyzer.diagnose(attempts, RevertDecoder(), [TOKEN_ABI])

    assert report.decoded.error_name == "InsufficientBalance"
    assert report.notes == ()


@pytest.mark.asyncio
async def test_successful_simulations_become_notes():
    client = FakeChainClient(call_outcomes={9: reverted(BALANCE_ERROR)})
    analyzer = SimulationAnalyzer(client)
    attempts = await analyzer.simulate(make_tx(), 10)
    report = analyzer.diagnose(attempts, RevertDecoder(), [TOKEN_ABI])

    assert report.decoded.error_name == "InsufficientBalance"
    assert len(report.notes) == 3
    assert "inclusion block" in report.notes[0]


@pytest.mark.asyncio
async def test_simulation_stops_when_cancelled():
    cancel = asyncio.Event()
    cancel.set()
    client = FakeChainClient()
    attempts = await SimulationAnalyzer(client).simulate(make_tx(), 10, cancel=cancel)
    assert attempts == []
    assert client.static_calls == []
