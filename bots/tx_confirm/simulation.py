#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Replay a reverted transaction as static calls to recover a decodable revert payload.

Receipts do not carry revert data and some RPC providers redact it, so the
call is re-executed at several chain states: the block before inclusion,
the inclusion block, the latest state, and the latest state with the
original gas limit (for out-of-gas style failures).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from chain_client import BlockIdentifier, ChainClient, TxDetails
from logging_config import get_logger
from revert_decoder import Abi, DecodedError, RevertDecoder
from tx_errors import CallRevertedError

logger = get_logger(__name__)


@dataclass(frozen=True)
class SimulationAttempt:
    label: str
    block_identifier: BlockIdentifier
    with_gas: bool
    succeeded: bool
    revert_data: Optional[bytes] = None
    error_message: str = ""


@dataclass(frozen=True)
class SimulationReport:
    decoded: Optional[DecodedError]
    notes: tuple


def call_params(tx: TxDetails, with_gas: bool = False) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "from": tx.sender,
        "data": "0x" + tx.data.hex(),
        "value": tx.value,
    }
    if tx.to:
        params["to"] = tx.to
    if with_gas and tx.gas:
        params["gas"] = tx.gas
    return params


def simulation_anchors(block_number: int) -> List[tuple]:
    """(label, block identifier, with_gas) in the order they are tried."""
    anchors: List[tuple] = []
    if block_number > 0:
        anchors.append(("previous block", block_number - 1, False))
    anchors.append(("inclusion block", block_number, False))
    anchors.append(("latest", "latest", False))
    anchors.append(("latest with original gas", "latest", True))
    return anchors


class SimulationAnalyzer:
    def __init__(self, client: ChainClient):
        self.client = client

    async def _attempt(self, tx: TxDetails, label: str, block: BlockIdentifier, with_gas: bool) -> SimulationAttempt:
        try:
            await self.client.static_call(call_params(tx, with_gas), block)
        except CallRevertedError as exc:
            logger.debug("Simulation at %s reverted: %s", label, exc)
            return SimulationAttempt(label, block, with_gas, False, exc.data, str(exc))
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.debug("Simulation at %s failed: %s", label, exc)
            return SimulationAttempt(label, block, with_gas, False, None, str(exc))

        logger.warning(
            "Simulation of reverted transaction %s succeeded at %s",
            tx.tx_hash, label,
            extra={"tx_hash": tx.tx_hash, "anchor": str(block)},
        )
        return SimulationAttempt(label, block, with_gas, True)

    async def simulate(
        self,
        tx: TxDetails,
        receipt_block_number: int,
        cancel: Optional[asyncio.Event] = None,
    ) -> List[SimulationAttempt]:
        """Run the static call at every anchor; stops early if ``cancel`` is set."""
        attempts: List[SimulationAttempt] = []
        for label, block, with_gas in simulation_anchors(receipt_block_number):
            if cancel is not None and cancel.is_set():
                break
            attempts.append(await self._attempt(tx, label, block, with_gas))
        return attempts

    @staticmethod
    def diagnose(
        attempts: Sequence[SimulationAttempt],
        decoder: RevertDecoder,
        prioritized_abis: Sequence[Abi] = (),
    ) -> SimulationReport:
        """Decode the first failure that yields a known error and collect anomaly notes."""
        decoded: Optional[DecodedError] = None
        notes: List[str] = []
        for attempt in attempts:
            if attempt.succeeded:
                notes.append(
                    f"Simulation at {attempt.label} succeeded although the transaction reverted "
                    "(state-dependent failure)."
                )
                continue
            if decoded is None and attempt.revert_data:
                decoded = decoder.decode(attempt.revert_data, prioritized_abis)
        return SimulationReport(decoded=decoded, notes=tuple(notes))
