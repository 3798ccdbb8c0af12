#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Explain why a transaction is not being mined by looking at its gas price."""

from __future__ import annotations

from dataclasses import dataclass

TOO_LOW_RATIO = 50
RECOMMENDED_RATIO = 80


@dataclass(frozen=True)
class GasPriceVerdict:
    adequate: bool
    issue: str
    recommendation: str
    summary: str


def _gwei(wei: int) -> str:
    return f"{wei / 1e9:.2f} gwei"


def analyze_gas_price(tx_gas_price: int, network_gas_price: int) -> GasPriceVerdict:
    """Compare the pending transaction's gas price with the network's."""
    tx_gas_price = max(0, int(tx_gas_price or 0))
    network_gas_price = max(0, int(network_gas_price or 0))

    if tx_gas_price == 0:
        return GasPriceVerdict(
            adequate=False,
            issue="Zero gas price",
            recommendation="Set an explicit gas price (or max fee per gas) and resubmit the transaction.",
            summary="The transaction was sent with a gas price of 0 and will not be picked up by miners.",
        )

    if network_gas_price == 0:
        return GasPriceVerdict(
            adequate=True,
            issue="",
            recommendation="",
            summary=(
                f"Transaction gas price is {_gwei(tx_gas_price)}; "
                "the current network gas price is unavailable, so it could not be compared."
            ),
        )

    ratio = tx_gas_price * 100 // network_gas_price
    prices = (
        f"transaction {_gwei(tx_gas_price)} vs network {_gwei(network_gas_price)} "
        f"({ratio}% of current price)"
    )

    if ratio < TOO_LOW_RATIO:
        return GasPriceVerdict(
            adequate=False,
            issue="Gas price too low",
            recommendation="Resubmit the transaction with a higher gas price (same nonce to replace it).",
            summary=f"Gas price too low: {prices}. The transaction is unlikely to be mined.",
        )

    if ratio < RECOMMENDED_RATIO:
        return GasPriceVerdict(
            adequate=False,
            issue="Gas price below recommended threshold",
            recommendation=f"Increase the gas price to at least {RECOMMENDED_RATIO}% of the network price.",
            summary=f"Gas price below recommended threshold: {prices}. Mining may be delayed.",
        )

    return GasPriceVerdict(
        adequate=True,
        issue="",
        recommendation="",
        summary=f"Gas price is adequate: {prices}.",
    )
