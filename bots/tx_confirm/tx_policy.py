#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Confirmation policy: how often and how long to poll for a receipt."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

# Hardhat / Anvil, Ganache / geth --dev
LOCAL_CHAIN_IDS = frozenset({31337, 1337})

TESTNET_CHAIN_IDS = frozenset({
    5,          # Goerli
    17000,      # Holesky
    80002,      # Polygon Amoy
    84532,      # Base Sepolia
    421614,     # Arbitrum Sepolia
    11155111,   # Sepolia
    11155420,   # OP Sepolia
})

CUSTOM_POLL_INTERVAL_MS = 100


@dataclass(frozen=True)
class ConfirmationPolicy:
    poll_interval_ms: int
    max_attempts: int
    description: str

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.poll_interval_ms < 0:
            raise ValueError("poll_interval_ms must be >= 0")

    @property
    def poll_interval_s(self) -> float:
        return self.poll_interval_ms / 1000.0

    @property
    def total_ms(self) -> int:
        return self.poll_interval_ms * self.max_attempts


def resolve_policy(
    chain_id: int,
    is_ci: bool,
    override_seconds: Optional[int] = None,
) -> ConfirmationPolicy:
    """
    Pick the polling policy for a chain.

    Args:
        chain_id: Chain the transaction was sent to
        is_ci: Whether we run on a CI runner (local chains get more time there)
        override_seconds: Operator override of the total wait

    Returns:
        ConfirmationPolicy; unknown chains get the production policy
    """
    if override_seconds is not None:
        attempts = max(1, int(override_seconds) * 1000 // CUSTOM_POLL_INTERVAL_MS)
        return ConfirmationPolicy(
            poll_interval_ms=CUSTOM_POLL_INTERVAL_MS,
            max_attempts=attempts,
            description=f"{override_seconds} seconds (custom)",
        )

    if chain_id in LOCAL_CHAIN_IDS:
        if is_ci:
            # CI runners are often starved for CPU, give the node more time
            return ConfirmationPolicy(100, 1200, "2 minutes (CI)")
        return ConfirmationPolicy(50, 500, "25 seconds")

    if chain_id in TESTNET_CHAIN_IDS:
        return ConfirmationPolicy(500, 120, "1 minute")

    return ConfirmationPolicy(1000, 300, "5 minutes")
