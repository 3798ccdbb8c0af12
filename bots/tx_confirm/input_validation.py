#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Input validation for transaction hashes and contract addresses."""

from __future__ import annotations

import re

from web3 import Web3

_TX_HASH_RE = re.compile(r"0x[0-9a-fA-F]{64}")


def validate_tx_hash(tx_hash: str) -> bool:
    """Validate a transaction hash (0x followed by 32 bytes of hex).

    Examples:
        >>> validate_tx_hash("0x" + "ab" * 32)
        True
        >>> validate_tx_hash("0x1234")
        False
    """
    if not tx_hash or not isinstance(tx_hash, str):
        return False
    return bool(_TX_HASH_RE.fullmatch(tx_hash))


def validate_ethereum_address(address: str, require_checksum: bool = False) -> bool:
    """Validate Ethereum address format and, optionally, its checksum.

    Args:
        address: Ethereum address string to validate
        require_checksum: Reject addresses that are not EIP-55 checksummed

    Returns:
        True if address is valid, False otherwise
    """
    if not address or not isinstance(address, str):
        return False
    try:
        if not Web3.is_address(address):
            return False
        if require_checksum:
            return address == Web3.to_checksum_address(address)
        return True
    except (TypeError, ValueError):
        return False
