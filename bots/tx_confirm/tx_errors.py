#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Transaction error classes, timeout classification and builtin revert decoding."""

from __future__ import annotations

import asyncio
from typing import Optional, Tuple, Union

import requests
from web3.exceptions import TimeExhausted

# Message fragments that identify a receipt that has not shown up yet
TIMEOUT_PHRASES = (
    "still pending after",
    "not found",
    "timeout",
    "timed out",
)

ERROR_STRING_SELECTOR = bytes.fromhex("08c379a0")
PANIC_SELECTOR = bytes.fromhex("4e487b71")

PANIC_REASONS = {
    0x00: "Generic panic",
    0x01: "Assertion failed",
    0x11: "Arithmetic overflow/underflow",
    0x12: "Division by zero",
    0x21: "Invalid enum value",
    0x22: "Invalid storage access",
    0x31: "Pop from empty array",
    0x32: "Array index out of bounds",
    0x41: "Out of memory",
    0x51: "Invalid internal function",
}


class TransactionError(Exception):
    """Base class for transaction-related errors."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class ReceiptNotFoundError(TransactionError):
    """No receipt exists (yet) for the transaction."""
    pass


class ConfirmationTimeoutError(TransactionError):
    """Polling exhausted the confirmation policy without finding a receipt."""

    def __init__(self, message: str, tx_hash: Optional[str] = None, attempts: int = 0):
        super().__init__(message, tx_hash)
        self.attempts = attempts


class CallRevertedError(TransactionError):
    """A static call reverted; ``data`` holds the raw revert payload when the node returned one."""

    def __init__(self, message: str, data: Optional[bytes] = None, tx_hash: Optional[str] = None):
        super().__init__(message, tx_hash)
        self.data = data


def is_timeout_error(error: BaseException) -> bool:
    """
    Decide whether an error means "receipt not available yet".

    Typed errors are checked first; the message is only inspected for
    errors raised by clients that do not use the typed hierarchy.
    """
    if isinstance(error, (ConfirmationTimeoutError, ReceiptNotFoundError, TimeExhausted)):
        return True
    if isinstance(error, (asyncio.TimeoutError, TimeoutError, requests.Timeout)):
        return True
    if isinstance(error, CallRevertedError):
        return False
    message_lower = str(error).lower()
    return any(phrase in message_lower for phrase in TIMEOUT_PHRASES)


def to_bytes(data: Union[bytes, bytearray, str, None]) -> bytes:
    """Normalise revert data given as bytes or a hex string. Invalid hex yields empty bytes."""
    if data is None:
        return b""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if not isinstance(data, str):
        return b""
    text = data[2:] if data[:2].lower() == "0x" else data
    if len(text) % 2:
        return b""
    try:
        return bytes.fromhex(text)
    except ValueError:
        return b""


def decode_builtin_revert(error_data: Union[bytes, str, None]) -> Optional[Tuple[str, tuple]]:
    """
    Decode the Solidity builtin revert payloads.

    Args:
        error_data: Raw revert data (bytes or hex string)

    Returns:
        ``("Error", (reason,))`` or ``("Panic", (code, description))``, or
        None when the payload is neither builtin or is malformed
    """
    data = to_bytes(error_data)
    if len(data) < 4:
        return None

    # Error(string): offset (32 bytes), length (32 bytes), then UTF-8 string
    if data[:4] == ERROR_STRING_SELECTOR:
        body = data[4:]
        if len(body) < 64:
            return None
        length = int.from_bytes(body[32:64], "big")
        if len(body) < 64 + length:
            return None
        reason = body[64:64 + length].decode("utf-8", errors="ignore")
        return "Error", (reason,)

    # Panic(uint256)
    if data[:4] == PANIC_SELECTOR:
        body = data[4:]
        if len(body) < 32:
            return None
        code = int.from_bytes(body[:32], "big")
        return "Panic", (code, PANIC_REASONS.get(code, f"Panic code: 0x{code:02x}"))

    return None
