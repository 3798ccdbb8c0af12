#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Decode raw revert payloads into named custom errors."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from eth_abi import decode as abi_decode
from web3 import Web3

from error_index import ErrorSignatureIndex
from logging_config import get_logger
from tx_errors import decode_builtin_revert, to_bytes

logger = get_logger(__name__)

Abi = Sequence[dict]
RevertData = Union[bytes, str, None]


@dataclass(frozen=True)
class DecodedError:
    error_name: str
    args: Tuple[Any, ...] = ()
    signature: str = ""
    source: str = ""

    @property
    def narrative(self) -> str:
        if not self.error_name:
            return json.dumps(list(self.args), default=str)
        if not self.args:
            return self.error_name
        rendered = ", ".join(str(arg) for arg in self.args)
        return f"{self.error_name} (args: {rendered})"


@dataclass(frozen=True)
class RevertDiagnosis:
    decoded: Optional[DecodedError]
    narrative: str
    notes: Tuple[str, ...] = ()


def _canonical_type(param: dict) -> str:
    typ = str(param.get("type", ""))
    if typ.startswith("tuple"):
        inner = ",".join(_canonical_type(c) for c in param.get("components") or [])
        return f"({inner}){typ[len('tuple'):]}"
    return typ


def error_signature(entry: dict) -> str:
    types = ",".join(_canonical_type(p) for p in entry.get("inputs") or [])
    return f"{entry.get('name', '')}({types})"


def error_selector(entry: dict) -> bytes:
    return bytes(Web3.keccak(text=error_signature(entry))[:4])


def _display(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [_display(v) for v in value]
    return value


def _errors_of(abi: Iterable[Any]) -> List[dict]:
    return [e for e in abi if isinstance(e, dict) and e.get("type") == "error"]


def decode_with_abi(data: bytes, abi: Abi, source: str = "") -> Optional[DecodedError]:
    """Try every error of one ABI against ``data``. Raises on a malformed ABI or payload."""
    selector = data[:4]
    for entry in _errors_of(abi):
        if error_selector(entry) != selector:
            continue
        types = [_canonical_type(p) for p in entry.get("inputs") or []]
        values = abi_decode(types, data[4:]) if types else ()
        return DecodedError(
            error_name=str(entry.get("name", "")),
            args=tuple(_display(v) for v in values),
            signature=error_signature(entry),
            source=source,
        )
    return None


class RevertDecoder:
    """Matches revert data against prioritized ABIs, then the artifact index."""

    def __init__(self, index: Optional[ErrorSignatureIndex] = None):
        self.index = index

    def _attempt(self, data: bytes, abi: Abi, source: str) -> Optional[DecodedError]:
        try:
            return decode_with_abi(data, abi, source)
        except Exception as exc:
            logger.debug("Decode attempt against %s failed: %s", source or "abi", exc)
            return None

    def decode(self, revert_data: RevertData, prioritized_abis: Sequence[Abi] = ()) -> Optional[DecodedError]:
        """
        Decode a revert payload.

        Args:
            revert_data: Raw revert bytes or hex string
            prioritized_abis: ABIs of the contracts involved in the call

        Returns:
            DecodedError, or None when nothing matches
        """
        data = to_bytes(revert_data)
        if len(data) < 4:
            return None

        builtin = decode_builtin_revert(data)
        if builtin is not None:
            name, args = builtin
            signature = "Error(string)" if name == "Error" else "Panic(uint256)"
            return DecodedError(error_name=name, args=args, signature=signature, source="builtin")

        for abi in prioritized_abis:
            decoded = self._attempt(data, abi, "prioritized")
            if decoded is not None:
                return decoded

        if self.index is None:
            return None

        try:
            fallback = self.index.all_error_abis()
        except Exception as exc:
            logger.warning("Error signature index unavailable: %s", exc)
            return None

        for entry in fallback:
            decoded = self._attempt(data, entry.abi, str(entry.source_path))
            if decoded is not None:
                return decoded

        logger.debug("No ABI matched selector 0x%s", data[:4].hex())
        return None

    def describe(self, revert_data: RevertData, prioritized_abis: Sequence[Abi] = ()) -> str:
        """Human readable message for a revert payload, with a generic fallback."""
        decoded = self.decode(revert_data, prioritized_abis)
        if decoded is not None:
            return decoded.narrative
        data = to_bytes(revert_data)
        if not data:
            return "reverted without revert data"
        return f"unknown error (selector 0x{data[:4].hex()})"
