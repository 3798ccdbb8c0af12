#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Sources for the prioritized ABIs of a confirmation (artifact files, Etherscan v2)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List, Optional

import requests

from input_validation import validate_ethereum_address
from logging_config import get_logger

logger = get_logger(__name__)

ETHERSCAN_V2_URL = "https://api.etherscan.io/v2/api"
DEFAULT_CACHE_DIR = Path("cache")


def load_artifact_abi(path: Path) -> list:
    """Read the ``abi`` array of a compiled-contract artifact (or a bare ABI file)."""
    with Path(path).open(encoding="utf-8") as fh:
        document = json.load(fh)
    if isinstance(document, list):
        return document
    abi = document.get("abi") if isinstance(document, dict) else None
    if not isinstance(abi, list):
        raise ValueError(f"{path}: artifact without abi field")
    return abi


def fetch_etherscan_abi(
    address: str,
    chain_id: int,
    api_key: str,
    cache_dir: Path = DEFAULT_CACHE_DIR,
    timeout: float = 15,
) -> list:
    """
    Fetch a verified contract ABI via the Etherscan v2 multichain API.

    The ABI is cached on disk per (chain, address); a cached copy is used
    without hitting the network.
    """
    if not validate_ethereum_address(address):
        raise ValueError(f"Invalid contract address: {address!r}")
    addr = address.strip()
    cache = Path(cache_dir) / f"abi_{chain_id}_{addr.lower()}.json"
    if cache.exists():
        try:
            data = json.loads(cache.read_text())
            if isinstance(data, list):
                return data
        except (OSError, json.JSONDecodeError) as exc:
            logger.debug("Ignoring unreadable ABI cache %s: %s", cache, exc)

    params = {
        "module": "contract",
        "action": "getabi",
        "address": addr,
        "chainid": str(chain_id),
        "apikey": api_key,
    }
    r = requests.get(ETHERSCAN_V2_URL, params=params, timeout=timeout)
    r.raise_for_status()
    j = r.json()
    # {"status":"1","result":"[ ...abi json array... ]"}
    if j.get("status") == "1" and j.get("result"):
        abi = json.loads(j["result"])
        cache.parent.mkdir(parents=True, exist_ok=True)
        cache.write_text(json.dumps(abi))
        return abi
    raise RuntimeError(f"EtherscanV2 getabi failed: {j}")


def load_prioritized_abis(
    artifact_paths: Iterable[Path] = (),
    addresses: Iterable[str] = (),
    chain_id: Optional[int] = None,
    api_key: Optional[str] = None,
    cache_dir: Path = DEFAULT_CACHE_DIR,
) -> List[list]:
    """
    Collect the ABIs of the contracts involved in a call.

    Artifact files must be readable. Explorer lookups are best effort: a
    failed fetch is logged and the address is left out.
    """
    abis = [load_artifact_abi(Path(p)) for p in artifact_paths]

    addresses = list(addresses)
    if addresses and (not api_key or chain_id is None):
        logger.warning("ETHERSCAN_API_KEY or chain id missing, skipping explorer ABIs for %d contracts", len(addresses))
        return abis

    for address in addresses:
        try:
            abis.append(fetch_etherscan_abi(address, chain_id, api_key, cache_dir))  # type: ignore[arg-type]
        except (requests.RequestException, RuntimeError, ValueError) as exc:
            logger.warning("Could not fetch ABI for %s: %s", address, exc)
    return abis
