#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Command-line entry point: wait for a transaction and print its outcome.

Usage:
    tx-confirm 0x<hash> --rpc http://127.0.0.1:8545 --abi artifacts/Token.json
"""

from __future__ import annotations

import argparse
import asyncio
import os
import signal
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from abi_sources import load_prioritized_abis
from chain_client import TransactionRef, Web3ChainClient
from confirmation import ConfirmationContext, TransactionConfirmer
from logging_config import VALID_LOG_LEVELS, configure_logging, get_logger, set_log_level
from settings import ConfirmationSettings

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tx-confirm",
        description="Wait for a transaction to be mined and explain failures.",
    )
    parser.add_argument("tx_hash", help="Transaction hash (0x-prefixed)")
    parser.add_argument("--rpc", help="RPC endpoint (default: $RPC_URL)")
    parser.add_argument(
        "--abi",
        action="append",
        default=[],
        type=Path,
        help="Artifact or ABI file of a contract involved in the call (repeatable)",
    )
    parser.add_argument(
        "--contract",
        action="append",
        default=[],
        help="Verified contract address whose ABI is fetched from Etherscan v2 (repeatable)",
    )
    parser.add_argument("--artifacts", type=Path, help="Artifacts tree used as fallback error index")
    parser.add_argument("--timeout", type=int, help="Total wait in seconds, overrides the chain policy")
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "WARNING").upper(),
        type=str.upper,
        choices=sorted(VALID_LOG_LEVELS),
    )
    return parser


def _settings_from_args(args: argparse.Namespace) -> ConfirmationSettings:
    settings = ConfirmationSettings.from_env()
    if args.rpc:
        settings = replace(settings, rpc_url=args.rpc)
    if args.artifacts:
        settings = replace(settings, artifacts_dir=args.artifacts)
    if args.timeout is not None:
        settings = replace(settings, timeout_override_seconds=args.timeout)
    return settings


async def run(args: argparse.Namespace) -> int:
    ref = TransactionRef(args.tx_hash)
    settings = _settings_from_args(args)
    client = Web3ChainClient(settings.rpc_url, timeout_s=settings.rpc_timeout_s)

    chain_id = await client.get_chain_id() if args.contract else None
    abis = load_prioritized_abis(
        artifact_paths=args.abi,
        addresses=args.contract,
        chain_id=chain_id,
        api_key=os.getenv("ETHERSCAN_API_KEY"),
    )

    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.set)
    except (NotImplementedError, RuntimeError):
        # Windows event loops have no signal handlers
        pass

    confirmer = TransactionConfirmer(client, settings)
    outcome = await confirmer.confirm(ref, ConfirmationContext(prioritized_abis=tuple(abis), cancel=cancel))
    print(outcome.narrative)
    return 0 if outcome.ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.timeout is not None and args.timeout <= 0:
        parser.error("--timeout must be positive")
    configure_logging(level=args.log_level)
    set_log_level(args.log_level)
    try:
        return asyncio.run(run(args))
    except (ValueError, RuntimeError, OSError) as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
