#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Shared fixtures for the confirmation engine tests."""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from fake_chain import SleepRecorder  # noqa: E402


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    """Hardhat-like artifacts tree with one error only declared in the vault artifact."""
    root = tmp_path / "artifacts"
    vault = root / "contracts" / "Vault.sol"
    vault.mkdir(parents=True)
    (vault / "Vault.json").write_text(json.dumps({
        "contractName": "Vault",
        "abi": [
            {"type": "function", "name": "deposit", "inputs": [], "outputs": []},
            {
                "type": "error",
                "name": "VaultLocked",
                "inputs": [{"name": "until", "type": "uint64"}, {"name": "owner", "type": "address"}],
            },
        ],
    }))
    (vault / "Vault.dbg.json").write_text(json.dumps({"_format": "hh-sol-dbg-1", "buildInfo": "../x.json"}))
    (root / "README.md").write_text("not an artifact")
    (root / "broken.json").write_text("{not json")
    return root
