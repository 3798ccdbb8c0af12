#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Index of every custom error declared in a tree of compiled-contract artifacts.

Scanning a full Hardhat/Foundry ``artifacts`` tree is slow, and artifacts do
not change while the process runs, so the scan happens once per index and
the result is kept for the lifetime of the process.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from logging_config import get_logger

logger = get_logger(__name__)

SkipHook = Callable[[Path, str], None]


@dataclass(frozen=True)
class ArtifactAbi:
    source_path: Path
    abi: Tuple[dict, ...]


class ErrorSignatureIndex:
    """Lazily built, immutable list of error ABIs found under ``root``."""

    def __init__(self, root: Path, on_skip: Optional[SkipHook] = None):
        self.root = Path(root)
        self.on_skip = on_skip
        self.skipped: List[Tuple[Path, str]] = []
        self._entries: Optional[Tuple[ArtifactAbi, ...]] = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._entries is not None

    def all_error_abis(self) -> Tuple[ArtifactAbi, ...]:
        """Return the cached index (an immutable tuple), scanning the artifacts tree on first use."""
        entries = self._entries
        if entries is not None:
            return entries
        with self._lock:
            # Another caller may have finished the scan while we waited
            if self._entries is None:
                self._entries = self._scan()
            return self._entries

    def _skip(self, path: Path, reason: str) -> None:
        self.skipped.append((path, reason))
        logger.debug("Skipping artifact %s: %s", path, reason, extra={"path": str(path), "reason": reason})
        if self.on_skip is not None:
            try:
                self.on_skip(path, reason)
            except Exception as exc:
                logger.warning("Skip hook failed for %s: %s", path, exc)

    def _scan(self) -> Tuple[ArtifactAbi, ...]:
        if not self.root.is_dir():
            logger.info("Artifacts directory %s not readable, error index is empty", self.root)
            return ()

        try:
            paths = sorted(self.root.rglob("*"))
        except OSError as exc:
            logger.warning("Cannot walk artifacts directory %s: %s", self.root, exc)
            return ()

        entries: List[ArtifactAbi] = []
        for path in paths:
            if path.is_dir():
                continue
            if path.suffix.lower() != ".json":
                self._skip(path, "not a JSON file")
                continue
            try:
                document = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError) as exc:
                self._skip(path, f"unreadable: {exc}")
                continue
            except json.JSONDecodeError as exc:
                self._skip(path, f"invalid JSON: {exc.msg}")
                continue

            abi = document.get("abi") if isinstance(document, dict) else None
            if not isinstance(abi, list):
                self._skip(path, "no abi field")
                continue

            errors = tuple(
                item for item in abi
                if isinstance(item, dict) and item.get("type") == "error"
            )
            entries.append(ArtifactAbi(source_path=path, abi=errors))

        logger.debug(
            "Indexed %d artifacts under %s (%d skipped)",
            len(entries), self.root, len(self.skipped),
        )
        return tuple(entries)


_shared: Dict[Path, ErrorSignatureIndex] = {}
_shared_lock = threading.Lock()


def shared_index(root: Path) -> ErrorSignatureIndex:
    """Process-wide index for ``root``; every caller gets the same instance."""
    key = Path(root).resolve()
    with _shared_lock:
        index = _shared.get(key)
        if index is None:
            index = ErrorSignatureIndex(key)
            _shared[key] = index
        return index
