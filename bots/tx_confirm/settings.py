#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Configuration for the confirmation engine, read once from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from logging_config import get_logger

logger = get_logger(__name__)

CI_ENV_VARS = (
    "CI",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "CIRCLECI",
    "JENKINS_URL",
    "DRONE",
    "BUILDKITE",
    "BUILD_NUMBER",
    "CONTINUOUS_INTEGRATION",
)

TIMEOUT_OVERRIDE_VAR = "ATK_TRANSACTION_TIMEOUT_SECONDS"


def _env_flag_set(raw: Optional[str]) -> bool:
    if raw is None:
        return False
    value = raw.strip().lower()
    return value not in {"", "0", "false", "no", "off"}


def detect_ci(env: Mapping[str, str]) -> bool:
    """True when any conventional CI variable is set."""
    return any(_env_flag_set(env.get(name)) for name in CI_ENV_VARS)


def _positive_int(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, raw)
        return None
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive", name, raw)
        return None
    return value


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    try:
        return int(env.get(name, str(default)))
    except ValueError:
        return default


def _float_env(env: Mapping[str, str], name: str, default: float) -> float:
    try:
        return float(env.get(name, str(default)))
    except ValueError:
        return default


@dataclass
class ConfirmationSettings:
    """Everything the engine needs from its environment."""

    is_ci: bool = False
    timeout_override_seconds: Optional[int] = None
    artifacts_dir: Path = Path("artifacts")
    ci_max_retries: int = 2
    ci_retry_delay_s: float = 2.0
    rpc_url: Optional[str] = None
    rpc_timeout_s: float = 20.0

    def __post_init__(self) -> None:
        self.artifacts_dir = Path(self.artifacts_dir)
        self.ci_max_retries = max(0, self.ci_max_retries)
        self.ci_retry_delay_s = max(0.0, self.ci_retry_delay_s)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ConfirmationSettings":
        """Load settings from environment variables (``os.environ`` by default)."""
        if env is None:
            env = os.environ
        return cls(
            is_ci=detect_ci(env),
            timeout_override_seconds=_positive_int(env, TIMEOUT_OVERRIDE_VAR),
            artifacts_dir=Path(env.get("ATK_ARTIFACTS_DIR", "artifacts")),
            ci_max_retries=_int_env(env, "ATK_CI_MAX_RETRIES", 2),
            ci_retry_delay_s=_float_env(env, "ATK_CI_RETRY_DELAY_S", 2.0),
            rpc_url=env.get("RPC_URL") or None,
            rpc_timeout_s=_float_env(env, "RPC_TIMEOUT_S", 20.0),
        )
