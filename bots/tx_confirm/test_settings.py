#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Tests for environment-driven settings."""

from pathlib import Path

import pytest

from settings import CI_ENV_VARS, ConfirmationSettings, detect_ci


def test_defaults_without_environment():
    settings = ConfirmationSettings.from_env({})
    assert settings.is_ci is False
    assert settings.timeout_override_seconds is None
    assert settings.artifacts_dir == Path("artifacts")
    assert settings.ci_max_retries == 2
    assert settings.ci_retry_delay_s == 2.0


@pytest.mark.parametrize("name", CI_ENV_VARS)
def test_any_ci_variable_enables_ci(name):
    assert detect_ci({name: "true"})


@pytest.mark.parametrize("value", ["", "0", "false", "False"])
def test_falsey_ci_values_are_ignored(value):
    assert not detect_ci({"CI": value})


def test_jenkins_url_counts_as_ci():
    assert detect_ci({"JENKINS_URL": "https://jenkins.example.com/"})


def test_timeout_override_is_read():
    settings = ConfirmationSettings.from_env({"ATK_TRANSACTION_TIMEOUT_SECONDS": "45"})
    assert settings.timeout_override_seconds == 45


@pytest.mark.parametrize("raw", ["abc", "-3", "0", "  "])
def test_invalid_timeout_override_is_ignored(raw):
    settings = ConfirmationSettings.from_env({"ATK_TRANSACTION_TIMEOUT_SECONDS": raw})
    assert settings.timeout_override_seconds is None


def test_retry_settings_are_clamped():
    settings = ConfirmationSettings.from_env({"ATK_CI_MAX_RETRIES": "-1", "ATK_CI_RETRY_DELAY_S": "-5"})
    assert settings.ci_max_retries == 0
    assert settings.ci_retry_delay_s == 0.0


def test_rpc_settings():
    settings = ConfirmationSettings.from_env({"RPC_URL": "http://127.0.0.1:8545", "RPC_TIMEOUT_S": "5"})
    assert settings.rpc_url == "http://127.0.0.1:8545"
    assert settings.rpc_timeout_s == 5.0
