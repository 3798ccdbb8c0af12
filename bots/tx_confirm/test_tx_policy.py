#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Tests for confirmation policy resolution."""

import pytest

from tx_policy import LOCAL_CHAIN_IDS, ConfirmationPolicy, resolve_policy


@pytest.mark.parametrize("chain_id", sorted(LOCAL_CHAIN_IDS))
def test_local_chain_gets_more_attempts_in_ci(chain_id):
    local = resolve_policy(chain_id, is_ci=False)
    ci = resolve_policy(chain_id, is_ci=True)
    assert ci.max_attempts > local.max_attempts
    assert (local.poll_interval_ms, local.max_attempts) == (50, 500)
    assert (ci.poll_interval_ms, ci.max_attempts) == (100, 1200)


def test_testnet_policy():
    policy = resolve_policy(11155111, is_ci=False)
    assert (policy.poll_interval_ms, policy.max_attempts) == (500, 120)
    assert policy.description == "1 minute"


def test_unknown_chain_falls_back_to_production():
    for chain_id in (1, 8453, 424242):
        policy = resolve_policy(chain_id, is_ci=True)
        assert (policy.poll_interval_ms, policy.max_attempts) == (1000, 300)
        assert policy.description == "5 minutes"


@pytest.mark.parametrize("seconds", [1, 7, 30, 600])
def test_override_matches_requested_duration(seconds):
    policy = resolve_policy(31337, is_ci=True, override_seconds=seconds)
    assert policy.poll_interval_ms == 100
    assert abs(policy.total_ms - seconds * 1000) <= policy.poll_interval_ms
    assert "(custom)" in policy.description


def test_override_wins_over_chain():
    assert resolve_policy(1, False, 5) == resolve_policy(31337, True, 5)


def test_override_zero_still_polls_once():
    assert resolve_policy(1, False, 0).max_attempts == 1


def test_policy_rejects_zero_attempts():
    with pytest.raises(ValueError):
        ConfirmationPolicy(poll_interval_ms=100, max_attempts=0, description="never")


def test_poll_interval_seconds():
    assert ConfirmationPolicy(500, 2, "x").poll_interval_s == 0.5
