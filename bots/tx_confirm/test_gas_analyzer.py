#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Tests for the gas price analyzer."""

import pytest

from gas_analyzer import analyze_gas_price


@pytest.mark.parametrize("network", [0, 1, 10**9, 10**12])
def test_zero_gas_price_is_never_adequate(network):
    verdict = analyze_gas_price(0, network)
    assert not verdict.adequate
    assert verdict.issue == "Zero gas price"
    assert verdict.recommendation


def test_unavailable_network_price_is_treated_as_adequate():
    verdict = analyze_gas_price(10**9, 0)
    assert verdict.adequate
    assert "unavailable" in verdict.summary


def test_ratio_below_half_is_too_low():
    verdict = analyze_gas_price(100, 1000)
    assert not verdict.adequate
    assert "too low" in verdict.issue
    assert "10%" in verdict.summary


def test_ratio_between_half_and_recommended():
    verdict = analyze_gas_price(600, 1000)
    assert not verdict.adequate
    assert "below recommended threshold" in verdict.issue


@pytest.mark.parametrize("tx_price, expected", [(499, False), (500, False), (799, False), (800, True), (900, True), (5000, True)])
def test_thresholds(tx_price, expected):
    assert analyze_gas_price(tx_price, 1000).adequate is expected


def test_summary_quotes_gwei():
    verdict = analyze_gas_price(2 * 10**9, 2 * 10**9)
    assert "2.00 gwei" in verdict.summary
