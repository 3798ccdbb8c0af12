#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Tests for the log line formatter."""

import logging

from logging_config import LINE_FORMAT, ContextFormatter, get_logger


def _record(msg, **extra):
    record = logging.makeLogRecord({"name": "confirmation", "levelname": "INFO", "msg": msg})
    record.__dict__.update(extra)
    return record


def test_plain_message_has_no_context():
    line = ContextFormatter("%(name)s: %(message)s").format(_record("Receipt found"))
    assert line == "confirmation: Receipt found"


def test_extra_fields_are_appended_and_hashes_shortened():
    tx_hash = "0x" + "ab" * 32
    line = ContextFormatter("%(message)s").format(_record("Simulation reverted", tx_hash=tx_hash, anchor="latest"))
    assert line == "Simulation reverted [anchor=latest tx_hash=0xabababab..]"


def test_get_logger_returns_named_logger():
    assert get_logger("simulation").name == "simulation"
    assert "%(levelname)s" in LINE_FORMAT
