from __future__ import annotations

import logging
import sys

from gendata.utils.logging import get_logger


def test_logger_has_one_handler_and_does_not_propagate():
    first = get_logger("gendata.tests.once")
    second = get_logger("gendata.tests.once")

    assert first is second
    assert len(second.handlers) == 1
    assert second.propagate is False


def test_level_from_env(monkeypatch):
    monkeypatch.setenv("GENDATA_LOG_LEVEL", "debug")
    assert get_logger("gendata.tests.debug").level == logging.DEBUG


def test_unknown_level_falls_back_to_info(monkeypatch):
    monkeypatch.setenv("GENDATA_LOG_LEVEL", "chatty")
    assert get_logger("gendata.tests.chatty").level == logging.INFO


def test_record_printed_once_with_root_handler(capsys):
    root = logging.getLogger()
    root_handler = logging.StreamHandler(sys.stderr)
    root.addHandler(root_handler)
    try:
        get_logger("gendata.tests.printed").warning("settled once")
    finally:
        root.removeHandler(root_handler)
    assert capsys.readouterr().err.count("settled once") == 1
