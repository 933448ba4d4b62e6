import logging

import pytest


@pytest.fixture
def package_records(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture):
    """Let ``caplog`` see records from the non-propagating package logger."""

    monkeypatch.setattr(logging.getLogger("livedeck_tui"), "propagate", True)
    caplog.set_level(logging.DEBUG, logger="livedeck_tui")
    return caplog
