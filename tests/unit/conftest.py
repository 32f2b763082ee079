"""
Unit test configuration.

Patches dotenv so pydantic-settings never reads a developer's .env file
during unit tests, and resets logging sampling so every customs check and
flow event is logged. Tests control config through monkeypatch.setenv().
"""

import pytest

from shared.logging_config import SAMPLING_RATES


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


@pytest.fixture(autouse=True)
def log_every_event(monkeypatch):
    monkeypatch.setitem(SAMPLING_RATES, "customs_check", 1.0)
    monkeypatch.setitem(SAMPLING_RATES, "flow_event", 1.0)
