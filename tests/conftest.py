"""
Shared pytest fixtures
"""

import os

import pytest


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep LADDERCHAIN_* variables of the host out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("LADDERCHAIN_"):
            monkeypatch.delenv(key, raising=False)
