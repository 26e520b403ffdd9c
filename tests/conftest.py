"""
Pytest configuration shared by the resource model tests.
"""

import pytest


@pytest.fixture
def issues():
    """A fresh, caller-owned issue list."""
    return []


@pytest.fixture
def clean_env(monkeypatch):
    """Remove restmodel configuration variables from the environment."""
    for var in ('RESTMODEL_STRICT', 'RESTMODEL_VALIDATE'):
        monkeypatch.delenv(var, raising=False)
