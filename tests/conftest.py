"""Root test configuration: isolate every test from local config and environment"""

import logging

import pytest

from liquidscrub.config import ENV_PREFIX, Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Drop LIQUIDSCRUB_* variables so a developer's shell cannot leak into tests."""
    for name in Settings.model_fields:
        monkeypatch.delenv(f"{ENV_PREFIX}{name.upper()}", raising=False)


@pytest.fixture(autouse=True)
def reset_logger():
    """Remove handlers setup_logging attached so they do not outlive the test's stderr."""
    yield
    logger = logging.getLogger("liquidscrub")
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)
