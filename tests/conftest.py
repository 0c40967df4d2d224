import logging

import pytest

from settlers.logging_config import configure_logging


@pytest.fixture(scope="session", autouse=True)
def _quiet_logging():
    configure_logging("production", level=logging.WARNING)
