import logging

import pytest

from emi_calc.logging_config import DEFAULT_LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by the CLI so they never outlive a captured stream."""
    yield
    logger = logging.getLogger(DEFAULT_LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.propagate = True
