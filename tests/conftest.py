from __future__ import annotations

import sys
from collections.abc import Iterator

import pytest
from loguru import logger

from samantha import logging_utils


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    logger.remove()
    logger.add(sys.stderr, level="DEBUG")
    logging_utils._CONFIGURED = None
