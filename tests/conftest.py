# Copyright (c) QuantCo and pydiverse contributors 2025-2025
# SPDX-License-Identifier: BSD-3-Clause
import logging

import pytest

from pydiverse.common.util.structlog import setup_logging
from pydiverse.map2d import Map2d

# Setup


@pytest.fixture
def m() -> Map2d[str, int, str]:
    return Map2d()


@pytest.fixture
def greetings() -> Map2d[str, int, str]:
    m = Map2d()
    m.put("Hello", 1, "World")
    m.put("Hi", 2, "Everyone")
    return m


setup_logging(log_level=logging.INFO)
