# Copyright (c) QuantCo and pydiverse contributors 2025-2025
# SPDX-License-Identifier: BSD-3-Clause

from ._internal.map2d import Map2d
from ._internal.missing import MISSING
from .errors import *
from .errors import __all__ as __errors
from .version import __version__

__all__ = ["__version__", "Map2d", "MISSING"] + __errors
