# Copyright (c) QuantCo and pydiverse contributors 2025-2025
# SPDX-License-Identifier: BSD-3-Clause

from .assertion import assert_frame

__all__ = [
    "assert_frame",
]
