# Copyright (c) QuantCo and pydiverse contributors 2025-2025
# SPDX-License-Identifier: BSD-3-Clause

from __future__ import annotations

from collections.abc import Callable, Hashable, ItemsView, Iterator
from types import MappingProxyType
from typing import Any, Mapping, TypeVar

import polars as pl
import structlog

from pydiverse.map2d._internal.errors import (
    InvalidArgumentError,
    check_arg_type,
    check_not_none,
)
from pydiverse.map2d._internal.missing import MISSING

K1 = TypeVar("K1", bound=Hashable)
K2 = TypeVar("K2", bound=Hashable)
V = TypeVar("V")
R = TypeVar("R", bound=Hashable)

logger = structlog.get_logger(__name__)

_EMPTY: Mapping[Any, Any] = MappingProxyType({})


class Map2d(Mapping[K1, Mapping[K2, V]]):
    """
    Two-level mapping from an outer key and an inner key to a value.

    Behaves like a read-only mapping from outer key to inner mapping. Values are
    written through the composite key methods (`put`, `modify`, ...). Inner
    mappings are handed out as read-only views, so the internal state can only
    change through the methods of this class.

    Note that `get` takes the composite key, `get(key1, key2, default=None)`, and so
    differs from `Mapping.get(key, default)`. Use `m[key1]` or `get_nested_map` to
    look up an outer key.

    Not thread-safe. Concurrent mutation requires external locking.

    Examples
    --------
    >>> m = Map2d()
    >>> m.put("Hello", 1, "World")
    'World'
    >>> m.get("Hello", 1)
    'World'
    >>> m.size("Hello"), m.size("Hi")
    (1, -1)
    >>> m.flatten(lambda k1, k2: f"{k1}-{k2}")
    {'Hello-1': 'World'}
    """

    __slots__ = ["_mapping"]

    def __init__(self, mapping: Map2d[K1, K2, V] | Mapping[K1, Mapping[K2, V]] | None = None):
        """
        :param mapping:
            Optional nested mapping to populate the new instance with. It is copied
            level by level, and its keys are validated like in `put`.
        """
        self._mapping: dict[K1, dict[K2, V]] = dict()
        if mapping is not None:
            self.inner_update(mapping)

    # -- composite key access

    def get(self, key1: K1, key2: K2, default: Any = None) -> V | Any:
        """
        Return the value stored at (`key1`, `key2`), or `default` on a miss.

        `None` keys are a plain miss. Use `contains` to tell a stored `None` apart
        from a missing entry.
        """
        inner = self._mapping.get(key1)
        if inner is None:
            return default
        return inner.get(key2, default)

    def contains(self, key1: K1, key2: K2) -> bool:
        inner = self._mapping.get(key1)
        return inner is not None and key2 in inner

    def put(self, key1: K1, key2: K2, value: V) -> V:
        """
        Store `value` at (`key1`, `key2`) and return it.

        The inner mapping of `key1` is created on first use. Neither key may be
        `None`, the value may.
        """
        check_not_none("Map2d.put", "key1", key1)
        check_not_none("Map2d.put", "key2", key2)

        inner = self._mapping.get(key1)
        if inner is None:
            inner = self._mapping[key1] = dict()
            logger.debug("created outer key", key1=key1)
        inner[key2] = value
        return value

    def modify(self, key1: K1, key2: K2, remapping_fn: Callable[[K2, V | Any], V | Any]) -> V | Any:
        """
        Recompute the value at (`key1`, `key2`).

        If `key1` has no inner mapping, nothing happens and `MISSING` is returned
        without calling `remapping_fn`. Otherwise `remapping_fn(key2, current)` is
        called, where `current` is the stored value or `MISSING`. Returning
        `MISSING` removes the entry, any other result is stored. The result is
        returned in both cases.

        Outer keys are never created by this method.
        """
        check_arg_type(Callable, "Map2d.modify", "remapping_fn", remapping_fn)

        inner = self._mapping.get(key1)
        if inner is None:
            return MISSING
        check_not_none("Map2d.modify", "key2", key2)

        current = inner.get(key2, MISSING)
        result = remapping_fn(key2, current)
        if result is MISSING:
            if current is not MISSING:
                del inner[key2]
                logger.debug("removed inner key", key1=key1, key2=key2)
        else:
            inner[key2] = result
        return result

    def get_nested_map(self, key1: K1) -> Mapping[K2, V]:
        """
        Read-only view of the inner mapping of `key1`. Empty if `key1` is unknown.
        """
        inner = self._mapping.get(key1)
        if inner is None:
            return _EMPTY
        return MappingProxyType(inner)

    def size(self, key1: K1) -> int:
        """
        Number of entries stored under `key1`, or -1 if `key1` has no inner mapping.
        """
        inner = self._mapping.get(key1)
        return len(inner) if inner is not None else -1

    def nested_items(self) -> Iterator[tuple[K1, K2, V]]:
        for key1, inner in self._mapping.items():
            for key2, value in inner.items():
                yield key1, key2, value

    def entries(self) -> ItemsView[K1, Mapping[K2, V]]:
        """
        The outer level entries. Each outer key is paired with a read-only view of
        its whole inner mapping.
        """
        return self.items()

    # -- bulk operations

    def flatten(self, combiner: Callable[[K1, K2], R]) -> dict[R, V]:
        """
        Collapse both levels into one dict keyed by `combiner(key1, key2)`.

        If `combiner` maps two composite keys to the same result, the value
        visited last wins. The visiting order is not part of the contract.
        """
        check_not_none("Map2d.flatten", "combiner", combiner)
        check_arg_type(Callable, "Map2d.flatten", "combiner", combiner)

        return {combiner(key1, key2): value for key1, key2, value in self.nested_items()}

    def inner_update(self, other: Map2d[K1, K2, V] | Mapping[K1, Mapping[K2, V]]):
        """
        Merge `other` into `self`, one inner mapping at a time. Values of `other`
        overwrite existing values at the same composite key. If any key of `other`
        is `None`, nothing is written.
        """
        mapping = other._mapping if isinstance(other, Map2d) else other
        entries = [(key1, key2, value) for key1, inner in mapping.items() for key2, value in inner.items()]
        # all keys are checked before the first write
        for key1, key2, _ in entries:
            check_not_none("Map2d.inner_update", "key1", key1)
            check_not_none("Map2d.inner_update", "key2", key2)

        for key1, key2, value in entries:
            self.put(key1, key2, value)

    def inner_map(self, fn: Callable[[V], V]):
        """
        Replace every value `v` with `fn(v)`. If `fn` raises, `self` is unchanged.
        """
        check_arg_type(Callable, "Map2d.inner_map", "fn", fn)

        self._mapping = {
            outer_key: {inner_key: fn(val) for inner_key, val in inner_map.items()}
            for outer_key, inner_map in self._mapping.items()
        }

    def clear(self):
        logger.debug("clearing", outer_keys=len(self._mapping))
        self._mapping.clear()

    def copy(self) -> Map2d[K1, K2, V]:
        return self.__copy__()

    def __copy__(self):
        new = self.__class__()
        new._mapping = {key1: inner.copy() for key1, inner in self._mapping.items()}
        return new

    def to_polars(
        self,
        key1_name: str = "key1",
        key2_name: str = "key2",
        value_name: str = "value",
    ) -> pl.DataFrame:
        """
        Export the contents as a long data frame with one row per composite key.

        :param key1_name:
            Name of the outer key column.

        :param key2_name:
            Name of the inner key column.

        :param value_name:
            Name of the value column.
        """
        for param_name, name in (("key1_name", key1_name), ("key2_name", key2_name), ("value_name", value_name)):
            check_arg_type(str, "Map2d.to_polars", param_name, name)
        if len({key1_name, key2_name, value_name}) != 3:
            raise InvalidArgumentError(
                "column names of `Map2d.to_polars` must be distinct\n"
                f"got `{key1_name}`, `{key2_name}` and `{value_name}`"
            )

        key1_col, key2_col, value_col = [], [], []
        for key1, key2, value in self.nested_items():
            key1_col.append(key1)
            key2_col.append(key2)
            value_col.append(value)
        return pl.DataFrame(
            [
                _to_series(key1_name, key1_col),
                _to_series(key2_name, key2_col),
                _to_series(value_name, value_col),
            ]
        )

    # -- outer level mapping interface

    def __getitem__(self, key1: K1) -> Mapping[K2, V]:
        return MappingProxyType(self._mapping[key1])

    def __iter__(self) -> Iterator[K1]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def __repr__(self):
        return f"{self.__class__.__name__}({self._mapping!r})"


def _to_series(name: str, values: list) -> pl.Series:
    try:
        return pl.Series(name, values)
    except (TypeError, pl.exceptions.PolarsError):
        # values of mixed python types have no common polars dtype
        return pl.Series(name, values, dtype=pl.Object)
