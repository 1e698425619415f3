from __future__ import annotations

import polars as pl
import pytest

from pydiverse.map2d import InvalidArgumentError, Map2d
from tests.util import assert_frame


def test_to_polars(greetings):
    assert_frame(
        greetings,
        {
            "key1": ["Hello", "Hi"],
            "key2": [1, 2],
            "value": ["World", "Everyone"],
        },
    )


def test_to_polars_column_names(greetings):
    df = greetings.to_polars(key1_name="word", key2_name="id", value_name="reply")
    assert set(df.columns) == {"word", "id", "reply"}
    assert_frame(
        df,
        {
            "word": ["Hello", "Hi"],
            "id": [1, 2],
            "reply": ["World", "Everyone"],
        },
    )


def test_to_polars_one_row_per_composite_key():
    m = Map2d({"a": {1: 1.5, 2: 2.5}, "b": {1: 3.5}})
    df = m.to_polars()
    assert df.height == 3
    assert df.filter(pl.col("key1") == "a")["value"].sort().to_list() == [1.5, 2.5]


def test_to_polars_keeps_none_values(m):
    m.put("Hello", 1, None)
    m.put("Hello", 2, "World")
    df = m.to_polars()
    assert df["value"].null_count() == 1


def test_to_polars_empty(m):
    df = m.to_polars()
    assert df.shape == (0, 3)
    assert df.columns == ["key1", "key2", "value"]


def test_to_polars_duplicate_names(greetings):
    with pytest.raises(InvalidArgumentError, match="must be distinct"):
        greetings.to_polars(key1_name="key", key2_name="key")


def test_to_polars_name_type(greetings):
    with pytest.raises(TypeError, match="`value_name` of `Map2d.to_polars` must have type `str`"):
        greetings.to_polars(value_name=1)


def test_to_polars_mixed_values(m):
    m.put("Hello", 1, "World")
    m.put("Hello", 2, 42)
    df = m.to_polars()
    assert df.schema["value"] == pl.Object
    assert df.schema["key1"] == pl.String
    assert dict(zip(df["key2"].to_list(), df["value"].to_list())) == {1: "World", 2: 42}


def test_to_polars_mixed_keys(m):
    m.put("Hello", 1, "World")
    m.put(7, "x", "Everyone")
    df = m.to_polars()
    assert df.height == 2
    assert df.schema["key1"] == pl.Object
    assert df.schema["key2"] == pl.Object
    rows = set(zip(df["key1"].to_list(), df["key2"].to_list(), df["value"].to_list()))
    assert rows == {("Hello", 1, "World"), (7, "x", "Everyone")}
