"""Tests for parameter binding and placeholder conversion."""

import uuid
from typing import Any

import pytest

from dyntable.core.parameters import (
    TEXT_SIZE,
    UNBOUNDED_SIZE,
    BoundParameter,
    ParameterStyle,
    bind_parameter,
    convert_placeholders,
    flatten_arguments,
    parameter_marker,
    placeholder,
)
from dyntable.exceptions import ImproperConfigurationError, MissingParameterError


def test_bind_none() -> None:
    parameter = bind_parameter(0, None)
    assert parameter.value is None
    assert parameter.size is None


def test_bind_uuid_as_string() -> None:
    value = uuid.UUID("12345678-1234-5678-1234-567812345678")
    parameter = bind_parameter(3, value)

    assert parameter.value == "12345678-1234-5678-1234-567812345678"
    assert parameter.size == TEXT_SIZE
    assert parameter.name == "@3"


@pytest.mark.parametrize(
    ("length", "expected_size"),
    [(0, TEXT_SIZE), (TEXT_SIZE, TEXT_SIZE), (TEXT_SIZE + 1, UNBOUNDED_SIZE)],
    ids=["empty", "at-limit", "beyond-limit"],
)
def test_bind_text_size(length: int, expected_size: int) -> None:
    parameter = bind_parameter(0, "x" * length)
    assert parameter.size == expected_size


def test_bind_unwraps_single_value_mapping() -> None:
    assert bind_parameter(0, {"value": 12}) == BoundParameter(0, 12)
    assert bind_parameter(0, {"value": "Ann"}) == BoundParameter(0, "Ann", TEXT_SIZE)


def test_bind_wrapped_uuid_and_null() -> None:
    value = uuid.UUID("12345678-1234-5678-1234-567812345678")

    assert bind_parameter(2, {"id": value}) == BoundParameter(2, str(value), TEXT_SIZE)
    assert bind_parameter(2, {"id": None}) == BoundParameter(2, None)
    assert bind_parameter(2, {}) == BoundParameter(2, None)


@pytest.mark.parametrize("value", [42, 3.5, True, b"\x00\x01"], ids=["int", "float", "bool", "bytes"])
def test_bind_other_values_untouched(value: Any) -> None:
    parameter = bind_parameter(1, value)
    assert parameter.value == value
    assert parameter.size is None


def test_flatten_arguments_expands_one_level() -> None:
    assert flatten_arguments([1, [2, 3], (4,), "ab", [[5]]]) == [1, 2, 3, 4, "ab", [5]]


def test_placeholder() -> None:
    assert placeholder(0) == "@0"
    assert placeholder(12) == "@12"


@pytest.mark.parametrize(
    ("paramstyle", "expected"),
    [
        ("qmark", ParameterStyle.QMARK),
        ("NUMERIC", ParameterStyle.NUMERIC),
        ("named", ParameterStyle.NAMED),
        ("format", ParameterStyle.FORMAT),
        ("pyformat", ParameterStyle.PYFORMAT),
    ],
)
def test_parameter_style_from_paramstyle(paramstyle: str, expected: ParameterStyle) -> None:
    assert ParameterStyle.from_paramstyle(paramstyle) is expected


def test_parameter_style_unknown() -> None:
    with pytest.raises(ImproperConfigurationError):
        ParameterStyle.from_paramstyle("dollar")


SQL = "SELECT * FROM [T] WHERE a = @1 AND b = @0 AND c = '@0' -- @1"


@pytest.mark.parametrize(
    ("style", "expected_sql", "expected_parameters"),
    [
        pytest.param(
            ParameterStyle.QMARK,
            "SELECT * FROM [T] WHERE a = ? AND b = ? AND c = '@0' -- @1",
            ["y", "x"],
            id="qmark",
        ),
        pytest.param(
            ParameterStyle.NUMERIC,
            "SELECT * FROM [T] WHERE a = :2 AND b = :1 AND c = '@0' -- @1",
            ["x", "y"],
            id="numeric",
        ),
        pytest.param(
            ParameterStyle.NAMED,
            "SELECT * FROM [T] WHERE a = :p1 AND b = :p0 AND c = '@0' -- @1",
            {"p0": "x", "p1": "y"},
            id="named",
        ),
        pytest.param(
            ParameterStyle.FORMAT,
            "SELECT * FROM [T] WHERE a = %s AND b = %s AND c = '@0' -- @1",
            ["y", "x"],
            id="format",
        ),
        pytest.param(
            ParameterStyle.PYFORMAT,
            "SELECT * FROM [T] WHERE a = %(p1)s AND b = %(p0)s AND c = '@0' -- @1",
            {"p0": "x", "p1": "y"},
            id="pyformat",
        ),
    ],
)
def test_convert_placeholders(style: ParameterStyle, expected_sql: str, expected_parameters: Any) -> None:
    sql, parameters = convert_placeholders(SQL, ["x", "y"], style)
    assert sql == expected_sql
    assert parameters == expected_parameters


def test_convert_repeated_placeholder_for_qmark() -> None:
    sql, parameters = convert_placeholders("SELECT @0, @0, @1", [1, 2], ParameterStyle.QMARK)
    assert sql == "SELECT ?, ?, ?"
    assert parameters == [1, 1, 2]


def test_convert_leaves_system_variables() -> None:
    sql, parameters = convert_placeholders("SELECT @@IDENTITY, @0", [7], ParameterStyle.QMARK)
    assert sql == "SELECT @@IDENTITY, ?"
    assert parameters == [7]


def test_convert_skips_block_comments_and_bracketed_names() -> None:
    sql, _ = convert_placeholders("SELECT [@0] /* @0 */ FROM T WHERE x = @0", [1], ParameterStyle.NAMED)
    assert sql == "SELECT [@0] /* @0 */ FROM T WHERE x = :p0"


def test_convert_doubles_percent_for_format_styles() -> None:
    sql, parameters = convert_placeholders("SELECT * FROM T WHERE Name LIKE 'A%' AND Age > @0", [30], ParameterStyle.FORMAT)
    assert sql == "SELECT * FROM T WHERE Name LIKE 'A%%' AND Age > %s"
    assert parameters == [30]


def test_convert_keeps_percent_for_qmark() -> None:
    sql, _ = convert_placeholders("SELECT 10 % 3, @0", [1], ParameterStyle.QMARK)
    assert sql == "SELECT 10 % 3, ?"


def test_convert_from_markers() -> None:
    sql = f"SELECT * FROM t WHERE b = {parameter_marker(1)} AND a = {parameter_marker(0)} AND c = '@0'"

    converted, parameters = convert_placeholders(sql, ["first", "second"], ParameterStyle.QMARK, from_markers=True)

    assert converted == "SELECT * FROM t WHERE b = ? AND a = ? AND c = '@0'"
    assert parameters == ["second", "first"]


def test_convert_from_markers_in_backquoted_statement() -> None:
    sql = f"UPDATE `100%` SET `Name` = {parameter_marker(0)}"

    converted, parameters = convert_placeholders(sql, ["Ann"], ParameterStyle.PYFORMAT, from_markers=True)

    assert converted == "UPDATE `100%%` SET `Name` = %(p0)s"
    assert parameters == {"p0": "Ann"}


def test_convert_missing_parameter() -> None:
    with pytest.raises(MissingParameterError, match="@2"):
        convert_placeholders("SELECT @0, @2", [1, 2], ParameterStyle.QMARK)


def test_convert_without_placeholders() -> None:
    assert convert_placeholders("SELECT 1", [], ParameterStyle.NAMED) == ("SELECT 1", {})
