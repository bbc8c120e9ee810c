from __future__ import annotations

import math

import pytest

from track_browser.core.exceptions import ConfigError
from track_browser.samples import operations
from track_browser.samples.attributes import AttributeInfo


def _make_values():
    return {"s1": 5, "s2": None, "s3": 1, "s4": float("nan"), "s5": 3}


def _accessor(values):
    return lambda sample: values.get(sample)


def test_is_number_and_is_defined():
    assert operations.is_number(1)
    assert operations.is_number(float("nan"))
    assert not operations.is_number(True)
    assert not operations.is_number("1")

    assert operations.is_defined(0)
    assert operations.is_defined("x")
    assert not operations.is_defined(None)
    assert not operations.is_defined(math.nan)


def test_sort_places_undefined_last_in_both_directions():
    values = _make_values()
    samples = list(values)
    accessor = _accessor(values)

    ascending = operations.sort(samples, accessor)
    descending = operations.sort(samples, accessor, descending=True)

    assert ascending[:3] == ["s3", "s5", "s1"]
    assert descending[:3] == ["s1", "s5", "s3"]
    # Stable: undefined samples keep their relative order
    assert ascending[3:] == descending[3:] == ["s2", "s4"]


def test_quantitative_comparison_is_descending():
    values = _make_values()
    info = AttributeInfo(name="v", accessor=_accessor(values), type="quantitative")
    wrapped = operations.wrap_accessor_for_comparison(info.accessor, info)

    assert operations.sort(list(values), wrapped) == ["s1", "s5", "s3", "s2", "s4"]


def test_nominal_comparison_follows_the_scale_domain():
    values = {"a": "low", "b": "high", "c": "mid", "d": None}
    info = AttributeInfo(
        name="level", accessor=_accessor(values), type="ordinal", scale={"domain": ["low", "mid", "high"]}
    )
    wrapped = operations.wrap_accessor_for_comparison(info.accessor, info)

    assert operations.sort(list(values), wrapped) == ["a", "c", "b", "d"]


def test_retain_first_of_each():
    values = {"s1": "A", "s2": "B", "s3": "A", "s4": None, "s5": None}
    assert operations.retain_first_of_each(list(values), _accessor(values)) == ["s1", "s2", "s4"]


@pytest.mark.parametrize(
    "operator, expected",
    [
        ("lt", ["s3"]),
        ("lte", ["s3", "s5"]),
        ("eq", ["s5"]),
        ("gte", ["s1", "s5"]),
        ("gt", ["s1"]),
    ],
)
def test_filter_quantitative(operator, expected):
    values = _make_values()
    assert operations.filter_quantitative(list(values), _accessor(values), operator, 3) == expected


def test_filter_quantitative_unknown_operator():
    with pytest.raises(ConfigError):
        operations.filter_quantitative(["s1"], lambda s: 1, "between", 3)


def test_filter_quantitative_rejects_a_string_operand():
    with pytest.raises(ConfigError):
        operations.filter_quantitative(["s1"], lambda s: 1, "gte", "3")


def test_filter_nominal():
    values = {"s1": "A", "s2": "B", "s3": "C"}
    accessor = _accessor(values)

    assert operations.filter_nominal(list(values), accessor, "retain", ["A", "C"]) == ["s1", "s3"]
    assert operations.filter_nominal(list(values), accessor, "remove", ["A", "C"]) == ["s2"]

    with pytest.raises(ConfigError):
        operations.filter_nominal(list(values), accessor, "keep", ["A"])


def test_filter_undefined():
    values = _make_values()
    assert operations.filter_undefined(list(values), _accessor(values)) == ["s1", "s3", "s5"]


def test_group_by_accessor_first_seen_order():
    values = {"s1": "A", "s2": "B", "s3": "A", "s4": None, "s5": "C", "s6": float("nan")}

    grouped = operations.group_by_accessor(list(values), _accessor(values))

    assert list(grouped) == ["A", "B", None, "C"]
    assert grouped["A"] == ["s1", "s3"]
    assert grouped[None] == ["s4", "s6"]


def test_extract_quantiles_matches_linear_interpolation():
    samples = [f"s{i}" for i in range(1, 9)]
    values = {s: i for i, s in enumerate(samples, start=1)}

    thresholds = operations.extract_quantiles(samples, _accessor(values), operations.QUARTILE_P_VALUES)

    assert thresholds == pytest.approx([2.75, 4.5, 6.25])


def test_extract_quantiles_skips_non_numeric_values():
    values = {"a": 1, "b": None, "c": "x", "d": 3}
    assert operations.extract_quantiles(list(values), _accessor(values), [0.5]) == [2.0]
    assert operations.extract_quantiles(["b", "c"], _accessor(values), [0.5]) == []


def test_quantile_accessor_uses_strict_less_than():
    values = {"low": 1, "edge": 2.75, "mid": 5, "top": 8, "none": None, "nan": float("nan")}
    quantile = operations.create_quantile_accessor(_accessor(values), [2.75, 4.5, 6.25])

    assert quantile("low") == 0
    # A value equal to a threshold belongs to the next bucket
    assert quantile("edge") == 1
    assert quantile("mid") == 2
    assert quantile("top") == 3
    assert quantile("none") is None
    assert quantile("nan") is None


def test_quantile_accessor_without_thresholds():
    quantile = operations.create_quantile_accessor(lambda s: 1, [])
    assert quantile("any") is None
