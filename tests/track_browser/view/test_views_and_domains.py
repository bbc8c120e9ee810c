from __future__ import annotations

import asyncio

import pytest

from track_browser.core.exceptions import ConfigError, FlowStateError
from track_browser.view import (
    ContainerView,
    FlowBuilder,
    OrdinalDomain,
    QuantitativeDomain,
    UnitView,
    ViewContext,
    create_domain,
    create_view,
    union_domains,
)
from track_browser.view.view import VISIT_SKIP, VISIT_STOP


def _make_hierarchy():
    """
    root (vconcat, baseUrl /data, color encoding)
    ├── tracks (layer)
    │   ├── genes (rect)
    │   └── labels (text, own color)
    └── overview (point)
    """
    spec = {
        "baseUrl": "/data",
        "encoding": {"color": {"value": "red"}, "y": {"field": "y", "type": "quantitative"}},
        "vconcat": [
            {
                "name": "tracks",
                "layer": [
                    {"name": "genes", "mark": "rect"},
                    {"name": "labels", "mark": {"type": "text"}, "encoding": {"color": {"value": "black"}}},
                ],
            },
            {"name": "overview", "mark": "point"},
        ],
    }
    return create_view(spec, ViewContext())


def _loaded_view(values, encoding):
    context = ViewContext()
    view = create_view({"data": {"values": values}, "mark": "point", "encoding": encoding}, context)
    FlowBuilder(context.data_flow).build(view)
    asyncio.run(context.data_flow.load_all())
    return view


# -------------------------------------------------------------------------
# Hierarchy
# -------------------------------------------------------------------------

def test_create_view_types_and_paths():
    root = _make_hierarchy()

    assert isinstance(root, ContainerView)
    labels = root.find_descendant_by_path(["tracks", "labels"])
    assert isinstance(labels, UnitView)
    assert labels.get_mark_type() == "text"
    assert labels.get_path_string() == "root/tracks/labels"
    assert [child.name for child in root] == ["tracks", "overview"]


def test_unnamed_children_are_named_after_the_container():
    root = create_view({"layer": [{"mark": "point"}, {"mark": "rule"}]}, ViewContext())
    assert [child.name for child in root] == ["layer0", "layer1"]


def test_invalid_specs():
    with pytest.raises(ConfigError):
        create_view({"mark": "hexbin"}, ViewContext())
    with pytest.raises(ConfigError):
        create_view({"data": {"values": []}}, ViewContext())


def test_encoding_and_base_url_are_inherited():
    root = _make_hierarchy()
    genes = root.find_descendant_by_path(["tracks", "genes"])
    labels = root.find_descendant_by_path(["tracks", "labels"])

    assert genes.get_encoding()["color"] == {"value": "red"}
    assert labels.get_encoding()["color"] == {"value": "black"}
    assert labels.get_encoding()["y"]["field"] == "y"
    assert genes.get_base_url() == "/data"


def test_visit_order_with_after_children():
    root = _make_hierarchy()
    entered, exited = [], []

    root.visit(lambda v: entered.append(v.name), lambda v: exited.append(v.name))

    assert entered == ["root", "tracks", "genes", "labels", "overview"]
    assert exited == ["genes", "labels", "tracks", "overview", "root"]


def test_visit_skip_and_stop():
    root = _make_hierarchy()

    skipped = []
    root.visit(lambda v: skipped.append(v.name) or (VISIT_SKIP if v.name == "tracks" else None))
    assert skipped == ["root", "tracks", "overview"]

    stopped = []
    root.visit(lambda v: stopped.append(v.name) or (VISIT_STOP if v.name == "genes" else None))
    assert stopped == ["root", "tracks", "genes"]


def test_get_data_without_a_collector():
    with pytest.raises(FlowStateError):
        create_view({"mark": "point"}, ViewContext()).get_data()


# -------------------------------------------------------------------------
# Domains
# -------------------------------------------------------------------------

def test_quantitative_domain_ignores_missing_values():
    domain = QuantitativeDomain([3, None, float("nan"), -1, True, 7])
    assert domain.to_list() == [-1, 7]
    assert QuantitativeDomain().is_empty()


def test_ordinal_domain_keeps_first_seen_order():
    domain = OrdinalDomain("nominal", ["b", "a", "b", None, "c"])
    assert domain.to_list() == ["b", "a", "c"]


def test_create_domain_unknown_type():
    with pytest.raises(ValueError):
        create_domain("temporal")


def test_union_domains():
    merged = union_domains([QuantitativeDomain([1, 2]), None, QuantitativeDomain([-5, 0])])
    assert merged.to_list() == [-5, 2]

    with pytest.raises(ValueError):
        union_domains([QuantitativeDomain([1]), OrdinalDomain("nominal", ["a"])])


def test_domain_extracted_from_data_includes_secondary_channel():
    view = _loaded_view(
        [{"start": 10, "end": 15}, {"start": 2, "end": 30}],
        {"x": {"field": "start", "type": "quantitative"}, "x2": {"field": "end"}},
    )
    assert view.get_domain("x").to_list() == [2, 30]


def test_configured_domain_wins():
    view = _loaded_view(
        [{"cat": "b"}, {"cat": "a"}],
        {"color": {"field": "cat", "type": "nominal", "scale": {"domain": ["a", "b", "c"]}}},
    )
    assert view.get_domain("color").to_list() == ["a", "b", "c"]


def test_nominal_domain_from_data():
    view = _loaded_view([{"cat": "b"}, {"cat": "a"}, {"cat": "b"}], {"color": {"field": "cat", "type": "nominal"}})
    assert view.get_domain("color").to_list() == ["b", "a"]


def test_get_domain_errors():
    view = _loaded_view([{"v": 1}], {"x": {"field": "v"}, "x2": {"field": "v"}})

    with pytest.raises(ValueError):
        view.get_domain("x2")
    with pytest.raises(ValueError):
        view.get_domain("x")
    assert view.get_domain("y") is None
