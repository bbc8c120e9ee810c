from __future__ import annotations

import asyncio

import pytest

from track_browser.core.exceptions import FlowBuildError
from track_browser.core.genome import Genome
from track_browser.data import Collector, InlineSource
from track_browser.data.transforms import CloneTransform, FlattenSequenceTransform, IdentifierTransform
from track_browser.view import FlowBuilder, ViewContext, create_chain, create_view


def _build(spec, *, optimize=True, genome=None):
    context = ViewContext(genome=genome)
    root = create_view(spec, context)
    builder = FlowBuilder(context.data_flow, optimize=optimize)
    builder.build(root)
    return root, builder


def _load(builder):
    asyncio.run(builder.data_flow.load_all())


def _types(node):
    """Node type names along a linear chain, starting from node."""
    names = [node.type_name]
    while node.children:
        assert len(node.children) == 1
        node = node.children[0]
        names.append(node.type_name)
    return names


def _make_sibling_spec():
    return {
        "data": {"values": [{"a": 1}, {"a": 2}]},
        "layer": [
            {"name": "tagged", "mark": "point", "transform": [{"type": "identifier", "as": "id"}]},
            {"name": "plain", "mark": "point"},
        ],
    }


def test_siblings_branch_off_the_shared_source():
    root, builder = _build(_make_sibling_spec())
    source = builder.data_flow.data_sources[0]

    assert len(source.children) == 2
    assert isinstance(source.children[0], CloneTransform)
    assert isinstance(source.children[1], Collector)


def test_modification_does_not_leak_into_sibling_branch():
    root, builder = _build(_make_sibling_spec())
    _load(builder)

    tagged = root.find_child_by_name("tagged")
    plain = root.find_child_by_name("plain")

    assert [r["id"] for r in tagged.get_data().flat_data()] == [0, 1]
    assert all("id" not in r for r in plain.get_data().flat_data())


def test_parent_transforms_are_shared_by_children():
    spec = {
        "data": {"values": [{"a": 1}, {"a": 5}]},
        "transform": [{"type": "filter", "field": "a", "range": [0, 2]}],
        "layer": [{"mark": "point"}, {"mark": "rect"}],
    }
    root, builder = _build(spec)
    _load(builder)

    source = builder.data_flow.data_sources[0]
    (filter_node,) = source.children
    assert filter_node.type_name == "filter"
    assert len(filter_node.children) == 2

    for child in root:
        assert list(child.get_data().flat_data()) == [{"a": 1}]


def test_edges_list_every_parent_child_pair():
    root, builder = _build(_make_sibling_spec())

    edges = [(parent.type_name, child.type_name) for parent, child in builder.edges]
    assert sorted(edges) == sorted(
        [("inline", "clone"), ("clone", "identifier"), ("identifier", "collect"), ("inline", "collect")]
    )


def test_clone_after_a_cloning_transform_is_removed():
    spec = {
        "data": {"values": [{"sequence": "AC"}]},
        "mark": "text",
        "transform": [{"type": "flattenSequence"}, {"type": "identifier"}],
    }

    _, unoptimized = _build(spec, optimize=False)
    assert _types(unoptimized.data_flow.data_sources[0]) == [
        "inline", "flattenSequence", "clone", "identifier", "collect"
    ]

    _, optimized = _build(spec)
    assert _types(optimized.data_flow.data_sources[0]) == [
        "inline", "flattenSequence", "identifier", "collect"
    ]
    assert ("flattenSequence", "identifier") in [
        (p.type_name, c.type_name) for p, c in optimized.edges
    ]


def test_clone_directly_below_the_source_is_kept():
    spec = {
        "data": {"values": [{"a": 1}]},
        "mark": "point",
        "transform": [{"type": "identifier"}],
    }
    _, builder = _build(spec)

    assert _types(builder.data_flow.data_sources[0]) == ["inline", "clone", "identifier", "collect"]


def test_unit_view_without_data_fails():
    with pytest.raises(FlowBuildError) as excinfo:
        _build({"mark": "point"})

    assert excinfo.value.config == {"mark": "point"}


def test_unknown_transform_fails():
    with pytest.raises(FlowBuildError):
        _build({"data": {"values": [1]}, "mark": "point", "transform": [{"type": "pileup"}]})


def test_unknown_data_source_fails():
    with pytest.raises(FlowBuildError):
        _build({"data": {"lazy": {"type": "bigwig"}}, "mark": "rect"})


def test_facets_and_sorting_from_the_encoding():
    spec = {
        "data": {
            "values": [
                {"sample": "s1", "pos": 30},
                {"sample": "s2", "pos": 10},
                {"sample": "s1", "pos": 20},
            ]
        },
        "mark": "point",
        "encoding": {
            "sample": {"field": "sample"},
            "x": {"field": "pos", "type": "quantitative"},
        },
    }
    root, builder = _build(spec)
    _load(builder)

    data = root.get_data()
    assert [g.key for g in data.subgroups] == ["s1", "s2"]
    assert [r["pos"] for r in data.subgroups[0].data] == [20, 30]


def test_locus_channels_are_linearized():
    genome = Genome.from_contigs("tiny", [{"name": "chr1", "size": 100}, {"name": "chr2", "size": 50}])
    spec = {
        "data": {
            "values": [
                {"chrom": "chr1", "start": 5, "end": 10},
                {"chrom": "chr2", "start": 0, "end": 20},
            ]
        },
        "mark": "rect",
        "encoding": {
            "x": {"chrom": "chrom", "pos": "start", "type": "locus"},
            "x2": {"chrom": "chrom", "pos": "end"},
        },
    }
    root, builder = _build(spec, genome=genome)
    _load(builder)

    encoding = root.get_encoding()
    assert encoding["x"] == {"field": "_linearized_chrom_start", "type": "locus"}
    assert encoding["x2"]["field"] == "_linearized_chrom_end"
    # The view spec dict is left as configured
    assert "chrom" in root.spec["encoding"]["x"]

    records = list(root.get_data().flat_data())
    assert [r["_linearized_chrom_start"] for r in records] == [5, 100]
    assert [r["_linearized_chrom_end"] for r in records] == [10, 120]

    assert root.get_domain("x").to_list() == [5, 120]


def test_linearized_records_are_sorted_along_the_genome():
    genome = Genome.from_contigs("tiny", [{"name": "chr1", "size": 100}, {"name": "chr2", "size": 50}])
    spec = {
        "data": {
            "values": [
                {"chrom": "chr2", "start": 0},
                {"chrom": "chr1", "start": 5},
            ]
        },
        "mark": "point",
        "encoding": {"x": {"chrom": "chrom", "pos": "start", "type": "locus"}},
    }
    root, builder = _build(spec, genome=genome)
    _load(builder)

    collector = builder.data_flow.find_collector_by_host(root)
    assert collector.params["sort"] == {"field": "_linearized_chrom_start"}

    records = list(root.get_data().flat_data())
    assert [r["_linearized_chrom_start"] for r in records] == [5, 100]
    assert [r["chrom"] for r in records] == ["chr1", "chr2"]


def test_builder_adds_to_an_existing_flow():
    context = ViewContext()
    first = create_view({"data": {"values": [1]}, "mark": "point"}, context)
    second = create_view({"data": {"values": [2]}, "mark": "point"}, context, name="other")

    FlowBuilder(context.data_flow).build(first)
    FlowBuilder(context.data_flow).build(second)

    assert len(context.data_flow.data_sources) == 2
    assert len(context.data_flow.collectors) == 2


def test_create_chain():
    chain = create_chain(
        InlineSource({"values": [{"sequence": "ACG"}]}),
        FlattenSequenceTransform({}),
        IdentifierTransform(),
    )

    result = asyncio.run(chain.load_and_collect())

    assert [(r["sequence"], r["_uniqueId"]) for r in result.flat_data()] == [("A", 0), ("C", 1), ("G", 2)]
    assert chain.collector is chain.data_source.children[0].children[0].children[0]


def test_create_chain_requires_a_data_source_root():
    chain = create_chain(FlattenSequenceTransform({}))

    with pytest.raises(FlowBuildError):
        asyncio.run(chain.load_and_collect())
