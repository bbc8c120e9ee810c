import asyncio
import json
from pathlib import Path

import pytest

from track_browser.browser import TrackBrowser
from track_browser.config import load_browser_config, parse_browser_config, resolve_data_path
from track_browser.config.loader import DATA_ROOT_ENV
from track_browser.core.exceptions import ConfigError
from track_browser.samples import actions


def _make_config_dir(tmp_path: Path) -> Path:
    """
    Build:
    tmp/
      config/browser.json
      data/genes.tsv
      data/samples.tsv
      data/tiny.chrom.sizes
    """
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "genes.tsv").write_text(
        "sample\tchrom\tstart\tend\n"
        "s1\tchr1\t10\t20\n"
        "s2\tchr2\t5\t15\n"
        "s1\tchr2\t1\t2\n"
    )
    (data_dir / "samples.tsv").write_text("sample\tsubtype\ns1\tA\ns2\tB\n")
    (data_dir / "tiny.chrom.sizes").write_text("chr1\t100\nchr2\t50\n")

    config_dir = tmp_path / "config"
    config_dir.mkdir()
    config = {
        "global": {"title": "Tiny Browser", "data_root": "../data"},
        "genome": {"name": "tiny", "chromSizes": "tiny.chrom.sizes"},
        "samples": {"metadata": "samples.tsv"},
        "spec": {
            "data": {"url": "genes.tsv"},
            "encoding": {"sample": {"field": "sample"}},
            "layer": [
                {
                    "name": "genes",
                    "mark": "rect",
                    "encoding": {
                        "x": {"chrom": "chrom", "pos": "start", "type": "locus"},
                        "x2": {"chrom": "chrom", "pos": "end"},
                    },
                },
                {"name": "labels", "mark": "text"},
            ],
        },
    }
    path = config_dir / "browser.json"
    path.write_text(json.dumps(config))
    return path


def test_load_browser_config_resolves_paths_against_data_root(tmp_path, monkeypatch):
    monkeypatch.delenv(DATA_ROOT_ENV, raising=False)
    path = _make_config_dir(tmp_path)

    config = load_browser_config(path)

    assert config.title == "Tiny Browser"
    assert config.data_root == (tmp_path / "data").resolve()
    assert config.sample_metadata == config.data_root / "samples.tsv"
    assert config.spec["baseUrl"] == str(config.data_root)
    assert config.source_path == path


def test_data_root_env_var_wins(tmp_path, monkeypatch):
    monkeypatch.setenv(DATA_ROOT_ENV, str(tmp_path / "elsewhere"))

    config = parse_browser_config({"global": {"data_root": "data"}, "spec": {"mark": "point"}})

    assert config.data_root == tmp_path / "elsewhere"


def test_explicit_base_url_is_kept(monkeypatch):
    monkeypatch.setenv(DATA_ROOT_ENV, "/srv/data")

    config = parse_browser_config({"spec": {"mark": "point", "baseUrl": "/other"}})

    assert config.spec["baseUrl"] == "/other"


def test_missing_spec_raises_with_config_attached():
    raw = {"global": {"title": "No spec"}}

    with pytest.raises(ConfigError) as excinfo:
        parse_browser_config(raw)

    assert excinfo.value.config == raw


def test_missing_and_invalid_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_browser_config(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(ConfigError):
        load_browser_config(broken)


def test_resolve_data_path(tmp_path):
    (tmp_path / "a.tsv").write_text("x\n")

    assert resolve_data_path("data/a.tsv", tmp_path) == tmp_path / "a.tsv"
    assert resolve_data_path("b.tsv", tmp_path) == tmp_path / "b.tsv"
    assert resolve_data_path("/abs/c.tsv", tmp_path) == Path("/abs/c.tsv")
    assert resolve_data_path("d.tsv", None) == Path("d.tsv")


def test_browser_from_config_end_to_end(tmp_path, monkeypatch):
    monkeypatch.delenv(DATA_ROOT_ENV, raising=False)
    browser = TrackBrowser.from_config(load_browser_config(_make_config_dir(tmp_path)))

    asyncio.run(browser.launch())

    assert browser.title == "Tiny Browser"
    assert browser.collector_summary() == {
        "root/genes": {"facets": 2, "records": 3},
        "root/labels": {"facets": 2, "records": 3},
    }

    genes = browser.get_view("genes")
    assert genes.get_domain("x").to_list() == [10, 115]

    # The linearization of one branch is invisible to its sibling
    labels = browser.get_view("labels")
    assert all("_linearized_chrom_start" not in r for r in labels.get_data().flat_data())

    handler = browser.sample_handler
    handler.dispatch(actions.group_by_nominal({"type": "SAMPLE_ATTRIBUTE", "specifier": "subtype"}))
    assert [g.name for g in handler.get_sample_groups()] == ["A", "B"]


def test_browser_without_metadata_has_no_samples():
    browser = TrackBrowser({"data": {"values": [1, 2]}, "mark": "point"})
    asyncio.run(browser.launch())

    assert browser.sample_handler.state is None
    assert browser.get_view("") is browser.root
    assert browser.get_view("anything") is None
    assert browser.collector_summary() == {"root": {"facets": 1, "records": 2}}
