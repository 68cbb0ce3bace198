"""Unit tests for the graph cache."""

from __future__ import annotations

import json

import pytest

from csvgraph.core.exceptions import CacheCorruptionWarning, SchemaParseError, SourceFileError
from csvgraph.schema.cache import (
    CACHE_FILE_NAME,
    GraphCache,
    fingerprint,
    graph_from_payload,
    graph_to_payload,
    resolve_graph,
)

from conftest import SHOP_SCHEMA, graph_from_sql


class TestFingerprint:
    """Tests for fingerprint."""

    def test_stable(self):
        """The same text always gives the same fingerprint."""
        assert fingerprint(SHOP_SCHEMA) == fingerprint(SHOP_SCHEMA)
        assert len(fingerprint(SHOP_SCHEMA)) == 64

    def test_changes_with_schema(self):
        """Any edit to the schema changes the fingerprint."""
        assert fingerprint(SHOP_SCHEMA) != fingerprint(SHOP_SCHEMA + "\n")

    def test_changes_with_weights(self):
        """The weights file is part of the fingerprint."""
        plain = fingerprint(SHOP_SCHEMA)
        weighted = fingerprint(SHOP_SCHEMA, "joins: []\n")
        assert plain != weighted
        assert weighted != fingerprint(SHOP_SCHEMA, "joins:\n  - {left: a, right: b, weight: 2}\n")


class TestGraphCache:
    """Tests for GraphCache save/load."""

    def test_round_trip(self, tmp_path, shop_graph):
        """A saved graph loads back equal under the same fingerprint."""
        cache = GraphCache(tmp_path)
        cache.save(shop_graph, "abc", schema_path="shop.sql")
        assert cache.load("abc") == shop_graph
        assert cache.warnings == []

    def test_file_layout(self, tmp_path, shop_graph):
        """graph.json records version, fingerprint and source next to the graph."""
        GraphCache(tmp_path).save(shop_graph, "abc", schema_path="shop.sql")
        payload = json.loads((tmp_path / CACHE_FILE_NAME).read_text(encoding="utf-8"))
        assert payload["version"] == 1
        assert payload["fingerprint"] == "abc"
        assert payload["schema_path"] == "shop.sql"
        assert "generated_at" in payload
        assert [table["name"] for table in payload["tables"]] == ["customers", "orders", "items", "suppliers"]

    def test_no_temporary_files_left(self, tmp_path, shop_graph):
        """Saving replaces the file in one step and cleans up."""
        cache = GraphCache(tmp_path)
        cache.save(shop_graph, "one")
        cache.save(shop_graph, "two")
        assert [path.name for path in tmp_path.iterdir()] == [CACHE_FILE_NAME]

    def test_failed_write_keeps_previous_cache(self, tmp_path, shop_graph, monkeypatch):
        """A save that fails before the rename leaves the old graph.json readable."""
        cache = GraphCache(tmp_path)
        cache.save(shop_graph, "one")

        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("csvgraph.core.fs.os.replace", failing_replace)
        with pytest.raises(OSError, match="disk full"):
            cache.save(graph_from_sql("CREATE TABLE other (id INT);"), "two")
        monkeypatch.undo()

        assert [path.name for path in tmp_path.iterdir()] == [CACHE_FILE_NAME]
        assert cache.load("one") == shop_graph
        assert cache.load("two") is None

    def test_missing_file(self, tmp_path):
        """No file is a silent miss."""
        cache = GraphCache(tmp_path)
        assert cache.load("abc") is None
        assert cache.warnings == []

    def test_stale_fingerprint(self, tmp_path, shop_graph):
        """Another fingerprint is a silent miss."""
        cache = GraphCache(tmp_path)
        cache.save(shop_graph, "abc")
        assert cache.load("def") is None
        assert cache.warnings == []

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            "[1, 2, 3]",
            json.dumps({"fingerprint": "abc", "tables": [{"name": "a"}], "relationships": []}),
            json.dumps(
                {
                    "fingerprint": "abc",
                    "tables": [{"name": "a", "columns": []}],
                    "relationships": [
                        {"from_table": "a", "from_column": "x", "to_table": "zzz", "to_column": "y", "weight": 1}
                    ],
                }
            ),
        ],
    )
    def test_corrupted_file(self, tmp_path, content):
        """Unreadable content is a miss with a CacheCorruptionWarning."""
        (tmp_path / CACHE_FILE_NAME).write_text(content, encoding="utf-8")
        cache = GraphCache(tmp_path)
        assert cache.load("abc") is None
        assert len(cache.warnings) == 1
        assert isinstance(cache.warnings[0], CacheCorruptionWarning)

    def test_warnings_reset_on_each_load(self, tmp_path, shop_graph):
        """A reused cache reports only the corruption found by the latest load."""
        (tmp_path / CACHE_FILE_NAME).write_text("{not json", encoding="utf-8")
        cache = GraphCache(tmp_path)
        assert cache.load("abc") is None
        assert len(cache.warnings) == 1

        cache.save(shop_graph, "abc")
        assert cache.load("abc") == shop_graph
        assert cache.warnings == []

    def test_payload_rejects_non_integer_weight(self, shop_graph):
        """Weights must stay integers in the cache."""
        payload = graph_to_payload(shop_graph)
        payload["relationships"][0]["weight"] = "2"
        with pytest.raises(ValueError):
            graph_from_payload(payload)


class TestResolveGraph:
    """Tests for resolve_graph."""

    @pytest.fixture
    def schema_file(self, tmp_path):
        path = tmp_path / "shop.sql"
        path.write_text(SHOP_SCHEMA, encoding="utf-8")
        return path

    def test_build_then_reuse(self, tmp_path, schema_file, shop_graph):
        """The first call builds, the second reads the cache."""
        cache = GraphCache(tmp_path / ".csvgraph")
        first = resolve_graph(schema_file, cache)
        second = resolve_graph(schema_file, GraphCache(tmp_path / ".csvgraph"))
        assert first.rebuilt is True
        assert second.rebuilt is False
        assert first.graph == second.graph == shop_graph
        assert first.fingerprint == second.fingerprint == fingerprint(SHOP_SCHEMA)

    def test_schema_change_rebuilds(self, tmp_path, schema_file):
        """Editing the schema invalidates the cache."""
        cache_dir = tmp_path / ".csvgraph"
        resolve_graph(schema_file, GraphCache(cache_dir))
        schema_file.write_text(SHOP_SCHEMA + "CREATE TABLE extra (id INT);\n", encoding="utf-8")
        resolution = resolve_graph(schema_file, GraphCache(cache_dir))
        assert resolution.rebuilt is True
        assert "extra" in resolution.graph.tables

    def test_force_rebuilds(self, tmp_path, schema_file):
        """force skips the cache even when it is fresh."""
        cache_dir = tmp_path / ".csvgraph"
        resolve_graph(schema_file, GraphCache(cache_dir))
        assert resolve_graph(schema_file, GraphCache(cache_dir), force=True).rebuilt is True

    def test_corrupted_cache_rebuilds_with_warning(self, tmp_path, schema_file, shop_graph):
        """A damaged cache is replaced and the warning is passed on."""
        cache_dir = tmp_path / ".csvgraph"
        cache_dir.mkdir()
        (cache_dir / CACHE_FILE_NAME).write_text("garbage", encoding="utf-8")
        resolution = resolve_graph(schema_file, GraphCache(cache_dir))
        assert resolution.rebuilt is True
        assert resolution.graph == shop_graph
        assert any(isinstance(warning, CacheCorruptionWarning) for warning in resolution.warnings)
        assert GraphCache(cache_dir).load(resolution.fingerprint) == shop_graph

    def test_reused_cache_does_not_repeat_old_warnings(self, tmp_path, schema_file):
        """Once the cache is repaired, later resolutions carry no corruption warning."""
        cache_dir = tmp_path / ".csvgraph"
        cache_dir.mkdir()
        (cache_dir / CACHE_FILE_NAME).write_text("garbage", encoding="utf-8")
        cache = GraphCache(cache_dir)
        first = resolve_graph(schema_file, cache)
        assert any(isinstance(warning, CacheCorruptionWarning) for warning in first.warnings)

        second = resolve_graph(schema_file, cache)
        assert second.rebuilt is False
        assert second.warnings == []
        assert resolve_graph(schema_file, cache, force=True).warnings == []

    def test_weights_file_applies_and_invalidates(self, tmp_path, schema_file):
        """Weights come from the rules file and editing it rebuilds."""
        cache_dir = tmp_path / ".csvgraph"
        rules = tmp_path / "weights.yaml"
        rules.write_text("joins:\n  - left: orders\n    right: customers\n    weight: 4\n", encoding="utf-8")
        first = resolve_graph(schema_file, GraphCache(cache_dir), rules_path=rules)
        weights = {rel.to_table: rel.weight for rel in first.graph.relationships}
        assert weights == {"customers": 4, "orders": 1}

        rules.write_text("joins:\n  - left: orders\n    right: customers\n    weight: 2\n", encoding="utf-8")
        second = resolve_graph(schema_file, GraphCache(cache_dir), rules_path=rules)
        assert second.rebuilt is True
        assert {rel.to_table: rel.weight for rel in second.graph.relationships}["customers"] == 2

    def test_missing_schema(self, tmp_path):
        """A missing schema file is a SourceFileError."""
        with pytest.raises(SourceFileError, match="file not found"):
            resolve_graph(tmp_path / "missing.sql", GraphCache(tmp_path))

    def test_schema_without_tables(self, tmp_path):
        """A schema with nothing to build fails and leaves no cache."""
        schema = tmp_path / "empty.sql"
        schema.write_text("-- nothing here\n", encoding="utf-8")
        with pytest.raises(SchemaParseError):
            resolve_graph(schema, GraphCache(tmp_path / ".csvgraph"))
        assert not (tmp_path / ".csvgraph" / CACHE_FILE_NAME).exists()
