import csv
import json
from unittest.mock import patch

import pytest

from bcnf_audit import (
    RelationAuditor,
    RelationSpec,
    Runner,
    SchemaReader,
    demo_relations,
    load_relation_json,
    main,
    parse_fd,
)
from fd_types import FD, FDSet
from normalization_config import CONFIG
from seed_demo_schema import build_engine, seed, split_batches, tables_exist


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite:///{tmp_path / 'demo.db'}"


@pytest.fixture
def seeded_url(sqlite_url):
    engine = build_engine(sqlite_url)
    seed(engine)
    engine.dispose()
    return sqlite_url


@pytest.fixture
def isolated_config():
    with patch.dict(CONFIG, {"SOURCES": list(CONFIG["SOURCES"])}), patch.dict(CONFIG["TRACE"]):
        yield CONFIG


def test_parse_fd():
    assert parse_fd("A, E -> D") == FD(["A", "E"], ["D"])
    assert parse_fd("zip->city,state") == FD(["zip"], ["city", "state"])


@pytest.mark.parametrize("text", ["A B C", "->D", "A->", "A=>B"])
def test_parse_fd_rejects_malformed_text(text):
    with pytest.raises(ValueError):
        parse_fd(text)


def test_load_relation_json(tmp_path):
    path = tmp_path / "orders.json"
    path.write_text(json.dumps({
        "relationName": "Orders",
        "attributes": ["OrderID", "CustomerID", "City"],
        "functionalDependencies": [
            {"left": ["OrderID"], "right": ["CustomerID"]},
            {"left": ["CustomerID"], "right": ["City"]},
        ],
    }))

    relation = load_relation_json(path)

    assert relation.name == "Orders"
    assert relation.attributes == ("OrderID", "CustomerID", "City")
    assert FD(["CustomerID"], ["City"]) in relation.fds
    assert relation.source == str(path)


def test_load_relation_json_rejects_incomplete_fd(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"attributes": ["A"], "functionalDependencies": [{"left": ["A"]}]}))
    with pytest.raises(ValueError):
        load_relation_json(path)


def test_auditor_summarises_sub_relations():
    relation = demo_relations()[1]
    result = RelationAuditor(relation).audit()

    assert not result.was_bcnf
    assert result.schemas == [("A", "B"), ("A", "C"), ("A", "D")]
    assert result.superkeys[0] == ("A", "D")
    assert result.sub_relations[0].superkeys[0] == ("A",)


def test_auditor_keeps_bcnf_relation_whole():
    relation = RelationSpec(name="R", attributes=("A", "B", "C"), fds=FDSet([FD(["A"], ["B", "C"])]))
    result = RelationAuditor(relation).audit()

    assert result.was_bcnf
    assert result.schemas == [("A", "B", "C")]


def test_runner_writes_artifacts(tmp_path):
    bad = RelationSpec(name="Broken", attributes=("A",), fds=FDSet([FD(["B"], ["A"])]))
    runner = Runner(tmp_path / "run")
    failures = runner.run(demo_relations() + [bad])

    assert failures == 1
    assert runner.failures[0][0] == "Broken"

    manifest = json.loads((tmp_path / "run" / "manifest.json").read_text())
    assert [entry["relation"] for entry in manifest["relations"]] == ["U", "S", "Broken"]
    assert "error" in manifest["relations"][2]

    record = json.loads((tmp_path / "run" / "source_demo" / "U" / "decomposition.json").read_text())
    assert [sub["attributes"] for sub in record["sub_relations"]] == [["A", "B", "C"], ["A", "D", "E"], ["B", "D"]]

    report = (tmp_path / "run" / "source_demo" / "S" / "report.md").read_text()
    assert report.startswith("# BCNF Report: S")
    assert "- {A} -> {B}" in report

    with (tmp_path / "run" / "summary.csv").open() as fh:
        rows = list(csv.reader(fh))
    assert rows[0][:2] == ["source", "relation"]
    assert len(rows) == 3


def test_split_batches():
    assert list(split_batches("a\nGO\nb\nc\ngo\n")) == ["a", "b\nc"]


def test_seed_is_idempotent(sqlite_url, capsys):
    engine = build_engine(sqlite_url)
    seed(engine)
    assert tables_exist(engine)
    seed(engine)
    engine.dispose()
    assert "already present" in capsys.readouterr().out


def test_schema_reader_reflects_columns(seeded_url):
    reader = SchemaReader(seeded_url, "test")
    try:
        assert reader.list_tables() == ["S", "U"]
        relation = reader.read_relation("U")
        assert relation.attributes == ("A", "B", "C", "D", "E")
        assert FD(["D"], ["B"]) in relation.fds
        with pytest.raises(ValueError):
            reader.list_columns("Missing")
    finally:
        reader.dispose()


def test_main_demo(capsys, isolated_config):
    assert main(["demo"]) == 0
    out = capsys.readouterr().out
    assert "Final BCNF Schemas: [{A, B, C}, {A, D, E}, {B, D}]" in out
    assert "Final BCNF Schemas: [{A, B}, {A, C}, {A, D}]" in out


def test_main_reflects_database(seeded_url, capsys, isolated_config):
    assert main(["--url", seeded_url, "--table", "S", "--fd", "A->B", "--fd", "B->C"]) == 0
    assert "Final BCNF Schemas: [{A, B}, {A, C}, {A, D}]" in capsys.readouterr().out


def test_main_reports_failures(tmp_path, isolated_config):
    path = tmp_path / "stray.json"
    path.write_text(json.dumps({
        "relationName": "R",
        "attributes": ["A"],
        "functionalDependencies": [{"left": ["B"], "right": ["A"]}],
    }))
    assert main(["--input", str(path), "--output", str(tmp_path / "out")]) == 1
