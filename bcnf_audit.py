"""
BCNF decomposition audit.

Collects relations (built-in demo schemas, JSON documents, or tables reflected
from a database through SQLAlchemy), decomposes each one into BCNF and prints
the resulting schemas. With `--output` every relation also gets a JSON record
and a Markdown report, plus a run-wide manifest and summary CSV.

Configuration lives in `normalization_config.CONFIG`; the command line only
overrides individual entries.
"""
from __future__ import annotations

import argparse
import csv
import json
import re
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine

from fd_closure import fd_set_closure
from fd_types import FDSet, FunctionalDependency, format_attributes
from normalization_config import CONFIG
from normalizer import bcnf_decompose, find_superkeys, format_relations, is_bcnf, project_fds


FD_TEXT_RE = re.compile(r"^\s*(?P<left>[^-]*?)\s*->\s*(?P<right>.*?)\s*$")


# --------------------------------------------------------------------------------------
# Data containers
# --------------------------------------------------------------------------------------
@dataclass
class RelationSpec:
    name: str
    attributes: Tuple[str, ...]
    fds: FDSet
    source: str = "inline"


@dataclass
class SubRelation:
    attributes: Tuple[str, ...]
    superkeys: List[Tuple[str, ...]]
    fd_count: int


@dataclass
class DecompositionResult:
    relation: RelationSpec
    was_bcnf: bool
    superkeys: List[Tuple[str, ...]]
    sub_relations: List[SubRelation] = field(default_factory=list)

    @property
    def schemas(self) -> List[Tuple[str, ...]]:
        return [sub.attributes for sub in self.sub_relations]


# --------------------------------------------------------------------------------------
# Input helpers
# --------------------------------------------------------------------------------------
def _split_attributes(text: str) -> List[str]:
    return [part.strip() for part in text.split(",") if part.strip()]


def parse_fd(text: str) -> FunctionalDependency:
    """Parse `"A, E -> D"` style text into a functional dependency."""
    match = FD_TEXT_RE.match(text)
    if not match:
        raise ValueError(f"Cannot parse functional dependency {text!r}; expected 'A,B->C'")
    left = _split_attributes(match.group("left"))
    right = _split_attributes(match.group("right"))
    if not left or not right:
        raise ValueError(f"Functional dependency {text!r} must have attributes on both sides")
    return FunctionalDependency(left, right)


def parse_fds(texts: Sequence[str]) -> FDSet:
    return FDSet(parse_fd(t) for t in texts)


def _sorted_keys(keys) -> List[Tuple[str, ...]]:
    return sorted((tuple(sorted(k)) for k in keys), key=lambda k: (len(k), k))


def demo_relations() -> List[RelationSpec]:
    """The two textbook relations the normaliser was first exercised on."""
    return [
        RelationSpec(
            name="U",
            attributes=("A", "B", "C", "D", "E"),
            fds=FDSet([
                FunctionalDependency(["A", "E"], ["D"]),
                FunctionalDependency(["A", "B"], ["C"]),
                FunctionalDependency(["D"], ["B"]),
            ]),
            source="demo",
        ),
        RelationSpec(
            name="S",
            attributes=("A", "B", "C", "D"),
            fds=FDSet([
                FunctionalDependency(["A"], ["B"]),
                FunctionalDependency(["B"], ["C"]),
            ]),
            source="demo",
        ),
    ]


def load_relation_json(path: Path) -> RelationSpec:
    """Read a relation document.

    Expected shape::

        {"relationName": "R", "attributes": ["A", "B"],
         "functionalDependencies": [{"left": ["A"], "right": ["B"]}]}
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    attributes = data.get("attributes") or []
    if not attributes:
        raise ValueError(f"{path}: 'attributes' must be a non-empty list")
    fds = FDSet()
    for i, raw in enumerate(data.get("functionalDependencies", [])):
        if "left" not in raw or "right" not in raw:
            raise ValueError(f"{path}: FD #{i} must have 'left' and 'right'")
        if not raw["left"] or not raw["right"]:
            raise ValueError(f"{path}: FD #{i} must have non-empty 'left' and 'right'")
        fds.add(FunctionalDependency(raw["left"], raw["right"]))
    return RelationSpec(
        name=data.get("relationName", Path(path).stem),
        attributes=tuple(dict.fromkeys(attributes)),
        fds=fds,
        source=str(path),
    )


# --------------------------------------------------------------------------------------
# Schema reader
# --------------------------------------------------------------------------------------
class SchemaReader:
    """Reflects table columns through SQLAlchemy; column names become relation attributes."""

    def __init__(self, url: str, name: str = "database") -> None:
        self.name = name
        self.engine: Engine = create_engine(url, future=True)

    def list_tables(self) -> List[str]:
        return sorted(inspect(self.engine).get_table_names())

    def list_columns(self, table: str) -> List[str]:
        if table not in self.list_tables():
            raise ValueError(f"Table {table!r} not found in source {self.name}")
        return [col["name"] for col in inspect(self.engine).get_columns(table)]

    def read_relation(self, table: str, fd_texts: Optional[Sequence[str]] = None) -> RelationSpec:
        if fd_texts is None:
            fd_texts = CONFIG["FDS"].get(table, [])
        return RelationSpec(
            name=table,
            attributes=tuple(self.list_columns(table)),
            fds=parse_fds(fd_texts),
            source=self.name,
        )

    def dispose(self) -> None:
        self.engine.dispose()


# --------------------------------------------------------------------------------------
# Auditor
# --------------------------------------------------------------------------------------
class RelationAuditor:
    """Runs the BCNF test and decomposition for one relation and summarises the pieces."""

    def __init__(self, relation: RelationSpec) -> None:
        self.relation = relation

    def audit(self) -> DecompositionResult:
        attrs = frozenset(self.relation.attributes)
        fds = self.relation.fds
        superkeys = find_superkeys(attrs, fds)
        was_bcnf = is_bcnf(attrs, fds)
        schemas = bcnf_decompose(attrs, fds)

        result = DecompositionResult(relation=self.relation, was_bcnf=was_bcnf, superkeys=_sorted_keys(superkeys))
        # A relation already in BCNF comes back whole and needs no projection.
        closure = fd_set_closure(fds) if len(schemas) > 1 else fds
        for schema in sorted(schemas, key=lambda s: sorted(s)):
            projected = project_fds(closure, schema)
            result.sub_relations.append(
                SubRelation(
                    attributes=tuple(sorted(schema)),
                    superkeys=_sorted_keys(find_superkeys(schema, projected)),
                    fd_count=len(projected),
                )
            )
        return result


# --------------------------------------------------------------------------------------
# Artifact writer
# --------------------------------------------------------------------------------------
class ArtifactWriter:
    """Writes machine-readable and human-readable decomposition artifacts."""

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.manifest: Dict[str, Any] = {"relations": []}
        self.summary_rows: List[List[Any]] = []

    def relation_folder(self, source: str, name: str) -> Path:
        safe_source = re.sub(r"[^\w.-]+", "_", source)
        return self.base_path / f"source_{safe_source}" / name

    def write_json(self, path: Path, obj: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(obj, indent=2, default=str))

    def append_manifest(self, entry: Dict[str, Any]) -> None:
        self.manifest["relations"].append(entry)

    def finalize(self) -> None:
        (self.base_path / "manifest.json").write_text(json.dumps(self.manifest, indent=2, default=str))
        with (self.base_path / "summary.csv").open("w", newline="") as fh:
            writer = csv.writer(fh)
            writer.writerow(["source", "relation", "attributes", "fds", "was_bcnf", "schemas"])
            for row in self.summary_rows:
                writer.writerow(row)

    def write_report(self, path: Path, result: DecompositionResult) -> None:
        rel = result.relation
        lines = [
            f"# BCNF Report: {rel.name}",
            "",
            "## Relation",
            f"- Source: {rel.source}",
            f"- Attributes: {format_attributes(rel.attributes)}",
            "",
            "## Functional Dependencies",
        ]
        for fd in rel.fds:
            lines.append(f"- {fd}")
        if not len(rel.fds):
            lines.append("- None")
        lines.append("")
        lines.append("## Superkeys")
        lines.append(f"- {format_relations(result.superkeys)}")
        lines.append("")
        lines.append("## Decomposition")
        if result.was_bcnf:
            lines.append("- Relation is already in BCNF. No decomposition needed.")
        else:
            for sub in result.sub_relations:
                lines.append(
                    f"- {format_attributes(sub.attributes)} | projected FDs={sub.fd_count} | superkeys={format_relations(sub.superkeys)}"
                )

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines))


# --------------------------------------------------------------------------------------
# Runner
# --------------------------------------------------------------------------------------
class Runner:
    """Decomposes every collected relation, printing results and optionally writing artifacts."""

    def __init__(self, output_root: Optional[Path] = None) -> None:
        self.output_root = output_root
        self.writer = ArtifactWriter(output_root) if output_root is not None else None
        self.results: List[DecompositionResult] = []
        self.failures: List[Tuple[str, str]] = []

    def run(self, relations: Sequence[RelationSpec]) -> int:
        for relation in relations:
            print(f"[INFO] Decomposing {relation.name} from {relation.source}")
            try:
                result = RelationAuditor(relation).audit()
            except Exception as exc:
                print(f"[ERROR] Failed decomposing {relation.name}: {exc}")
                self.failures.append((relation.name, str(exc)))
                if self.writer:
                    self.writer.append_manifest({"source": relation.source, "relation": relation.name, "error": str(exc)})
                continue

            self.results.append(result)
            print(f"Final BCNF Schemas: {format_relations(result.schemas)}")
            if self.writer:
                self._write(result)

        if self.writer:
            self.writer.finalize()
            print(f"[INFO] Run complete. Artifacts at {self.output_root}")
        return len(self.failures)

    def _write(self, result: DecompositionResult) -> None:
        rel = result.relation
        folder = self.writer.relation_folder(rel.source, rel.name)
        self.writer.write_json(folder / "decomposition.json", self._result_to_dict(result))
        self.writer.write_report(folder / "report.md", result)
        self.writer.append_manifest({"source": rel.source, "relation": rel.name, "schemas": len(result.schemas)})
        self.writer.summary_rows.append(
            [rel.source, rel.name, " ".join(rel.attributes), len(rel.fds), result.was_bcnf, format_relations(result.schemas)]
        )

    @staticmethod
    def _result_to_dict(result: DecompositionResult) -> Dict[str, Any]:
        rel = result.relation
        return {
            "relation": rel.name,
            "source": rel.source,
            "attributes": list(rel.attributes),
            "functional_dependencies": [
                {"left": sorted(fd.left), "right": sorted(fd.right)} for fd in rel.fds
            ],
            "superkeys": [list(k) for k in result.superkeys],
            "was_bcnf": result.was_bcnf,
            "sub_relations": [
                {"attributes": list(sub.attributes), "superkeys": [list(k) for k in sub.superkeys], "fd_count": sub.fd_count}
                for sub in result.sub_relations
            ],
        }


def collect_database_relations(
    sources: Sequence[Dict[str, str]], tables: Optional[Sequence[str]], fd_texts: Optional[Sequence[str]]
) -> List[RelationSpec]:
    relations: List[RelationSpec] = []
    for source in sources:
        print(f"[INFO] Connecting to source {source['name']}")
        reader = SchemaReader(source["sqlalchemy_url"], source["name"])
        try:
            for table in tables or reader.list_tables():
                relations.append(reader.read_relation(table, fd_texts))
        finally:
            reader.dispose()
    return relations


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Decompose relations into Boyce-Codd normal form.")
    parser.add_argument(
        "mode",
        nargs="?",
        choices=["demo", "db"],
        help="'demo' decomposes the built-in relations; 'db' reflects tables from the configured sources.",
    )
    parser.add_argument("--input", action="append", default=[], type=Path, help="Relation JSON document (repeatable).")
    parser.add_argument("--url", help="SQLAlchemy URL to reflect tables from (implies 'db').")
    parser.add_argument("--table", action="append", default=[], help="Table to reflect (repeatable; default: all).")
    parser.add_argument("--fd", action="append", default=[], help="FD for a reflected table, e.g. 'A,E->D' (repeatable).")
    parser.add_argument(
        "--output",
        nargs="?",
        type=Path,
        const=Path(CONFIG["OUTPUT"]["BASE_PATH"]),
        help="Directory for JSON/Markdown artifacts (default when given without a value: %(const)s).",
    )
    parser.add_argument("--trace", action="store_true", help="Print every decomposition step.")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    if args.trace:
        CONFIG["TRACE"]["ENABLED"] = True
    if args.url:
        CONFIG["SOURCES"] = [{"name": "cli", "sqlalchemy_url": args.url}]

    mode = args.mode
    if mode is None and args.url:
        mode = "db"
    if mode is None and not args.input:
        mode = "demo"

    relations: List[RelationSpec] = []
    if mode == "demo":
        relations.extend(demo_relations())
    if mode == "db":
        if args.fd and len(args.table) != 1:
            raise SystemExit("--fd needs exactly one --table")
        relations.extend(collect_database_relations(CONFIG["SOURCES"], args.table, args.fd or None))
    for path in args.input:
        relations.append(load_relation_json(path))

    output_root = None
    if args.output is not None:
        output_root = args.output / datetime.now().strftime("run_%Y%m%d_%H%M%S")
    failures = Runner(output_root).run(relations)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
