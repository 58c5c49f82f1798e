"""Create the demo relations as database tables so `bcnf_audit.py db` has something to reflect.

Usage is intentionally minimal:

1. Run this script once against any SQLAlchemy URL (SQLite by default); existing tables are left alone.
2. Run `python bcnf_audit.py db` (or pass `--url`) to decompose the reflected tables with the
   functional dependencies configured in `normalization_config.CONFIG["FDS"]`.
"""
from __future__ import annotations

import argparse
import sys

from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import SQLAlchemyError

from normalization_config import CONFIG


DEFAULT_URL = CONFIG["SOURCES"][0]["sqlalchemy_url"]

DEMO_SCHEMA_SQL = """
CREATE TABLE U (
    A VARCHAR(32) NOT NULL,
    B VARCHAR(32),
    C VARCHAR(32),
    D VARCHAR(32),
    E VARCHAR(32) NOT NULL
)
GO
CREATE TABLE S (
    A VARCHAR(32) NOT NULL,
    B VARCHAR(32),
    C VARCHAR(32),
    D VARCHAR(32) NOT NULL
)
GO
"""


def build_engine(url: str):
    return create_engine(url, future=True)


def tables_exist(engine) -> bool:
    existing = set(inspect(engine).get_table_names())
    return {"U", "S"} <= existing


def split_batches(sql_text: str):
    batch = []
    for line in sql_text.splitlines():
        if line.strip().upper() == "GO":
            if batch:
                yield "\n".join(batch)
                batch = []
        else:
            batch.append(line)
    if batch:
        yield "\n".join(batch)


def seed(engine) -> None:
    if tables_exist(engine):
        print("Demo tables already present; nothing to do.")
        return

    existing = set(inspect(engine).get_table_names())
    print("Creating demo tables...")
    with engine.begin() as conn:
        for i, batch in enumerate(split_batches(DEMO_SCHEMA_SQL), start=1):
            trimmed = batch.strip()
            if not trimmed:
                continue
            table = trimmed.split()[2]
            if table in existing:
                continue
            print(f"Executing batch {i}...", flush=True)
            conn.exec_driver_sql(trimmed)
    print("Seeding complete.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the BCNF demo tables in a database.")
    parser.add_argument("--url", default=DEFAULT_URL, help="SQLAlchemy URL (default: %(default)s)")
    args = parser.parse_args()

    engine = build_engine(args.url)
    try:
        seed(engine)
    except SQLAlchemyError as exc:
        print(f"[ERROR] Could not create demo tables at {args.url}.")
        print(f"Details: {exc}")
        sys.exit(1)
    finally:
        engine.dispose()


if __name__ == "__main__":
    main()
