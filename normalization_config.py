"""
Runtime configuration for the BCNF normaliser.

Every tunable lives in the CONFIG constant below, both for the engine modules
(`fd_closure`, `normalizer`) and for the audit driver (`bcnf_audit`). The driver
overrides a few entries from its command line before anything runs.
"""
from __future__ import annotations

from typing import Any, Dict


CONFIG: Dict[str, Any] = {
    "CLOSURE": {
        # "attribute_closure" derives F+ from attribute closures of every left-side superset.
        # "armstrong" applies the trivial/augmentation/transitivity rules until nothing changes.
        "STRATEGY": "attribute_closure",
    },
    "SUPERKEYS": {
        # "attribute_closure" tests K+ == R directly; "fd_closure" goes through F+ (slow).
        "STRATEGY": "attribute_closure",
    },
    "DECOMPOSITION": {
        # Where to look for the FD to split on: the input FD set ("input") or its closure ("closure").
        "VIOLATION_SEARCH": "input",
    },
    "LIMITS": {
        # Past this many attributes the power-set enumeration gets impractical; only a warning is printed.
        "MAX_ATTRIBUTES": 8,
    },
    "TRACE": {
        "ENABLED": False,
    },
    "SOURCES": [
        {
            # Any SQLAlchemy URL works; tables are reflected for their column names only.
            "name": "DemoSQLite",
            "sqlalchemy_url": "sqlite:///bcnf_demo.db",
        }
    ],
    # Functional dependencies for reflected tables (table name -> list of "A,B->C" strings).
    "FDS": {
        "U": ["A,E->D", "A,B->C", "D->B"],
        "S": ["A->B", "B->C"],
    },
    "OUTPUT": {
        "BASE_PATH": "output",
    },
}
