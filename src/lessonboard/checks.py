from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import polars as pl
import pyarrow.parquet as pq

from .config import Settings
from .contracts import (
    REQUIRED_SNAPSHOT_COLUMNS,
    SNAPSHOT_SCHEMA_VERSION,
    SNAPSHOT_TABLES,
    snapshot_file_name,
)

# Tables whose school_id values must all appear in the schools table.
_SCHOOL_SCOPED_TABLES: tuple[str, ...] = (
    "cohorts",
    "agg_school",
    "agg_school_student",
    "agg_cohort",
)


def _ts() -> str:
    return datetime.now(UTC).isoformat()


def _assert_equal(name: str, actual: Any, expected: Any) -> dict[str, Any]:
    return {
        "name": name,
        "expected": expected,
        "actual": actual,
        "pass": actual == expected,
    }


def _table_profile(path: Path, table_name: str) -> dict[str, Any]:
    if not path.exists():
        return {"path": str(path), "exists": False, "rows": 0, "columns": [], "missing_columns": []}
    parquet = pq.ParquetFile(path)
    column_names = list(parquet.schema_arrow.names)
    required = REQUIRED_SNAPSHOT_COLUMNS[table_name]
    return {
        "path": str(path),
        "exists": True,
        "rows": int(parquet.metadata.num_rows),
        "columns": column_names,
        "missing_columns": [column for column in required if column not in column_names],
    }


def _unknown_school_ids(snapshot_dir: Path, profiles: dict[str, dict[str, Any]]) -> dict[str, list[int]]:
    schools = profiles["schools"]
    if not schools["exists"] or schools["missing_columns"]:
        return {}
    known = set(
        pl.read_parquet(snapshot_dir / snapshot_file_name("schools"), columns=["school_id"])["school_id"].to_list()
    )
    out: dict[str, list[int]] = {}
    for table_name in _SCHOOL_SCOPED_TABLES:
        profile = profiles[table_name]
        if not profile["exists"] or "school_id" not in profile["columns"]:
            continue
        ids = (
            pl.scan_parquet(snapshot_dir / snapshot_file_name(table_name))
            .select(pl.col("school_id").drop_nulls().unique())
            .collect()["school_id"]
            .to_list()
        )
        out[table_name] = sorted(int(value) for value in ids if value not in known)
    return out


def run_snapshot_checks(settings: Settings) -> dict[str, Any]:
    snapshot_dir = settings.snapshot_dir
    profiles = {
        table_name: _table_profile(snapshot_dir / snapshot_file_name(table_name), table_name)
        for table_name in SNAPSHOT_TABLES
    }

    checks_list: list[dict[str, Any]] = []
    for table_name, profile in profiles.items():
        checks_list.append(_assert_equal(f"{table_name}_exists", profile["exists"], True))
        checks_list.append(
            _assert_equal(f"{table_name}_missing_columns", profile["missing_columns"], [])
        )

    unknown = _unknown_school_ids(snapshot_dir, profiles)
    for table_name, school_ids in unknown.items():
        checks_list.append(_assert_equal(f"{table_name}_unknown_school_ids", school_ids, []))

    check_map = {entry["name"]: entry for entry in checks_list}
    all_pass = all(entry["pass"] for entry in checks_list)

    return {
        "generated_at_utc": _ts(),
        "schema_version": SNAPSHOT_SCHEMA_VERSION,
        "snapshot_dir": str(snapshot_dir),
        "status": "pass" if all_pass else "fail",
        "row_counts": {table_name: profile["rows"] for table_name, profile in profiles.items()},
        "tables": profiles,
        "checks": check_map,
    }
