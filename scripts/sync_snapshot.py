#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from lessonboard.checks import run_snapshot_checks
from lessonboard.config import configure_logging, get_settings
from lessonboard.hf_sync import download_snapshot, local_snapshot_report, snapshot_source_from_config
from lessonboard.reporting import write_json_report


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Download the snapshot tables from Hugging Face, then check them."
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Optional report output path. Default: artifacts/reports/sync_report.json",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero when no repo is configured or the downloaded snapshot fails its checks.",
    )
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings)
    try:
        source = snapshot_source_from_config()
    except ValueError as err:
        print(f"Configuration error: {err}")
        return 1

    if source is None:
        report = local_snapshot_report(settings)
    else:
        try:
            report = download_snapshot(settings, source)
        except Exception as err:
            print(f"Snapshot download failed: {err}")
            return 1
    report["checks_status"] = run_snapshot_checks(settings)["status"]

    output_path = (
        settings.artifacts_reports_dir / "sync_report.json" if args.output is None else settings.root_dir / args.output
    )
    write_json_report(report, output_path)
    print(json.dumps(report, indent=2))
    print(f"Report written to: {output_path}")

    if args.strict and (source is None or report["checks_status"] != "pass"):
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
