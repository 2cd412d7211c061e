from __future__ import annotations

from pathlib import Path

import pytest
from sample_data import write_snapshot

from lessonboard.config import Settings
from lessonboard.contracts import SNAPSHOT_TABLES
from lessonboard.hf_sync import (
    SnapshotSource,
    download_snapshot,
    local_snapshot_report,
    snapshot_source_from_config,
)

SOURCE = SnapshotSource(repo_id="org/lesson-snapshot", revision="2024-09", token="hf_secret")


def _settings(tmp_path) -> Settings:
    return Settings(
        root_dir=tmp_path,
        data_dir=tmp_path / "data",
        snapshot_dir=tmp_path / "data" / "snapshot",
        artifacts_dir=tmp_path / "artifacts",
        artifacts_reports_dir=tmp_path / "artifacts" / "reports",
        snapshot_report_path=tmp_path / "artifacts" / "reports" / "snapshot_report.json",
    )


def test_no_repo_means_local_snapshot() -> None:
    assert snapshot_source_from_config(environ={"HF_TOKEN": "hf_secret"}) is None


def test_secrets_win_over_environment() -> None:
    source = snapshot_source_from_config(
        secrets={"LESSONBOARD_HF_REPO_ID": "org/from-secrets", "LESSONBOARD_HF_REVISION": "v2"},
        environ={"LESSONBOARD_HF_REPO_ID": "org/from-env", "LESSONBOARD_HF_REVISION": "v1", "HF_TOKEN": "t"},
    )
    assert source == SnapshotSource(repo_id="org/from-secrets", revision="v2", token="t")
    assert source.label == "org/from-secrets@v2"


def test_half_configured_repo_names_the_missing_keys() -> None:
    with pytest.raises(ValueError, match="LESSONBOARD_HF_REVISION, HF_TOKEN"):
        snapshot_source_from_config(environ={"LESSONBOARD_HF_REPO_ID": "org/repo"})


def test_download_fetches_every_table_into_snapshot_dir(tmp_path, monkeypatch) -> None:
    settings = _settings(tmp_path)
    requested: list[str] = []

    def fake_download(**kwargs):
        assert kwargs["repo_type"] == "dataset"
        assert kwargs["revision"] == "2024-09"
        assert kwargs["local_dir"] == settings.snapshot_dir
        requested.append(kwargs["filename"])
        target = Path(kwargs["local_dir"]) / kwargs["filename"]
        target.write_bytes(b"parquet")
        return str(target)

    monkeypatch.setattr("lessonboard.hf_sync.hf_hub_download", fake_download)
    report = download_snapshot(settings, SOURCE)
    assert len(requested) == len(SNAPSHOT_TABLES)
    assert "agg_cohort_student.parquet" in requested
    assert report["status"] == "synced"
    assert report["source"] == "org/lesson-snapshot@2024-09"
    assert report["missing_tables"] == []
    assert "hf_secret" not in str(report)


def test_download_that_leaves_tables_missing_fails(tmp_path, monkeypatch) -> None:
    settings = _settings(tmp_path)
    monkeypatch.setattr("lessonboard.hf_sync.hf_hub_download", lambda **kwargs: "")
    with pytest.raises(FileNotFoundError, match="schools"):
        download_snapshot(settings, SOURCE)


def test_local_report_lists_missing_tables(tmp_path) -> None:
    settings = _settings(tmp_path)
    write_snapshot(settings.snapshot_dir, skip=("cohorts",))
    report = local_snapshot_report(settings)
    assert report["status"] == "local"
    assert report["source"] is None
    assert report["missing_tables"] == ["cohorts"]
