"""Pull the snapshot tables from a private Hugging Face dataset into ``snapshot_dir``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Mapping

from huggingface_hub import hf_hub_download

from .config import Settings, ensure_artifact_directories, read_config_key
from .contracts import SNAPSHOT_SCHEMA_VERSION, SNAPSHOT_TABLES, snapshot_file_name

logger = logging.getLogger(__name__)

REPO_ID_KEY = "LESSONBOARD_HF_REPO_ID"
REVISION_KEY = "LESSONBOARD_HF_REVISION"
TOKEN_KEY = "HF_TOKEN"


@dataclass(frozen=True)
class SnapshotSource:
    repo_id: str
    revision: str
    token: str

    @property
    def label(self) -> str:
        return f"{self.repo_id}@{self.revision}"


def snapshot_source_from_config(
    *,
    secrets: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> SnapshotSource | None:
    """Return None when no repo is configured; a half-configured repo is a ValueError."""
    repo_id = read_config_key(REPO_ID_KEY, secrets=secrets, environ=environ)
    if not repo_id:
        return None
    revision = read_config_key(REVISION_KEY, secrets=secrets, environ=environ)
    token = read_config_key(TOKEN_KEY, secrets=secrets, environ=environ)
    missing = [key for key, value in ((REVISION_KEY, revision), (TOKEN_KEY, token)) if not value]
    if missing:
        raise ValueError(f"{REPO_ID_KEY} is set but {', '.join(missing)} is not.")
    return SnapshotSource(repo_id=repo_id, revision=revision, token=token)


def missing_snapshot_tables(snapshot_dir: Path) -> list[str]:
    return [name for name in SNAPSHOT_TABLES if not (snapshot_dir / snapshot_file_name(name)).exists()]


def _report(settings: Settings, source: SnapshotSource | None, status: str) -> dict[str, Any]:
    return {
        "generated_at_utc": datetime.now(UTC).isoformat(),
        "schema_version": SNAPSHOT_SCHEMA_VERSION,
        "source": None if source is None else source.label,
        "snapshot_dir": str(settings.snapshot_dir),
        "status": status,
        "missing_tables": missing_snapshot_tables(settings.snapshot_dir),
    }


def local_snapshot_report(settings: Settings) -> dict[str, Any]:
    return _report(settings, None, "local")


def download_snapshot(settings: Settings, source: SnapshotSource) -> dict[str, Any]:
    ensure_artifact_directories(settings)
    logger.info("Downloading %d snapshot tables from %s", len(SNAPSHOT_TABLES), source.label)
    for table_name in SNAPSHOT_TABLES:
        hf_hub_download(
            repo_id=source.repo_id,
            filename=snapshot_file_name(table_name),
            repo_type="dataset",
            revision=source.revision,
            token=source.token,
            local_dir=settings.snapshot_dir,
        )

    report = _report(settings, source, "synced")
    if report["missing_tables"]:
        raise FileNotFoundError(f"Snapshot tables missing after download: {', '.join(report['missing_tables'])}")
    return report
