from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping


@dataclass(frozen=True)
class Settings:
    root_dir: Path
    data_dir: Path
    snapshot_dir: Path
    artifacts_dir: Path
    artifacts_reports_dir: Path
    snapshot_report_path: Path
    log_level: str = "INFO"


def read_config_key(
    key: str,
    *,
    secrets: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """Read a key from Streamlit secrets first, then the environment."""
    if secrets is not None and key in secrets:
        value = secrets.get(key)
        if value is not None:
            text = str(value).strip()
            if text:
                return text
    env = os.environ if environ is None else environ
    value = env.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def get_settings(environ: Mapping[str, str] | None = None) -> Settings:
    root = Path(__file__).resolve().parents[2]
    data_dir = root / "data"
    artifacts_dir = root / "artifacts"
    reports_dir = artifacts_dir / "reports"

    snapshot_override = read_config_key("LESSONBOARD_SNAPSHOT_DIR", environ=environ)
    snapshot_dir = Path(snapshot_override) if snapshot_override else data_dir / "snapshot"
    log_level = (read_config_key("LESSONBOARD_LOG_LEVEL", environ=environ) or "INFO").upper()

    return Settings(
        root_dir=root,
        data_dir=data_dir,
        snapshot_dir=snapshot_dir,
        artifacts_dir=artifacts_dir,
        artifacts_reports_dir=reports_dir,
        snapshot_report_path=reports_dir / "snapshot_report.json",
        log_level=log_level,
    )


def ensure_artifact_directories(settings: Settings) -> None:
    settings.snapshot_dir.mkdir(parents=True, exist_ok=True)
    settings.artifacts_dir.mkdir(parents=True, exist_ok=True)
    settings.artifacts_reports_dir.mkdir(parents=True, exist_ok=True)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )
