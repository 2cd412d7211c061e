from __future__ import annotations

from pathlib import Path

from lessonboard.config import get_settings, read_config_key


def test_default_settings_point_into_the_repo() -> None:
    settings = get_settings(environ={})
    assert settings.snapshot_dir == settings.data_dir / "snapshot"
    assert settings.snapshot_report_path.name == "snapshot_report.json"
    assert settings.log_level == "INFO"


def test_env_overrides(tmp_path) -> None:
    settings = get_settings(
        environ={"LESSONBOARD_SNAPSHOT_DIR": str(tmp_path), "LESSONBOARD_LOG_LEVEL": "debug"}
    )
    assert settings.snapshot_dir == Path(tmp_path)
    assert settings.log_level == "DEBUG"


def test_read_config_key_prefers_non_blank_secrets() -> None:
    assert read_config_key("K", secrets={"K": " s "}, environ={"K": "e"}) == "s"
    assert read_config_key("K", secrets={"K": "  "}, environ={"K": "e"}) == "e"
    assert read_config_key("K", secrets=None, environ={"K": "   "}) is None
