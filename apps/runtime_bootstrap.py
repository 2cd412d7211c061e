from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import streamlit as st

from lessonboard.config import get_settings
from lessonboard.contracts import SNAPSHOT_TABLES, snapshot_file_name
from lessonboard.hf_sync import (
    REPO_ID_KEY,
    REVISION_KEY,
    TOKEN_KEY,
    SnapshotSource,
    download_snapshot,
    local_snapshot_report,
    snapshot_source_from_config,
)


def secrets_mapping() -> Mapping[str, object] | None:
    try:
        return dict(st.secrets)
    except Exception:
        # No secrets.toml configured.
        return None


@st.cache_resource(show_spinner=False)
def _cached_snapshot_download(source: SnapshotSource | None) -> dict[str, Any]:
    settings = get_settings()
    if source is None:
        return local_snapshot_report(settings)
    return download_snapshot(settings, source)


def bootstrap_snapshot() -> dict[str, Any]:
    try:
        source = snapshot_source_from_config(secrets=secrets_mapping())
        return _cached_snapshot_download(source)
    except Exception as err:
        st.error("Snapshot download failed.")
        st.markdown(
            "This deployment is configured to load the aggregate snapshot from a private "
            "Hugging Face dataset, but the download did not complete."
        )
        st.markdown("Required configuration keys:")
        st.markdown(f"- `{REPO_ID_KEY}`\n- `{REVISION_KEY}`\n- `{TOKEN_KEY}`")
        st.markdown("Expected snapshot tables:")
        st.markdown("\n".join(f"- `{snapshot_file_name(name)}`" for name in SNAPSHOT_TABLES))
        st.code(str(err))
        st.stop()
