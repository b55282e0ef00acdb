"""Shared fixtures for sqlnotify tests."""

from pathlib import Path
from typing import Any, Dict, List

import pytest

from sqlnotify.config import Settings
from sqlnotify.hashing import make_item
from sqlnotify.models import DataItem, Snapshot
from sqlnotify.notifier import SmtpSettings


def items(rows: List[Dict[str, Any]]) -> List[DataItem]:
    return [make_item(r) for r in rows]


def snapshot(rows: List[Dict[str, Any]]) -> Snapshot:
    return Snapshot(fingerprint="fp", executable_fingerprint="exe", items=items(rows))


@pytest.fixture
def smtp_settings() -> SmtpSettings:
    return SmtpSettings(
        server="smtp.example.com",
        from_address="alerts@example.com",
        to_addresses=["ops@example.com"],
        subject="Orders",
    )


@pytest.fixture
def settings(tmp_path: Path, smtp_settings: SmtpSettings) -> Settings:
    return Settings(
        connection_string="Driver={ODBC};Server=db;Database=Sales",
        query="select id, name from t",
        primary_key=["id"],
        smtp=smtp_settings,
        cache_file=tmp_path / "queryCache.json",
    )
