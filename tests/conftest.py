"""Shared fixtures: a file store rooted in a per-test temp directory."""

from __future__ import annotations

import pytest

from journal.persistence.backups import BackupCatalog
from journal.persistence.config import StoreConfig
from journal.persistence.document_store import TripDocumentStore
from journal.services.merge_engine import TripMergeEngine


@pytest.fixture
def store_config(tmp_path) -> StoreConfig:
    return StoreConfig(data_dir=tmp_path / "trips", backup_dir=tmp_path / "backups")


@pytest.fixture
def store(store_config) -> TripDocumentStore:
    return TripDocumentStore(store_config)


@pytest.fixture
def catalog(store) -> BackupCatalog:
    return store.backups


@pytest.fixture
def engine(store) -> TripMergeEngine:
    return TripMergeEngine(store)
