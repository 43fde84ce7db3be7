"""Shared fixtures. No test touches the real data directory or the network."""

from unittest.mock import MagicMock

import pytest

from expense_tracker.audit import AuditLogger
from expense_tracker.licensing import LicenseActivationManager
from expense_tracker.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    JsonLinesAuditStorage,
    LocalState,
)


TEST_KEYS = {"KEY-A", "KEY-B"}


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def state(store):
    return LocalState(store)


@pytest.fixture
def audit_logger(tmp_path):
    return AuditLogger(JsonLinesAuditStorage(tmp_path / "audit_log.jsonl"))


@pytest.fixture
def manager(state):
    return LicenseActivationManager(state, valid_keys=TEST_KEYS, device_limit=5)


@pytest.fixture
def file_store(tmp_path):
    return JsonFileKeyValueStore(tmp_path / "store")


@pytest.fixture
def mock_model():
    """Stands in for genai.GenerativeModel."""
    model = MagicMock()
    model.generate_content.return_value = MagicMock(text="## Summary\nYou spent wisely.")
    return model
