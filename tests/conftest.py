"""Shared fixtures."""

import sys

import pytest
from loguru import logger

from pullup_tier.io.document_store import InMemoryDocumentStore
from pullup_tier.io.json_store import JsonFileDocumentStore


@pytest.fixture(autouse=True)
def reset_logger():
    """CLI tests attach loguru to CliRunner streams; restore a plain sink afterwards."""
    yield
    logger.remove()
    logger.add(sys.stderr, level="WARNING")


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path):
    """Every DocumentStore implementation."""
    if request.param == "memory":
        return InMemoryDocumentStore()
    return JsonFileDocumentStore(tmp_path / "data")


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
