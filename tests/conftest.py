"""Pytest configuration and fixtures for pc321mqtt tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

# Load sample gateway payloads
SAMPLES_DIR = Path(__file__).parent / "samples"


def load_sample(filename: str) -> dict[str, Any]:
    """Load a sample JSON payload file."""
    file_path = SAMPLES_DIR / filename
    with open(file_path) as f:
        result: dict[str, Any] = json.load(f)
        return result


@pytest.fixture
def full_payload() -> bytes:
    """Payload reporting every PC321 register."""
    return json.dumps(load_sample("pc321_full.json")).encode()


@pytest.fixture
def partial_payload() -> bytes:
    """Payload with a few registers plus keys the meter map does not know."""
    return json.dumps(load_sample("pc321_partial.json")).encode()


@pytest.fixture
def mock_transport() -> MagicMock:
    """Transport double with async publish/subscribe."""
    transport = MagicMock()
    transport.publish = AsyncMock()
    transport.subscribe = AsyncMock()
    transport.connect = AsyncMock()
    transport.disconnect = AsyncMock()
    return transport
