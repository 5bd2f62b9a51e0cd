"""
Pytest configuration and fixtures for apidelta tests.
"""

from __future__ import annotations

import os
from typing import Dict, Generator

import pytest

from apidelta.canonical.proto import ProtoField, ProtoFile, ProtoMessage
from apidelta.canonical.schema import CanonicalSchemaNode
from apidelta.config import reset_config
from apidelta.loader import BaseSnapshotLoader


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def test_env() -> Dict[str, str]:
    """Test environment variables."""
    return {
        "APIDELTA_SERVICE_NAME": "apidelta-test",
        "APIDELTA_STRUCTURED_LOGS": "false",
        "APIDELTA_EMIT_SPAN_EVENTS": "false",
    }


@pytest.fixture(autouse=True)
def set_test_env(test_env: Dict[str, str]) -> Generator[None, None, None]:
    """Set test environment variables and reset config for each test."""
    original = {}
    for key, value in test_env.items():
        original[key] = os.environ.get(key)
        os.environ[key] = value
    reset_config()

    yield

    reset_config()
    for key, value in original.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


@pytest.fixture(autouse=True)
def clear_snapshot_caches() -> Generator[None, None, None]:
    yield
    for loader in BaseSnapshotLoader.__subclasses__():
        loader.clear_cache()


# ============================================================================
# Model Fixtures
# ============================================================================


@pytest.fixture
def user_schema() -> CanonicalSchemaNode:
    """An object schema with one required and one optional property."""
    return CanonicalSchemaNode(
        type="object",
        required_fields={"id"},
        properties={
            "id": CanonicalSchemaNode(type="string", format="uuid"),
            "email": CanonicalSchemaNode(type="string"),
        },
    )


@pytest.fixture
def orders_proto() -> ProtoFile:
    """A small proto file with one message."""
    return ProtoFile(
        name="orders.proto",
        package="acme.orders.v1",
        messages=[
            ProtoMessage(
                name="Order",
                fields=[
                    ProtoField(name="id", number=1, type_name="string"),
                    ProtoField(name="total", number=2, type_name="int64"),
                ],
            ),
        ],
    )
