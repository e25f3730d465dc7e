"""Pytest configuration for tests.

Sets up Python path and fixtures for all tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to Python path so imports work correctly
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from tests.fixtures.secret_fixtures import (  # noqa: E402
    FakeSecretStore,
    create_test_identity,
    generate_rsa_pem,
)


@pytest.fixture(scope="session")
def rsa_pem() -> bytes:
    return generate_rsa_pem()


@pytest.fixture
def identity(rsa_pem):
    return create_test_identity(private_key=rsa_pem)


@pytest.fixture
def fake_store():
    return FakeSecretStore()
