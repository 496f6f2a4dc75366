"""Shared fixtures."""

import pytest

from typed_records.log import configure_logging
from typed_records.parsing import TypeParser

CUSTOMER_SCHEMA = """
record Customer {
    Id: int32 @id,
    Name: string @compare,
    Email: string @compare @update,
}
"""


@pytest.fixture(autouse=True, scope="session")
def _quiet_logging():
    configure_logging("WARNING")


@pytest.fixture
def customer_registry():
    return TypeParser().parse(CUSTOMER_SCHEMA)
