# tests/conftest.py
import sys
import os
import pytest
import logging
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

# Configure logging for tests
logging.basicConfig(level=logging.INFO)

# Make the package importable without installation, and tests.helpers importable
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_PATH = os.path.join(PROJECT_ROOT, "src")
sys.path.insert(0, SRC_PATH)
sys.path.insert(0, PROJECT_ROOT)

from sales_report.config import (
    SQL_CONNECTION_SECRET,
    STORAGE_CONNECTION_SECRET,
    ReportConfig,
)
from sales_report.etl.transform_funcs import build_tabular_report
from sales_report.models import SalesAggregateRow
from tests.helpers import FakeConnection, FakeCursor, FakeS3Client, FakeSecretsClient

SAMPLE_DB_ROWS = [
    (2024, 1, Decimal("1000.00")),
    (2024, 2, Decimal("1500.50")),
]

FIXED_NOW = datetime(2024, 3, 5, 14, 7, 9, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def project_root():
    """Provide project root directory path"""
    return Path(PROJECT_ROOT)


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Keep real endpoints and keys out of every test"""
    for name in ("KeyVaultUrl", "FUNCTION_KEY", "REPORT_CONTAINER", "REPORT_BASE_NAME"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TESTING", "true")
    yield


@pytest.fixture
def sample_rows():
    return [SalesAggregateRow(*row) for row in SAMPLE_DB_ROWS]


@pytest.fixture
def sample_report(sample_rows):
    return build_tabular_report(iter(sample_rows))


@pytest.fixture
def empty_report():
    return build_tabular_report(iter([]))


@pytest.fixture
def fake_cursor():
    return FakeCursor(SAMPLE_DB_ROWS)


@pytest.fixture
def fake_connection(fake_cursor):
    return FakeConnection(fake_cursor)


@pytest.fixture
def fake_s3():
    return FakeS3Client()


@pytest.fixture
def fake_secrets_client():
    return FakeSecretsClient(
        {
            SQL_CONNECTION_SECRET: "dbname=sales host=db user=report",
            STORAGE_CONNECTION_SECRET: "EndpointUrl=http://storage:9000;Region=us-east-1",
        }
    )


@pytest.fixture
def report_config():
    return ReportConfig(
        key_vault_url="https://secrets.example.test",
        function_key="test-function-key",
    )


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically"""
    for item in items:
        if "pipeline" in item.nodeid or "function_app" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
