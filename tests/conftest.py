"""
Pytest configuration and fixtures for export-insights tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import json
import os
from datetime import date

import pytest

from export_insights.core.models import ReportConfig


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests for a single component"
    )
    config.addinivalue_line(
        "markers", "integration: Tests that run several pipeline stages together"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that run the CLI over export files"
    )


# =======================
# FILE FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_data_dir() -> str:
    """
    Get path to test data fixtures directory

    Returns:
        Path to tests/fixtures directory
    """
    return os.path.join(os.path.dirname(__file__), "fixtures")


@pytest.fixture(scope="session")
def customers_export(test_data_dir) -> str:
    """Customer-rooted export: four customers, their orders and a few bad lines"""
    return os.path.join(test_data_dir, "customers_export.jsonl")


@pytest.fixture(scope="session")
def orders_export(test_data_dir) -> str:
    """Order-rooted export: four orders with refunds and line items"""
    return os.path.join(test_data_dir, "orders_export.jsonl")


@pytest.fixture
def write_export(tmp_path):
    """
    Write records (dicts or raw strings) to a temporary .jsonl file

    Returns:
        Function taking a list of records and returning the file path
    """
    def _write(records, name: str = "export.jsonl") -> str:
        path = tmp_path / name
        lines = [r if isinstance(r, str) else json.dumps(r) for r in records]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return str(path)

    return _write


# =======================
# RECORD BUILDERS
# =======================

def gid(kind: str, number) -> str:
    return f"gid://shopify/{kind}/{number}"


def money_bag(amount: str) -> dict:
    return {"shopMoney": {"amount": amount, "currencyCode": "USD"}}


@pytest.fixture
def make_order():
    """Build a raw order record the way a bulk export writes it"""
    def _make(number, created_at="2025-05-01T10:00:00Z", total="0.00", parent=None, **fields):
        record = {
            "id": gid("Order", number),
            "createdAt": created_at,
            "totalPriceSet": money_bag(total),
        }
        if parent is not None:
            record["__parentId"] = parent
        record.update(fields)
        return record

    return _make


@pytest.fixture
def make_customer():
    """Build a raw customer record"""
    def _make(number, email=None, address=None, **fields):
        record = {"id": gid("Customer", number)}
        if email is not None:
            record["email"] = email
        if address is not None:
            record["defaultAddress"] = address
        record.update(fields)
        return record

    return _make


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture
def report_config() -> ReportConfig:
    """Default report parameters pinned to a fixed as-of date"""
    return ReportConfig(as_of=date(2025, 6, 30))


@pytest.fixture(scope="session", autouse=True)
def test_env_vars():
    """
    Set test environment variables

    This fixture loads test.env and sets environment variables
    """
    from dotenv import load_dotenv

    env_path = os.path.join(
        os.path.dirname(os.path.dirname(__file__)),
        "config",
        "test.env"
    )

    if os.path.exists(env_path):
        load_dotenv(env_path, override=True)


@pytest.fixture(scope="session")
def default_config_path() -> str:
    """Path to the shipped report configuration"""
    return os.path.join(
        os.path.dirname(os.path.dirname(__file__)),
        "config",
        "report_config.yaml"
    )
