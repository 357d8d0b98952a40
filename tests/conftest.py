"""
Pytest configuration and shared fixtures for the indicator-qa test suite.
"""

import os
import sys
import pytest

# Add project root to path
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, PROJECT_ROOT)

# Import project modules
from src.indicator_qa.processors.qa_core import QAConfig, QAIssue, CheckSeverity, CheckType
from src.indicator_qa.db.dal import InMemoryQARepository, JsonFileQARepository
from tests.qa.fixtures.data_generators import make_record, yearly_series, MockDataGenerator, DataGeneratorConfig


@pytest.fixture
def project_root():
    """Get project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def qa_config():
    return QAConfig()


@pytest.fixture
def clean_records():
    """Two indicators, complete yearly series without gaps or outliers."""
    return (
        yearly_series([100, 102, 104, 103, 105], indicator="GDP", filter_name="Total")
        + yearly_series([100, 101, 99, 100, 102], indicator="GDP", filter_name="Riyadh")
        + yearly_series([5.1, 5.3, 5.0, 5.2, 5.4], indicator="Unemployment", filter_name="Total")
    )


@pytest.fixture
def problematic_records():
    """Records with one known defect of most kinds."""
    return [
        make_record("GDP", "Total", 2018, 100),
        make_record("GDP", "Total", 2019, 110),
        make_record("GDP", "Total", 2019, 111),      # duplicate year
        make_record("GDP", "Total", 2022, 120),      # gap 2020-2021
        make_record("Exports", "Total", 2018, "n/a"),  # non-numeric
        make_record("Exports", "Total", 2019, -5),   # negative
        make_record("Exports", "Total", 2020, None),  # missing value
        make_record("Exports", "Total", 2021, 30),
        make_record("Exports", "Total", 2022, 31),
    ]


@pytest.fixture
def monthly_records():
    """Monthly series with February and March missing."""
    return [
        make_record("CPI", "All items", 2023, 101.0, month=1),
        make_record("CPI", "All items", 2023, 102.0, month=4),
        make_record("CPI", "All items", 2023, 102.5, month=5),
    ]


@pytest.fixture
def sample_issue():
    return QAIssue(
        check_type=CheckType.MISSING_DATA,
        indicator_name="GDP",
        filter_name="Total",
        severity=CheckSeverity.CRITICAL,
        message="Missing data in row 0: value",
    )


@pytest.fixture
def memory_repository():
    return InMemoryQARepository()


@pytest.fixture
def json_repository(tmp_path):
    return JsonFileQARepository(str(tmp_path / "projects"))


@pytest.fixture(scope="session")
def test_config():
    """Test configuration settings."""
    return {
        "performance_threshold_ms": 5000,
        "large_dataset_size": 10000,
    }


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for full pipeline"
    )
    config.addinivalue_line(
        "markers", "performance: Performance and benchmark tests"
    )
    config.addinivalue_line(
        "markers", "regression: Regression tests for known issues"
    )
    config.addinivalue_line(
        "markers", "property: Property-based tests"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take longer to run"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on file paths."""
    for item in items:
        # Add markers based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "performance" in str(item.fspath):
            item.add_marker(pytest.mark.performance)
        elif "regression" in str(item.fspath):
            item.add_marker(pytest.mark.regression)
        elif "property" in str(item.fspath):
            item.add_marker(pytest.mark.property)

        # Mark slow tests
        if any(keyword in item.name.lower() for keyword in ["performance", "large"]):
            item.add_marker(pytest.mark.slow)
