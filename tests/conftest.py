"""
Pytest Configuration and Shared Fixtures.

Provides common fixtures and configuration for all test files.
"""

import sys
from collections.abc import Iterable
from pathlib import Path

import pytest

# Add repository root to Python path
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root))

from intake_core.config.settings import DuplicateDetectionSettings, get_settings
from intake_core.models import ExistingRecord, ProviderRecord


# =============================================================================
# Test Doubles
# =============================================================================


class InMemoryRecordStore:
    """Record store backed by lists, counting every call it receives."""

    def __init__(
        self,
        records: Iterable[ExistingRecord] = (),
        providers: Iterable[ProviderRecord] = (),
    ) -> None:
        # Most recent first
        self.records = list(records)
        self.providers = list(providers)
        self.exact_calls: list[str] = []
        self.recent_calls: list[int] = []
        self.provider_calls: list[str] = []

    def find_by_exact_identifier(self, identifier: str) -> ExistingRecord | None:
        self.exact_calls.append(identifier)
        for record in self.records:
            if record.identifier == identifier:
                return record
        return None

    def find_recent_candidates(self, limit: int) -> list[ExistingRecord]:
        self.recent_calls.append(limit)
        return self.records[:limit]

    def find_provider_by_npi(self, npi: str) -> ProviderRecord | None:
        self.provider_calls.append(npi)
        for provider in self.providers:
            if provider.npi == npi:
                return provider
        return None


# =============================================================================
# Function-scoped Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Clear the cached settings before and after each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def detection_settings() -> DuplicateDetectionSettings:
    """Default duplicate detection settings."""
    return DuplicateDetectionSettings()


@pytest.fixture
def store_factory() -> type[InMemoryRecordStore]:
    """Build record stores with custom contents."""
    return InMemoryRecordStore


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    """Record store with a small set of existing patients."""
    return InMemoryRecordStore(
        records=[
            ExistingRecord("rec-1", "John", "Smith", "123456"),
            ExistingRecord("rec-2", "Jane", "Doe", "654321"),
            ExistingRecord("rec-3", "Michael", "Smith", "002345"),
        ],
        providers=[
            ProviderRecord("prov-1", "Dr. Sarah Chen", "1234567893"),
        ],
    )


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that exercise several modules together"
    )
