"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from delivery_build.adapters.mock import MockAdapter
from delivery_build.adapters.registry import AdapterRegistry


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """An empty directory standing in for a delivery-cli checkout."""
    path = tmp_path / "delivery-cli"
    path.mkdir()
    return path.resolve()


@pytest.fixture
def mock_adapter() -> MockAdapter:
    return MockAdapter(adapter_name="mock")


@pytest.fixture
def mock_registry(mock_adapter: MockAdapter) -> AdapterRegistry:
    """Registry that routes every action to ``mock_adapter``."""
    return AdapterRegistry(mock_adapter=mock_adapter)
