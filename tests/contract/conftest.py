"""Contract test fixtures for multi-document namespace loading.

These scenarios load several NodeSet documents that declare overlapping
namespace tables in different orders, and check that every node ends up
under the global index of its namespace URI.
"""

from __future__ import annotations

import pytest


# Auto-mark all tests in this package as contract tests
def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Auto-mark tests in contract directory with contract marker."""
    for item in items:
        if "contract" in str(item.fspath):
            item.add_marker(pytest.mark.contract)

