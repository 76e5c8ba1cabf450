"""Shared fixtures: NodeSet fixture files and pre-built address spaces."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from ua_address_space.application.nodeset_loader import load_nodeset_files
from ua_address_space.domain.address_space import AddressSpace
from ua_address_space.nodesets import standard_nodeset_file

if TYPE_CHECKING:
    from collections.abc import Iterator

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def custom_nodeset_file() -> Path:
    return FIXTURES_DIR / "fixture_custom_nodeset.xml"


@pytest.fixture
def extension_nodeset_file() -> Path:
    return FIXTURES_DIR / "fixture_custom_nodeset_extension.xml"


@pytest.fixture
def di_nodeset_file() -> Path:
    return FIXTURES_DIR / "fixture_di_subset.xml"


@pytest.fixture
def address_space() -> Iterator[AddressSpace]:
    """Empty address space, disposed after the test."""
    space = AddressSpace()
    yield space
    space.dispose()


@pytest.fixture
def standard_space(address_space: AddressSpace) -> AddressSpace:
    """Address space holding only the bundled standard namespace nodes."""
    load_nodeset_files(address_space, [standard_nodeset_file])
    return address_space
