"""Test factories for creating test data."""

from tests.factories.vault import FakeVault, Seeder, assert_close

__all__ = [
    "FakeVault",
    "Seeder",
    "assert_close",
]
