"""Tests for the test registry."""

import unittest

import pytest

from mt_utils.registry import DuplicateTestError, Registry
from mt_utils.testing.factories import TestRecordFactory


def test_declare_and_get(registry: Registry) -> None:
    """Declared records can be looked up by identity."""
    record = TestRecordFactory.build()

    registry.declare(record)

    assert registry.get(record.identity) is record
    assert record.identity in registry
    assert len(registry) == 1


def test_get_returns_none_for_unknown_identity(registry: Registry) -> None:
    """Unknown identities are not an error."""
    assert registry.get("MissingTest#test_nothing") is None


def test_declare_rejects_duplicate_identity(registry: Registry) -> None:
    """Redeclaring an identity is fatal and keeps the first record."""
    first = TestRecordFactory.build()
    registry.declare(first)

    with pytest.raises(DuplicateTestError) as exc_info:
        registry.declare(TestRecordFactory.build(description="another"))

    assert "test_it_passes is already defined in SampleTest" in str(exc_info.value)
    assert registry.get(first.identity) is first


def test_record_elapsed(registry: Registry) -> None:
    """Elapsed time is stored on the declared record."""
    record = registry.declare(TestRecordFactory.build())

    registry.record_elapsed(record.identity, 0.25)
    registry.record_elapsed("MissingTest#test_nothing", 1.0)

    assert record.elapsed == 0.25


def test_clear_with_prefix(registry: Registry) -> None:
    """Clearing by prefix keeps records and suites of other suites."""
    registry.declare(TestRecordFactory.build())
    registry.declare(
        TestRecordFactory.build(identity="OtherTest#test_x", suite="OtherTest")
    )
    sample = type("SampleTest", (unittest.TestCase,), {})
    other = type("OtherTest", (unittest.TestCase,), {})
    registry.add_suite(sample)
    registry.add_suite(other)

    registry.clear("Sample")

    assert [record.suite for record in registry] == ["OtherTest"]
    assert registry.suites == (other,)


def test_clear_everything(registry: Registry) -> None:
    """Clearing without a prefix empties the registry."""
    registry.declare(TestRecordFactory.build())

    registry.clear()

    assert len(registry) == 0
    assert registry.suites == ()
