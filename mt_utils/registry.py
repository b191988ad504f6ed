"""Registry of declared tests and suites for one test process."""

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

from mt_utils.models.options import RunOptions
from mt_utils.models.record import TestRecord

if TYPE_CHECKING:
    import unittest

log = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when a test suite definition is broken."""


class DuplicateTestError(ConfigurationError):
    """Raised when a test identity is declared twice."""


class Registry:
    """Maps ``<suite>#<method>`` identities to their records.

    Also keeps the suites declared against it, in declaration order, and
    the options of the run currently using it.
    """

    def __init__(self) -> None:
        self._records: dict[str, TestRecord] = {}
        self._suites: list[type["unittest.TestCase"]] = []
        self.options: RunOptions | None = None

    def declare(self, record: TestRecord) -> TestRecord:
        """Add a record, refusing to overwrite an existing identity."""
        if record.identity in self._records:
            raise DuplicateTestError(
                f"{record.name} is already defined in {record.suite}"
            )
        self._records[record.identity] = record
        return record

    def get(self, identity: str) -> TestRecord | None:
        """Return the record for an identity, if declared."""
        return self._records.get(identity)

    def record_elapsed(self, identity: str, elapsed: float) -> None:
        """Store how long a declared test took to run."""
        if (record := self._records.get(identity)) is not None:
            record.elapsed = elapsed

    def add_suite(self, suite: type["unittest.TestCase"]) -> None:
        """Remember a suite so the engine can run it."""
        log.debug("Declared suite %s", suite.__name__)
        self._suites.append(suite)

    @property
    def suites(self) -> tuple[type["unittest.TestCase"], ...]:
        """Declared suites in declaration order."""
        return tuple(self._suites)

    def clear(self, prefix: str | None = None) -> None:
        """Forget records and suites, optionally only those of matching suites."""
        if prefix is None:
            self._records.clear()
            self._suites.clear()
            return

        self._records = {
            key: record
            for key, record in self._records.items()
            if not record.suite.startswith(prefix)
        }
        self._suites = [s for s in self._suites if not s.__name__.startswith(prefix)]

    def __contains__(self, identity: object) -> bool:
        return identity in self._records

    def __iter__(self) -> Iterator[TestRecord]:
        return iter(self._records.values())

    def __len__(self) -> int:
        return len(self._records)


DEFAULT_REGISTRY = Registry()
