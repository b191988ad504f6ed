"""Test factories for generating test data."""

from polyfactory import Use
from polyfactory.factories import DataclassFactory

from mt_utils.models.record import SourceLocation, TestRecord
from mt_utils.models.result import ResultEvent


class ResultEventFactory(DataclassFactory[ResultEvent]):
    """Factory for ResultEvent."""

    __model__ = ResultEvent

    suite = "SampleTest"
    name = "test_it_passes"
    identity = "SampleTest#test_it_passes"
    outcome = "pass"
    message = None
    backtrace = Use(tuple)
    assertions = 1
    elapsed = 0.0


class TestRecordFactory(DataclassFactory[TestRecord]):
    """Factory for TestRecord."""

    __test__ = False
    __model__ = TestRecord

    suite = "SampleTest"
    name = "test_it_passes"
    identity = "SampleTest#test_it_passes"
    description = "it passes"
    source_location = Use(SourceLocation, path="tests/sample_test.py", line=4)
    slow_threshold = None
    elapsed = None
