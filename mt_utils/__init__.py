"""A better test runner for unittest."""

from mt_utils.case import TestCase
from mt_utils.registry import (
    DEFAULT_REGISTRY,
    ConfigurationError,
    DuplicateTestError,
    Registry,
)
from mt_utils.runner import autorun
from mt_utils.suite import ReservedNameError, Suite, SuiteBuiltError

__all__ = [
    "DEFAULT_REGISTRY",
    "ConfigurationError",
    "DuplicateTestError",
    "Registry",
    "ReservedNameError",
    "Suite",
    "SuiteBuiltError",
    "TestCase",
    "autorun",
]
