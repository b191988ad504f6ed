"""Naming rule shared by test declaration and file:line selection."""

import re

TEST_PREFIX = "test_"

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(description: str) -> str:
    """Normalize a description into an identifier-safe token.

    >>> slugify("it   passes!!")
    'it_passes'
    """
    slug = _NON_SLUG.sub("_", description.lower())
    slug = slug.strip("_")
    return re.sub(r"_+", "_", slug)


def method_name(description: str) -> str:
    """Return the method name a described test is stored under."""
    return f"{TEST_PREFIX}{slugify(description)}"


def describe_method(name: str) -> str:
    """Derive a human description from a directly named test method."""
    return name.removeprefix(TEST_PREFIX).replace("_", " ")


def identity(suite: str, name: str) -> str:
    """Build the ``<suite>#<method>`` key of a test."""
    return f"{suite}#{name}"
