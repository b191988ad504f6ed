"""Persisted list of tests that failed in the previous run."""

import json
import logging
import re
from collections.abc import Sequence
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

log = logging.getLogger(__name__)

_IDENTITIES = TypeAdapter(list[str])


def load_failures(path: Path) -> Sequence[str]:
    """Read failing identities; a missing or malformed file means none."""
    try:
        return _IDENTITIES.validate_json(path.read_bytes())
    except FileNotFoundError:
        return []
    except (OSError, ValidationError) as exc:
        log.debug("Ignoring unreadable failures file %s: %s", path, exc)
        return []


def save_failures(path: Path, identities: Sequence[str]) -> None:
    """Write failing identities for the next watched run."""
    path.write_text(json.dumps(list(identities)))


def failures_filter(identities: Sequence[str]) -> str:
    """Build a name filter matching exactly the given identities."""
    alternatives = "|".join(re.escape(identity) for identity in identities)
    return f"/^(?:{alternatives})$/"
