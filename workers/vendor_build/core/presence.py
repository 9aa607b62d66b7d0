"""
Presence — vendored checkouts must exist and be non-empty.

The vendored trees come from git submodules.  Building against a missing
checkout fails much later with an unrelated-looking linker error, so
this check runs before any step is spawned and names the remedy.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from vendor_build.errors import MissingDependencyError

logger = logging.getLogger(__name__)


def is_present(path: Path) -> bool:
    """True iff *path* is a directory with at least one entry."""
    try:
        first = next(Path(path).iterdir(), None)
    except OSError:
        return False
    return first is not None


def validate_presence(base: Path, required: Iterable[str]) -> None:
    """
    Check every relative path in *required* under *base*.

    Raises ``MissingDependencyError`` naming the first missing or empty
    directory, in the order given.
    """
    for rel in required:
        if not is_present(Path(base) / rel):
            logger.error("Vendored dependency missing or empty: %s", rel)
            raise MissingDependencyError(rel)
        logger.debug("Vendored dependency present: %s", rel)
