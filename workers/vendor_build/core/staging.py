"""
Staging — copy the vendored tree into the run's scratch location.

autotools builds in-tree, so every build works on a private copy and the
repository checkout is never written to.  The copy is made next to the
destination first and only renamed into place once complete; callers
never observe a half-copied tree.
"""
from __future__ import annotations

import logging
import shutil
import uuid
from pathlib import Path

from vendor_build.errors import StagingError

logger = logging.getLogger(__name__)


def stage_sources(source_root: Path, dest_root: Path) -> Path:
    """
    Copy *source_root* recursively to ``dest_root / source_root.name``.

    Any previous content at that location is replaced (overwrite, not
    merge).  Symlinks are followed so the copy shares no files with the
    checkout.  Returns the staged root.

    Raises
    ------
    StagingError
        The source does not exist, the destination is not writable, or
        the copy did not complete.
    """
    source_root = Path(source_root)
    dest_root = Path(dest_root)

    if not source_root.is_dir():
        raise StagingError(f"Vendored source root not found: {source_root}")

    target = dest_root / source_root.name
    partial = dest_root / f".{source_root.name}.partial-{uuid.uuid4().hex[:8]}"

    logger.info("Staging %s -> %s", source_root, target)
    try:
        dest_root.mkdir(parents=True, exist_ok=True)
        shutil.copytree(source_root, partial)
    except (OSError, shutil.Error) as e:
        shutil.rmtree(partial, ignore_errors=True)
        raise StagingError(
            f"Failed to copy {source_root} into {dest_root}: {e}"
        ) from e

    try:
        if target.exists() or target.is_symlink():
            if target.is_dir() and not target.is_symlink():
                shutil.rmtree(target)
            else:
                target.unlink()
        partial.rename(target)
    except OSError as e:
        shutil.rmtree(partial, ignore_errors=True)
        raise StagingError(f"Failed to replace {target}: {e}") from e

    return target
