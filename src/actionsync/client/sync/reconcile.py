"""Reconciliation of local files against a completed download.

After a pull, files that existed locally before the pass but were not
confirmed by the server are "extra". They are only reported unless the
caller asked for a clean pass, in which case they are removed.

Reconciliation must run once the whole response stream has been
consumed: a file missing from one record may appear in a later one.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable, Mapping
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

DRAFT_WARNING = "{path} is not present in the draft of your Action"
VERSION_WARNING = "{path} is not present in the version of your Action"


def find_extra(local_files: Iterable[str], seen: Mapping[str, bool]) -> list[str]:
    """Find local files the server did not confirm.

    Args:
        local_files: Relative paths present before the download pass.
        seen: Paths confirmed by the server during the pass.

    Returns:
        Sorted relative paths present locally but absent from seen.
    """
    return sorted({path for path in local_files if path not in seen})


def reconcile(
    root: Path,
    extra: Iterable[str],
    clean: bool,
    warning: str = DRAFT_WARNING,
) -> list[Path]:
    """Report, and with clean remove, the extra files of a project.

    Args:
        root: Project root directory.
        extra: Relative paths returned by find_extra.
        clean: Remove the files instead of only warning about them.
        warning: Message template with a {path} placeholder.

    Returns:
        Absolute paths that were removed.
    """
    removed: list[Path] = []
    for rel in extra:
        target = root / PurePosixPath(rel)
        message = warning.format(path=target)
        if not clean:
            logger.warning(f"{message}. To remove, run pull with --clean flag.")
            continue
        logger.warning(f"{message}. Removing {target}.")
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink(missing_ok=True)
        removed.append(target)
    return removed
