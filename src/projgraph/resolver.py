# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Heuristic resolution of raw import strings to project files.

Only relative imports (starting with ".") are resolvable. Bare specifiers such
as "lodash" or "@scope/pkg" are external dependencies and never resolve.

Candidates are tried in a fixed order, first match wins:
1. The target joined to the importing file's directory, unchanged
2. The same join with each resolution extension appended
3. The same join as a directory, with index.<ext> for each resolution extension

A candidate matches only if it is a member of the known file set. The
filesystem is never consulted, so files excluded by enumeration can never be
resolution targets. Joins are normalized algebraically ("." and ".." are
collapsed); there is no symlink, case-folding or path-alias handling.
"""

import logging
import posixpath
from typing import AbstractSet, List, Optional

logger = logging.getLogger(__name__)

# Preference order for extension and index-file candidates
RESOLUTION_EXTENSIONS = ("ts", "tsx", "js", "jsx")

RELATIVE_MARKER = "."


def is_relative_import(raw_import: str) -> bool:
    """Whether an import string is a project-relative path."""
    return raw_import.startswith(RELATIVE_MARKER)


def normalize_path(path: str) -> str:
    """Normalize a POSIX path the way enumerated paths are stored.

    "./a/../b.ts" becomes "b.ts"; a path that normalizes to the current
    directory becomes ".".
    """
    return posixpath.normpath(path.replace("\\", "/"))


def resolution_candidates(raw_import: str, importing_file: str) -> List[str]:
    """List resolution candidates for a relative import, in preference order.

    Args:
        raw_import: Captured import target, e.g. "./utils".
        importing_file: Root-relative path of the importing file.

    Returns:
        Normalized candidate paths, or an empty list for bare specifiers.
    """
    if not is_relative_import(raw_import):
        return []

    importer_dir = posixpath.dirname(importing_file.replace("\\", "/"))
    base = normalize_path(posixpath.join(importer_dir, raw_import))

    candidates = [base]
    # "." and ".." name directories; appending an extension would invent "..ts"
    if posixpath.basename(base) not in (".", ".."):
        candidates.extend(f"{base}.{ext}" for ext in RESOLUTION_EXTENSIONS)
    candidates.extend(
        normalize_path(posixpath.join(base, f"index.{ext}")) for ext in RESOLUTION_EXTENSIONS
    )
    return candidates


def resolve_import(
    raw_import: str, importing_file: str, known_files: AbstractSet[str]
) -> Optional[str]:
    """Resolve a raw import string to a known project file.

    Args:
        raw_import: Captured import target.
        importing_file: Root-relative path of the importing file.
        known_files: Every enumerated path of this pass.

    Returns:
        Matching project path, or None if the import is external or unresolved.
    """
    for candidate in resolution_candidates(raw_import, importing_file):
        if candidate in known_files:
            return candidate

    if is_relative_import(raw_import):
        logger.debug(f"Unresolved import {raw_import!r} in {importing_file}")
    return None
