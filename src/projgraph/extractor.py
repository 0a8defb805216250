# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Regex-based import statement extraction.

One pattern recognizes both surface forms:
- import ... from "<target>" / import "<target>"
- require("<target>")

This is a lexical heuristic. It does not know about comments, string literals
that resemble import syntax, or dead code, so an import inside a comment is
still reported and unusual syntax may be missed.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

# Extensions of files that are scanned for import statements
SCANNED_EXTENSIONS = ("ts", "tsx", "js", "jsx", "rs")

IMPORT_PATTERN = re.compile(r"""(?:import\s+(?:[\w\s{},*]+from\s+)?|require\()['"]([^'"]+)['"]""")


def is_scannable(extension: Optional[str]) -> bool:
    """Whether files with this extension are scanned for imports."""
    return extension in SCANNED_EXTENSIONS


def extract_imports(content: str) -> List[str]:
    """Extract raw import targets from file content.

    Args:
        content: Source text.

    Returns:
        Captured target strings in discovery order, duplicates included.
    """
    return [match.group(1) for match in IMPORT_PATTERN.finditer(content)]


def read_imports(path: Path, max_size_bytes: Optional[int] = None) -> List[str]:
    """Read a file and extract its raw import targets.

    Unreadable content (I/O failure, invalid UTF-8) and files above the size
    limit yield no imports rather than an error.

    Args:
        path: File to read.
        max_size_bytes: Skip files larger than this. None means no limit.

    Returns:
        Raw import targets, or an empty list.
    """
    try:
        if max_size_bytes is not None and path.stat().st_size > max_size_bytes:
            logger.debug(f"Skipping import scan of {path}: larger than {max_size_bytes} bytes")
            return []
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        logger.debug(f"Skipping import scan of {path}: not valid UTF-8")
        return []
    except OSError as e:
        logger.debug(f"Skipping import scan of {path}: {e}")
        return []

    return extract_imports(content)
