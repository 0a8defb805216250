# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Optional project manifest (package.json) reader.

The manifest is passed through, not interpreted. A missing, unreadable or
malformed manifest yields None; it never fails context assembly.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from projgraph.models import PackageManifest

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST_FILENAME = "package.json"

_STRING_FIELDS = ("name", "version")
# Manifest key -> PackageManifest attribute
_MAPPING_FIELDS = {
    "dependencies": "dependencies",
    "devDependencies": "dev_dependencies",
    "scripts": "scripts",
}


class MalformedManifestError(ValueError):
    """Raised by parse_manifest when a recognized field has the wrong shape."""

    pass


def _is_string_mapping(value: Any) -> bool:
    return isinstance(value, dict) and all(
        isinstance(key, str) and isinstance(item, str) for key, item in value.items()
    )


def parse_manifest(data: Any) -> PackageManifest:
    """Build a PackageManifest from decoded JSON.

    Args:
        data: Decoded manifest document.

    Returns:
        PackageManifest with the recognized fields that are present.

    Raises:
        MalformedManifestError: If the document is not an object or a
            recognized field has the wrong type.
    """
    if not isinstance(data, dict):
        raise MalformedManifestError(f"Manifest must be a JSON object, got {type(data).__name__}")

    values: Dict[str, Any] = {}
    for key in _STRING_FIELDS:
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise MalformedManifestError(f"Manifest field '{key}' must be a string")
        values[key] = value

    for key, attribute in _MAPPING_FIELDS.items():
        value = data.get(key)
        if value is None:
            continue
        if not _is_string_mapping(value):
            raise MalformedManifestError(
                f"Manifest field '{key}' must map strings to strings"
            )
        values[attribute] = dict(value)

    return PackageManifest(**values)


def load_manifest(
    root: Union[str, Path], filename: str = DEFAULT_MANIFEST_FILENAME
) -> Optional[PackageManifest]:
    """Load the manifest at a fixed path under root.

    Args:
        root: Project root directory.
        filename: Manifest path relative to root.

    Returns:
        PackageManifest, or None if the file is absent, unreadable or malformed.
    """
    manifest_path = Path(root) / filename
    if not manifest_path.is_file():
        return None

    try:
        with open(manifest_path, encoding="utf-8") as f:
            data = json.load(f)
        return parse_manifest(data)
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Could not read manifest {manifest_path}: {e}")
    except json.JSONDecodeError as e:
        logger.debug(f"Manifest {manifest_path} is not valid JSON: {e}")
    except MalformedManifestError as e:
        logger.debug(f"Ignoring malformed manifest {manifest_path}: {e}")
    return None
