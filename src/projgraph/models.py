# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Core data models for the project dependency graph.

This module defines the data structures passed between pipeline stages:
- FileRecord: A discovered project file (path + extension)
- FileNode: Node payload stored in the DependencyGraph
- FileContext: Per-file entry of a project snapshot
- PackageManifest: Optional manifest data read from the project root
- ProjectContext: The flattened, serializable project snapshot

All models use JSON-compatible primitives for serialization.
"""

import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def derive_extension(path: str) -> Optional[str]:
    """Derive a file extension from a path.

    The extension is the text after the final '.' of the file name, so a name
    ending in '.' has the empty extension. Names with no '.' and names whose
    only '.' is the leading one (".env") have no extension.

    Args:
        path: File path (any separator style).

    Returns:
        Extension without the dot (possibly ""), or None.
    """
    name = posixpath.basename(path.replace("\\", "/"))
    if name in (".", ".."):
        return None
    stem, dot, suffix = name.rpartition(".")
    if not dot or not stem:
        return None
    return suffix


@dataclass(frozen=True)
class FileRecord:
    """A project file discovered by enumeration.

    Identity is the path, which is POSIX-style and relative to the scanned
    root (no leading "./").
    """

    path: str
    extension: Optional[str] = None

    @classmethod
    def from_path(cls, path: str) -> "FileRecord":
        """Create a record, deriving the extension from the file name."""
        return cls(path=path, extension=derive_extension(path))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {"path": self.path, "extension": self.extension}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileRecord":
        """Deserialize from JSON-compatible dict."""
        return cls(path=data["path"], extension=data.get("extension"))


@dataclass(frozen=True)
class FileNode:
    """Node payload in the dependency graph: a file path and its display name."""

    path: str
    name: str

    @classmethod
    def for_path(cls, path: str) -> "FileNode":
        return cls(path=path, name=posixpath.basename(path))


@dataclass
class FileContext:
    """Per-file entry of a ProjectContext snapshot."""

    path: str
    extension: Optional[str] = None
    imports: List[str] = field(default_factory=list)  # files this file imports
    imported_by: List[str] = field(default_factory=list)  # files importing this file

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "path": self.path,
            "extension": self.extension,
            "imports": list(self.imports),
            "imported_by": list(self.imported_by),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileContext":
        """Deserialize from JSON-compatible dict."""
        return cls(
            path=data["path"],
            extension=data.get("extension"),
            imports=list(data.get("imports", [])),
            imported_by=list(data.get("imported_by", [])),
        )

    def summary_line(self) -> str:
        """One-line summary, e.g. "- src/a.ts (imports: 2, imported by: 1)"."""
        return (
            f"- {self.path} (imports: {len(self.imports)}, "
            f"imported by: {len(self.imported_by)})"
        )


@dataclass
class PackageManifest:
    """Manifest data read verbatim from the project root.

    Only the recognized fields are kept. Nothing is validated beyond their
    shape; absent fields stay None.
    """

    name: Optional[str] = None
    version: Optional[str] = None
    dependencies: Optional[Dict[str, str]] = None
    dev_dependencies: Optional[Dict[str, str]] = None
    scripts: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict, omitting absent fields."""
        result: Dict[str, Any] = {}
        if self.name is not None:
            result["name"] = self.name
        if self.version is not None:
            result["version"] = self.version
        if self.dependencies is not None:
            result["dependencies"] = dict(self.dependencies)
        if self.dev_dependencies is not None:
            result["dev_dependencies"] = dict(self.dev_dependencies)
        if self.scripts is not None:
            result["scripts"] = dict(self.scripts)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageManifest":
        """Deserialize from the dict produced by to_dict()."""
        return cls(
            name=data.get("name"),
            version=data.get("version"),
            dependencies=data.get("dependencies"),
            dev_dependencies=data.get("dev_dependencies"),
            scripts=data.get("scripts"),
        )


@dataclass
class ProjectContext:
    """Flattened project snapshot: every enumerated file plus optional manifest.

    Constructed fresh on each build; never cached or persisted.
    """

    files: List[FileContext] = field(default_factory=list)
    manifest: Optional[PackageManifest] = None

    def get_file(self, path: str) -> Optional[FileContext]:
        """Look up the entry for a path.

        Args:
            path: Project-relative path.

        Returns:
            FileContext if the path was enumerated, None otherwise.
        """
        for file_context in self.files:
            if file_context.path == path:
                return file_context
        return None

    def summary_lines(self) -> List[str]:
        """Per-file summary lines in snapshot order."""
        return [file_context.summary_line() for file_context in self.files]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "files": [file_context.to_dict() for file_context in self.files],
            "manifest": self.manifest.to_dict() if self.manifest is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectContext":
        """Deserialize from JSON-compatible dict."""
        manifest_data = data.get("manifest")
        return cls(
            files=[FileContext.from_dict(entry) for entry in data.get("files", [])],
            manifest=(
                PackageManifest.from_dict(manifest_data) if manifest_data is not None else None
            ),
        )
