# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""ProjectContextService - Business logic layer for the MCP server.

The protocol layer delegates every request here. The service holds
configuration only: each request enumerates the project again and builds a
new graph, so concurrent requests never share mutable state.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from projgraph.config import Config
from projgraph.context import ContextAssembler
from projgraph.enumerator import FileEnumerator
from projgraph.models import FileRecord, ProjectContext
from projgraph.resolver import normalize_path

logger = logging.getLogger(__name__)


@dataclass
class FileDependencies:
    """Direct and transitive neighbors of one file."""

    path: str
    imports: List[str] = field(default_factory=list)
    imported_by: List[str] = field(default_factory=list)
    transitive_imports: List[str] = field(default_factory=list)
    transitive_imported_by: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for MCP response."""
        return {
            "path": self.path,
            "imports": list(self.imports),
            "imported_by": list(self.imported_by),
            "transitive_imports": list(self.transitive_imports),
            "transitive_imported_by": list(self.transitive_imported_by),
        }


class ProjectContextService:
    """Business logic coordinator for project dependency queries.

    Usage:
        service = ProjectContextService()
        context = service.get_project_context("/path/to/project")
        deps = service.get_file_dependencies("/path/to/project", "src/app.ts")
    """

    def __init__(self, config: Optional[Config] = None) -> None:
        """Initialize the service.

        Args:
            config: Configuration shared by all requests. If None, each request
                loads .projgraph.yml from the requested root.
        """
        self.config = config
        self._assembler = ContextAssembler(config)

    def _config_for(self, root: Path) -> Config:
        return self.config if self.config is not None else Config.for_root(root)

    def enumerate_files(self, root_path: Union[str, Path]) -> List[FileRecord]:
        """List the project files under root_path.

        Raises:
            FileNotFoundError, NotADirectoryError, PermissionError: Invalid root.
        """
        root = Path(root_path)
        return FileEnumerator.from_config(root, self._config_for(root)).enumerate()

    def get_project_context(self, root_path: Union[str, Path]) -> ProjectContext:
        """Build a fresh project snapshot.

        Raises:
            FileNotFoundError, NotADirectoryError, PermissionError: Invalid root.
        """
        return self._assembler.build(root_path)

    def get_file_dependencies(
        self, root_path: Union[str, Path], file_path: str
    ) -> FileDependencies:
        """Get direct and transitive imports and importers of one file.

        Args:
            root_path: Project root directory.
            file_path: Root-relative path, or an absolute path under the root.

        Returns:
            FileDependencies with sorted transitive sets.

        Raises:
            FileNotFoundError, NotADirectoryError, PermissionError: Invalid root.
            ValueError: If file_path is not an enumerated project file.
        """
        root = Path(root_path)
        rel_path = self._to_project_path(root, file_path)

        graph = self._assembler.build_graph(root)
        if rel_path not in graph:
            raise ValueError(f"Not a project file: {file_path}")

        return FileDependencies(
            path=rel_path,
            imports=graph.outgoing(rel_path),
            imported_by=graph.incoming(rel_path),
            transitive_imports=sorted(graph.transitive_dependencies(rel_path)),
            transitive_imported_by=sorted(graph.transitive_dependents(rel_path)),
        )

    def get_dependency_graph(self, root_path: Union[str, Path]) -> Dict[str, Any]:
        """Export the dependency graph of a project.

        Raises:
            FileNotFoundError, NotADirectoryError, PermissionError: Invalid root.
        """
        root = Path(root_path)
        graph = self._assembler.build_graph(root)
        return graph.export_to_dict(project_root=str(root))

    def summarize(self, root_path: Union[str, Path]) -> str:
        """Human-readable summary: one line per file plus the manifest name.

        Raises:
            FileNotFoundError, NotADirectoryError, PermissionError: Invalid root.
        """
        context = self.get_project_context(root_path)
        lines = context.summary_lines()
        if context.manifest is not None and context.manifest.name:
            header = f"# {context.manifest.name}"
            if context.manifest.version:
                header += f" {context.manifest.version}"
            lines.insert(0, header)
        return "\n".join(lines)

    def _to_project_path(self, root: Path, file_path: str) -> str:
        """Convert a request path to the root-relative form used by the graph."""
        path = Path(file_path)
        if path.is_absolute():
            try:
                path = path.relative_to(root.absolute())
            except ValueError:
                raise ValueError(f"Path is outside the project root: {file_path}") from None
        return normalize_path(path.as_posix())

    def shutdown(self) -> None:
        """Release resources. The service holds none between requests."""
        logger.info("ProjectContextService shut down")
