# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Project context assembly.

Orchestrates one pass over a project root:
1. Enumerate files
2. Register every file as a graph node, so files without imports still appear
   and can be resolution targets
3. For each scannable file: extract raw imports, resolve them, add edges
4. Load the optional manifest (pass-through)
5. Flatten graph neighbors into one FileContext per enumerated file

Nothing is cached. Every call walks the tree again and owns a fresh graph.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from projgraph.config import Config
from projgraph.enumerator import FileEnumerator
from projgraph.extractor import is_scannable, read_imports
from projgraph.graph import DependencyGraph
from projgraph.logging_setup import ProjectLogAdapter
from projgraph.manifest import load_manifest
from projgraph.models import FileContext, FileRecord, ProjectContext
from projgraph.resolver import resolve_import

logger = logging.getLogger(__name__)


def build_dependency_graph(
    files: Iterable[FileRecord],
    root: Union[str, Path],
    max_file_size_bytes: Optional[int] = None,
) -> DependencyGraph:
    """Build the import graph for an enumerated file list.

    Args:
        files: Records from one enumeration pass.
        root: Project root the record paths are relative to.
        max_file_size_bytes: Files above this size are not scanned.

    Returns:
        A new DependencyGraph containing every file as a node.
    """
    root = Path(root)
    records = list(files)
    graph = DependencyGraph()

    for record in records:
        graph.add_node(record.path)
    known_files = frozenset(record.path for record in records)

    scanned = 0
    unresolved = 0
    for record in records:
        if not is_scannable(record.extension):
            continue
        scanned += 1
        for raw_import in read_imports(root / record.path, max_file_size_bytes):
            target = resolve_import(raw_import, record.path, known_files)
            if target is None:
                unresolved += 1
                continue
            graph.add_edge(record.path, target)

    logger.debug(
        f"Scanned {scanned} of {len(records)} files: {graph.edge_count} edges, "
        f"{unresolved} imports without a project target"
    )
    return graph


class ContextAssembler:
    """Builds ProjectContext snapshots for project roots.

    Holds configuration only. Graphs are created per call and never shared.

    Usage:
        assembler = ContextAssembler(config)
        context = assembler.build(Path("/path/to/project"))
    """

    def __init__(self, config: Optional[Config] = None) -> None:
        """Initialize the assembler.

        Args:
            config: Configuration. If None, each build loads .projgraph.yml
                from the root being built.
        """
        self.config = config

    def _config_for(self, root: Path) -> Config:
        return self.config if self.config is not None else Config.for_root(root)

    def build_graph(self, root: Union[str, Path]) -> DependencyGraph:
        """Enumerate a root and build its dependency graph."""
        root = Path(root)
        config = self._config_for(root)
        files = FileEnumerator.from_config(root, config).enumerate()
        return build_dependency_graph(files, root, config.max_file_size_bytes)

    def build(self, root: Union[str, Path]) -> ProjectContext:
        """Build a fresh project snapshot.

        Args:
            root: Project root directory.

        Returns:
            ProjectContext with one entry per enumerated file.

        Raises:
            FileNotFoundError, NotADirectoryError, PermissionError: Invalid root.
        """
        root = Path(root)
        config = self._config_for(root)

        files = FileEnumerator.from_config(root, config).enumerate()
        graph = build_dependency_graph(files, root, config.max_file_size_bytes)

        manifest = None
        if config.read_manifest:
            manifest = load_manifest(root, config.manifest_filename)

        file_contexts = [
            FileContext(
                path=record.path,
                extension=record.extension,
                imports=graph.outgoing(record.path),
                imported_by=graph.incoming(record.path),
            )
            for record in files
        ]

        ProjectLogAdapter(logger, root).info(
            f"Built project context: {len(file_contexts)} files, {graph.edge_count} import edges",
            extra={
                "extra_fields": {
                    "files": len(file_contexts),
                    "edges": graph.edge_count,
                    "manifest": manifest is not None,
                }
            },
        )
        return ProjectContext(files=file_contexts, manifest=manifest)


def build_project_context(
    root_path: Union[str, Path], config: Optional[Config] = None
) -> ProjectContext:
    """Build a project snapshot for root_path.

    Args:
        root_path: Project root directory.
        config: Configuration. If None, loads .projgraph.yml from the root.

    Returns:
        A new ProjectContext.

    Raises:
        FileNotFoundError, NotADirectoryError, PermissionError: Invalid root.
    """
    return ContextAssembler(config).build(root_path)
