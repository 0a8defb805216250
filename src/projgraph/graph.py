# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Directed dependency graph of project files.

Nodes live in an arena addressed by stable integer ids; the path -> id map is
owned by the graph and never needed by callers, since every query takes and
returns paths.

Invariants:
- Node identity is the path; adding a known path returns the existing id
- At most one edge exists per ordered pair (A -> B)
- Adding an edge first adds any missing endpoint
- Cycles and self-loops are allowed

The graph is built once per enumeration pass and only read afterward; there
is no removal operation.
"""

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Iterator, List, Optional, Set, Tuple

from projgraph.models import FileNode

logger = logging.getLogger(__name__)

NodeId = int


class DependencyGraph:
    """Arena-backed directed graph of "imports" edges between files.

    Adjacency is kept in both directions. Each adjacency is a dict used as an
    insertion-ordered set, so neighbor queries come back in the order edges
    were first added.

    Limitations:
    - NOT thread-safe: each build owns its own instance
    """

    def __init__(self) -> None:
        """Initialize empty graph."""
        self._nodes: List[FileNode] = []
        self._index: Dict[str, NodeId] = {}
        self._outgoing: List[Dict[NodeId, None]] = []
        self._incoming: List[Dict[NodeId, None]] = []
        self._edge_count = 0

    def add_node(self, path: str) -> NodeId:
        """Add a node for a path, or return the existing one.

        Complexity: O(1) average.

        Args:
            path: Root-relative file path.

        Returns:
            Stable id of the node.
        """
        node_id = self._index.get(path)
        if node_id is not None:
            return node_id

        node_id = len(self._nodes)
        self._nodes.append(FileNode.for_path(path))
        self._outgoing.append({})
        self._incoming.append({})
        self._index[path] = node_id
        return node_id

    def add_edge(self, from_path: str, to_path: str) -> None:
        """Record that from_path imports to_path.

        Missing endpoints are added first. Repeated calls for the same pair
        leave a single edge.
        """
        from_id = self.add_node(from_path)
        to_id = self.add_node(to_path)

        if to_id in self._outgoing[from_id]:
            return

        self._outgoing[from_id][to_id] = None
        self._incoming[to_id][from_id] = None
        self._edge_count += 1

    def outgoing(self, path: str) -> List[str]:
        """Paths that path imports. Unknown paths yield []."""
        node_id = self._index.get(path)
        if node_id is None:
            return []
        return [self._nodes[neighbor].path for neighbor in self._outgoing[node_id]]

    def incoming(self, path: str) -> List[str]:
        """Paths that import path. Unknown paths yield []."""
        node_id = self._index.get(path)
        if node_id is None:
            return []
        return [self._nodes[neighbor].path for neighbor in self._incoming[node_id]]

    def has_edge(self, from_path: str, to_path: str) -> bool:
        from_id = self._index.get(from_path)
        to_id = self._index.get(to_path)
        if from_id is None or to_id is None:
            return False
        return to_id in self._outgoing[from_id]

    def get_node(self, path: str) -> Optional[FileNode]:
        node_id = self._index.get(path)
        return self._nodes[node_id] if node_id is not None else None

    def nodes(self) -> Iterator[FileNode]:
        """Iterate nodes in insertion order."""
        return iter(self._nodes)

    def edges(self) -> Iterator[Tuple[str, str]]:
        """Iterate (importer, imported) path pairs."""
        for from_id, targets in enumerate(self._outgoing):
            for to_id in targets:
                yield self._nodes[from_id].path, self._nodes[to_id].path

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return self._edge_count

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, path: object) -> bool:
        return path in self._index

    def transitive_dependencies(self, path: str) -> Set[str]:
        """All files path imports, directly or transitively (path excluded)."""
        return self._reachable(path, self._outgoing)

    def transitive_dependents(self, path: str) -> Set[str]:
        """All files importing path, directly or transitively (path excluded)."""
        return self._reachable(path, self._incoming)

    def _reachable(self, path: str, adjacency: List[Dict[NodeId, None]]) -> Set[str]:
        """Breadth-first traversal from path over one adjacency direction."""
        start = self._index.get(path)
        if start is None:
            return set()

        visited: Set[NodeId] = {start}
        queue: Deque[NodeId] = deque([start])
        while queue:
            current = queue.popleft()
            for neighbor in adjacency[current]:
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)

        # A file that reaches itself through a cycle still is not its own dependency
        visited.discard(start)
        return {self._nodes[node_id].path for node_id in visited}

    def most_connected(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Files with the most importers.

        Args:
            limit: Maximum number of files to return.

        Returns:
            List of dicts with 'file' and 'dependent_count' keys, sorted by
            count descending; files nobody imports are left out.
        """
        counts = [
            (node.path, len(self._incoming[node_id]))
            for node_id, node in enumerate(self._nodes)
            if self._incoming[node_id]
        ]
        counts.sort(key=lambda item: item[1], reverse=True)
        return [{"file": path, "dependent_count": count} for path, count in counts[:limit]]

    def validate(self) -> Tuple[bool, List[str]]:
        """Check the graph for internal consistency.

        Checks that B is in outgoing(A) exactly when A is in incoming(B), that
        the path index agrees with the arena, and that the edge count matches.

        Returns:
            Tuple of (is_valid, error_messages).
        """
        errors: List[str] = []

        if len(self._index) != len(self._nodes):
            errors.append(
                f"Index size {len(self._index)} does not match node count {len(self._nodes)}"
            )
        for path, node_id in self._index.items():
            if node_id >= len(self._nodes) or self._nodes[node_id].path != path:
                errors.append(f"Index entry for {path} points at the wrong node")

        counted = 0
        for from_id, targets in enumerate(self._outgoing):
            for to_id in targets:
                counted += 1
                if from_id not in self._incoming[to_id]:
                    errors.append(
                        f"Index inconsistency: {self._nodes[from_id].path} -> "
                        f"{self._nodes[to_id].path} missing from incoming index"
                    )
        for to_id, sources in enumerate(self._incoming):
            for from_id in sources:
                if to_id not in self._outgoing[from_id]:
                    errors.append(
                        f"Index inconsistency: {self._nodes[to_id].path} <- "
                        f"{self._nodes[from_id].path} missing from outgoing index"
                    )

        if counted != self._edge_count:
            errors.append(f"Edge count {self._edge_count} does not match {counted} stored edges")

        if errors:
            logger.error(f"Graph consistency check found {len(errors)} errors: {errors}")
        return not errors, errors

    def export_to_dict(self, project_root: Optional[str] = None) -> Dict[str, Any]:
        """Export graph to JSON-compatible dict.

        Args:
            project_root: Project root recorded in the metadata section.

        Returns:
            Dictionary containing:
            - metadata: timestamp, counts, project_root
            - files: path, name and degree of each node
            - edges: list of {"source", "target"} dicts
            - graph_metadata: most connected files
        """
        metadata: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "total_files": self.node_count,
            "total_edges": self.edge_count,
        }
        if project_root:
            metadata["project_root"] = project_root

        files = [
            {
                "path": node.path,
                "name": node.name,
                "import_count": len(self._outgoing[node_id]),
                "imported_by_count": len(self._incoming[node_id]),
            }
            for node_id, node in enumerate(self._nodes)
        ]

        return {
            "metadata": metadata,
            "files": files,
            "edges": [{"source": source, "target": target} for source, target in self.edges()],
            "graph_metadata": {"most_connected_files": self.most_connected(limit=10)},
        }
