# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Project dependency graph: file enumeration, import resolution and context snapshots."""

from .config import Config, ConfigurationError
from .context import ContextAssembler, build_dependency_graph, build_project_context
from .enumerator import FileEnumerator, IgnoreRules, enumerate_files
from .extractor import extract_imports, is_scannable
from .graph import DependencyGraph
from .manifest import load_manifest
from .models import FileContext, FileNode, FileRecord, PackageManifest, ProjectContext
from .resolver import resolution_candidates, resolve_import
from .service import FileDependencies, ProjectContextService

__version__ = "0.1.0"

__all__ = [
    "Config",
    "ConfigurationError",
    "ContextAssembler",
    "build_dependency_graph",
    "build_project_context",
    "FileEnumerator",
    "IgnoreRules",
    "enumerate_files",
    "extract_imports",
    "is_scannable",
    "DependencyGraph",
    "load_manifest",
    "FileContext",
    "FileNode",
    "FileRecord",
    "PackageManifest",
    "ProjectContext",
    "resolution_candidates",
    "resolve_import",
    "FileDependencies",
    "ProjectContextService",
]

# Conditional import for MCP server (requires Python 3.10+ and mcp package)
try:
    from .mcp_server import ProjectGraphMCPServer

    __all__.append("ProjectGraphMCPServer")
except ImportError:
    # MCP package not available
    pass
