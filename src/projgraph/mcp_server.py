# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""MCP Server Protocol Layer for projgraph.

This module implements the MCP protocol layer with ZERO business logic.
All business logic is delegated to ProjectContextService.
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import Context, FastMCP
from mcp.server.session import ServerSession

from projgraph.config import Config
from projgraph.logging_setup import LOG_LEVELS, parse_log_level, setup_logging
from projgraph.service import ProjectContextService

logger = logging.getLogger(__name__)

SERVER_NAME = "project-graph"


class ProjectGraphMCPServer:
    """MCP Protocol Layer for projgraph.

    Responsibilities:
    - Initialize MCP server and register tools
    - Translate MCP requests to service calls
    - Format service responses as MCP tool results
    - Handle MCP server lifecycle

    Design Constraint: This layer contains ZERO business logic.
    Enumeration, resolution and graph queries reside in ProjectContextService.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        service: Optional[ProjectContextService] = None,
    ):
        """Initialize MCP server.

        Args:
            config: Configuration object. If None, each request uses the
                .projgraph.yml of the requested root.
            service: Service layer instance. If None, creates default service.
        """
        self.config = config

        if service is None:
            service = ProjectContextService(config=config)
        self.service = service

        self.mcp = FastMCP(name=SERVER_NAME)
        self._register_tools()

        logger.info("ProjectGraphMCPServer initialized")

    def _register_tools(self) -> None:
        """Register MCP tools with the server.

        Registers:
        - enumerate_files: List project files with extensions
        - get_project_context: Full snapshot with imports/imported_by per file
        - get_file_dependencies: Direct and transitive neighbors of one file
        - get_dependency_graph: Export the dependency graph
        """

        @self.mcp.tool()
        async def enumerate_files(
            root_path: str,
            ctx: Context[ServerSession, None],
        ) -> List[Dict[str, Any]]:
            """List the files of a project, honoring .gitignore rules.

            Args:
                root_path: Project root directory
                ctx: MCP context for logging

            Returns:
                List of {"path", "extension"} dictionaries with root-relative paths
            """
            await ctx.info(f"Enumerating files under {root_path}")
            try:
                records = self.service.enumerate_files(root_path)
                return [record.to_dict() for record in records]
            except (FileNotFoundError, NotADirectoryError, PermissionError) as e:
                await ctx.error(f"Invalid project root {root_path}: {e}")
                raise
            except Exception as e:
                await ctx.error(f"Unexpected error enumerating {root_path}: {e}")
                raise

        @self.mcp.tool()
        async def get_project_context(
            root_path: str,
            ctx: Context[ServerSession, None],
        ) -> Dict[str, Any]:
            """Build a project snapshot with import relationships.

            Args:
                root_path: Project root directory
                ctx: MCP context for logging

            Returns:
                Dictionary with:
                - files: list of {"path", "extension", "imports", "imported_by"}
                - manifest: package.json name, version, dependencies, scripts, or null
            """
            await ctx.info(f"Building project context for {root_path}")
            try:
                context = self.service.get_project_context(root_path)
                await ctx.info(f"Project context built: {len(context.files)} files")
                return context.to_dict()
            except (FileNotFoundError, NotADirectoryError, PermissionError) as e:
                await ctx.error(f"Invalid project root {root_path}: {e}")
                raise
            except Exception as e:
                await ctx.error(f"Unexpected error building context for {root_path}: {e}")
                raise

        @self.mcp.tool()
        async def get_file_dependencies(
            root_path: str,
            file_path: str,
            ctx: Context[ServerSession, None],
        ) -> Dict[str, Any]:
            """Show what a file imports and what imports it.

            Args:
                root_path: Project root directory
                file_path: File path relative to the root (or absolute under it)
                ctx: MCP context for logging

            Returns:
                Dictionary with direct and transitive imports and importers
            """
            await ctx.info(f"Querying dependencies of {file_path}")
            try:
                return self.service.get_file_dependencies(root_path, file_path).to_dict()
            except ValueError as e:
                await ctx.error(str(e))
                raise
            except Exception as e:
                await ctx.error(f"Unexpected error querying {file_path}: {e}")
                raise

        @self.mcp.tool()
        async def get_dependency_graph(
            root_path: str,
            ctx: Context[ServerSession, None],
        ) -> Dict[str, Any]:
            """Export the import graph of a project.

            Args:
                root_path: Project root directory
                ctx: MCP context for logging

            Returns:
                Dictionary with metadata, files, edges and graph_metadata
            """
            await ctx.info(f"Exporting dependency graph for {root_path}")
            try:
                export = self.service.get_dependency_graph(root_path)
                await ctx.info(
                    f"Graph exported: {len(export['files'])} files, "
                    f"{len(export['edges'])} edges"
                )
                return export
            except Exception as e:
                await ctx.error(f"Error exporting dependency graph: {e}")
                raise

        logger.info(
            "MCP tools registered: enumerate_files, get_project_context, "
            "get_file_dependencies, get_dependency_graph"
        )

    def run(self, transport: str = "stdio") -> None:
        """Run the MCP server.

        Args:
            transport: Transport type to use. Options:
                - "stdio": Standard input/output (default)
                - "streamable-http": HTTP transport
                - "sse": Server-sent events transport
        """
        logger.info(f"Starting MCP server with {transport} transport")
        self.mcp.run(transport=transport)  # type: ignore[arg-type]

    def shutdown(self) -> None:
        """Shutdown the MCP server and cleanup resources."""
        logger.info("Shutting down MCP server")
        self.service.shutdown()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        description="Project dependency graph MCP server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Configuration file applied to every request. "
        "Default: .projgraph.yml under each requested root",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for JSON log files. Default: ./.projgraph_logs",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=LOG_LEVELS,
        default="INFO",
        help="Logging level. Default: INFO",
    )
    parser.add_argument(
        "--transport",
        type=str,
        choices=["stdio", "streamable-http", "sse"],
        default="stdio",
        help="Transport type for MCP server. Default: stdio",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for MCP server."""
    args = parse_args(argv)

    setup_logging(log_dir=args.log_dir, log_level=parse_log_level(args.log_level))

    config = Config(config_path=args.config) if args.config is not None else None
    server = ProjectGraphMCPServer(config=config)
    try:
        server.run(transport=args.transport)
    finally:
        server.shutdown()


if __name__ == "__main__":
    main()
