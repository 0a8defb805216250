# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for MCP Server Protocol Layer."""

import inspect
import logging
from pathlib import Path
from unittest.mock import Mock

import pytest

# Skip tests if mcp package not available (requires Python 3.10+)
pytest.importorskip("mcp", reason="MCP package requires Python 3.10+")

from projgraph import mcp_server  # noqa: E402
from projgraph.config import Config  # noqa: E402
from projgraph.mcp_server import (  # noqa: E402
    SERVER_NAME,
    ProjectGraphMCPServer,
    parse_args,
)
from projgraph.service import ProjectContextService  # noqa: E402

EXPECTED_TOOLS = {
    "enumerate_files",
    "get_project_context",
    "get_file_dependencies",
    "get_dependency_graph",
}


class TestProjectGraphMCPServer:
    """Tests for ProjectGraphMCPServer."""

    def test_server_initialization(self):
        server = ProjectGraphMCPServer()

        assert server.mcp is not None
        assert server.service is not None
        assert server.config is None

    def test_server_initialization_with_custom_service(self):
        config = Config.from_dict({"read_manifest": False})
        service = ProjectContextService(config)

        server = ProjectGraphMCPServer(config=config, service=service)

        assert server.config is config
        assert server.service is service

    def test_default_service_receives_config(self):
        config = Config.from_dict({})

        server = ProjectGraphMCPServer(config=config)

        assert server.service.config is config

    def test_server_name_is_unique(self):
        server = ProjectGraphMCPServer()

        assert server.mcp.name == SERVER_NAME == "project-graph"

    @pytest.mark.asyncio
    async def test_tools_are_registered(self):
        server = ProjectGraphMCPServer()

        tools = await server.mcp.list_tools()

        assert {tool.name for tool in tools} == EXPECTED_TOOLS

    @pytest.mark.asyncio
    async def test_tool_schemas_expose_request_parameters(self):
        server = ProjectGraphMCPServer()

        tools = {tool.name: tool for tool in await server.mcp.list_tools()}

        dependency_params = tools["get_file_dependencies"].inputSchema["properties"]
        assert set(dependency_params) == {"root_path", "file_path"}
        assert set(tools["get_project_context"].inputSchema["properties"]) == {"root_path"}

    def test_shutdown(self):
        service = Mock(spec=ProjectContextService)
        server = ProjectGraphMCPServer(service=service)

        server.shutdown()

        service.shutdown.assert_called_once()

    def test_run_delegates_to_fastmcp(self, monkeypatch):
        server = ProjectGraphMCPServer()
        run = Mock()
        monkeypatch.setattr(server.mcp, "run", run)

        server.run(transport="sse")

        run.assert_called_once_with(transport="sse")


class TestMCPToolIntegration:
    """Tools delegate to the service layer; exercise that path directly."""

    @pytest.mark.asyncio
    async def test_project_context_via_service(self, sample_project):
        server = ProjectGraphMCPServer()

        result = server.service.get_project_context(str(sample_project)).to_dict()

        paths = [entry["path"] for entry in result["files"]]
        assert "src/app.ts" in paths
        assert result["manifest"]["name"] == "sample"

    @pytest.mark.asyncio
    async def test_file_dependencies_via_service(self, sample_project):
        server = ProjectGraphMCPServer()

        result = server.service.get_file_dependencies(str(sample_project), "src/app.ts").to_dict()

        assert result["imported_by"] == ["src/index.ts", "src/legacy.js"]

    @pytest.mark.asyncio
    async def test_invalid_root_via_service(self, tmp_path):
        server = ProjectGraphMCPServer()

        with pytest.raises(FileNotFoundError):
            server.service.enumerate_files(str(tmp_path / "missing"))


class TestProtocolLayerDesign:
    """The protocol layer holds no enumeration, parsing or graph logic."""

    def test_no_business_logic_imports(self):
        source = inspect.getsource(mcp_server)

        for module in ("enumerator", "extractor", "resolver", "graph", "manifest"):
            assert f"projgraph.{module}" not in source

    def test_server_holds_no_graph_state(self):
        server = ProjectGraphMCPServer()

        assert not hasattr(server, "graph")
        assert not hasattr(server.service, "graph")


class TestCommandLine:
    """Tests for argument parsing and main()."""

    def test_parse_args_defaults(self):
        args = parse_args([])

        assert args.config is None
        assert args.log_dir is None
        assert args.log_level == "INFO"
        assert args.transport == "stdio"

    def test_parse_args_values(self, tmp_path):
        args = parse_args(
            [
                "--config",
                str(tmp_path / "cfg.yml"),
                "--log-dir",
                str(tmp_path / "logs"),
                "--log-level",
                "DEBUG",
                "--transport",
                "streamable-http",
            ]
        )

        assert args.config == tmp_path / "cfg.yml"
        assert args.log_dir == tmp_path / "logs"
        assert args.log_level == "DEBUG"
        assert args.transport == "streamable-http"

    def test_parse_args_rejects_unknown_transport(self):
        with pytest.raises(SystemExit):
            parse_args(["--transport", "carrier-pigeon"])

    def test_main_runs_and_shuts_down(self, tmp_path, monkeypatch):
        setup_logging = Mock(return_value=tmp_path / "log")
        created = []

        class FakeServer:
            def __init__(self, config=None):
                self.config = config
                self.run = Mock()
                self.shutdown = Mock()
                created.append(self)

        monkeypatch.setattr(mcp_server, "setup_logging", setup_logging)
        monkeypatch.setattr(mcp_server, "ProjectGraphMCPServer", FakeServer)
        config_file = tmp_path / "cfg.yml"
        config_file.write_text("read_manifest: false\n")

        mcp_server.main(["--config", str(config_file), "--log-level", "WARNING"])

        setup_logging.assert_called_once_with(log_dir=None, log_level=logging.WARNING)
        server = created[0]
        assert server.config.read_manifest is False
        server.run.assert_called_once_with(transport="stdio")
        server.shutdown.assert_called_once()

    def test_main_shuts_down_when_run_fails(self, monkeypatch):
        server = Mock()
        server.run.side_effect = KeyboardInterrupt
        monkeypatch.setattr(mcp_server, "setup_logging", Mock(return_value=Path(".")))
        monkeypatch.setattr(mcp_server, "ProjectGraphMCPServer", Mock(return_value=server))

        with pytest.raises(KeyboardInterrupt):
            mcp_server.main([])

        server.shutdown.assert_called_once()
