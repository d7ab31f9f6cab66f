"""MCP server — binds the registry's current catalog to an MCP runtime.

Tool and prompt listings are read from the registry snapshot on every
request, so a reload changes what clients see without re-registering
anything with the runtime.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import anyio
import mcp.types as types
import structlog
import uvicorn
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from prompt_server.config import Settings, get_settings
from prompt_server.core.registry import PromptRegistry, get_registry
from prompt_server.protocol.adapter import AdaptedPrompt, tool_error
from prompt_server.protocol.management import ManagementTools

logger = structlog.get_logger()

DEFAULT_HOST = "127.0.0.1"


def parse_address(addr: str) -> tuple[str, int]:
    """Split ``host:port`` (``:port`` binds the local default host)."""
    host, sep, port = addr.strip().rpartition(":")
    if not sep:
        host, port = "", addr.strip()
    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"Invalid address '{addr}': port must be a number") from None
    if not 0 < port_number < 65536:
        raise ValueError(f"Invalid address '{addr}': port out of range")
    return host.strip("[]") or DEFAULT_HOST, port_number


class PromptServer:
    """Serves the prompt catalog over MCP via stdio or HTTP/SSE."""

    def __init__(self, registry: PromptRegistry[AdaptedPrompt], settings: Settings | None = None) -> None:
        self.registry = registry
        self.settings = settings or get_settings()
        self.management = ManagementTools(registry)
        self.mcp: Server = Server(self.settings.server_name, version=self.settings.server_version)
        self._http: uvicorn.Server | None = None
        self._stopped = False
        self._register_handlers()

    def _register_handlers(self) -> None:
        server = self.mcp

        @server.list_tools()
        async def _list_tools() -> list[types.Tool]:
            return self.list_tools()

        @server.call_tool(validate_input=False)
        async def _call_tool(name: str, arguments: dict[str, Any]) -> types.CallToolResult:
            return await self.call_tool(name, arguments)

        @server.list_prompts()
        async def _list_prompts() -> list[types.Prompt]:
            return self.list_prompts()

        @server.get_prompt()
        async def _get_prompt(name: str, arguments: dict[str, str] | None) -> types.GetPromptResult:
            return self.get_prompt(name, arguments)

    # --- Request handling ---

    def list_tools(self) -> list[types.Tool]:
        tools = self.management.tools()
        reserved = self.management.names
        for name, binding in sorted(self.registry.snapshot.bindings.items()):
            if name in reserved:
                logger.warning("server.tool_shadowed", name=name)
                continue
            tools.append(binding.tool)
        return tools

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
        if name in self.management.names:
            return await self.management.call(name, arguments)

        binding = self.registry.snapshot.bindings.get(name)
        if binding is None:
            return tool_error("unknown_tool", f"Tool '{name}' not found")
        logger.info("server.tool_called", tool=name)
        return binding.tool_handler(arguments)

    def list_prompts(self) -> list[types.Prompt]:
        return [binding.prompt for _, binding in sorted(self.registry.snapshot.bindings.items())]

    def get_prompt(self, name: str, arguments: dict[str, Any] | None) -> types.GetPromptResult:
        binding = self.registry.snapshot.bindings.get(name)
        if binding is None:
            raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=f"Prompt '{name}' not found"))
        logger.info("server.prompt_requested", prompt=name)
        return binding.prompt_handler(arguments)

    # --- Lifecycle ---

    async def run_stdio(self) -> None:
        async with stdio_server() as (read_stream, write_stream):
            await self.mcp.run(read_stream, write_stream, self.mcp.create_initialization_options())

    def create_http_app(self):
        """FastAPI app serving this server over SSE plus the REST catalog API."""
        from prompt_server.main import create_app

        return create_app(self)

    def start(self, addr: str | None = None) -> None:
        """Serve until stopped: stdio when ``addr`` is empty, HTTP/SSE otherwise."""
        self._stopped = False
        if not addr:
            logger.info("server.starting", transport="stdio", prompts=len(self.registry))
            anyio.run(self.run_stdio)
            return

        host, port = parse_address(addr)
        logger.info("server.starting", transport="sse", host=host, port=port, prompts=len(self.registry))
        config = uvicorn.Config(
            self.create_http_app(),
            host=host,
            port=port,
            log_level=self.settings.log_level.lower(),
        )
        self._http = uvicorn.Server(config)
        self._http.run()

    def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        if self._http is not None:
            self._http.should_exit = True
        logger.info("server.stopped")


@lru_cache
def get_prompt_server() -> PromptServer:
    """Get the cached server built from configured settings."""
    return PromptServer(get_registry(), get_settings())
