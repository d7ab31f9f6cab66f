"""FastAPI application entry point — REST catalog API plus the MCP SSE transport."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from mcp.server.sse import SseServerTransport

from prompt_server.api.router import api_router
from prompt_server.config import get_settings
from prompt_server.core.registry import PromptRegistry, get_registry
from prompt_server.utils.logging import setup_logging

if TYPE_CHECKING:
    from prompt_server.protocol.server import PromptServer

logger = structlog.get_logger()

SSE_PATH = "/sse"
MESSAGES_PATH = "/messages/"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("prompt_server.http_starting", service=settings.server_name)
    yield
    logger.info("prompt_server.http_shutdown")


def create_app(prompt_server: PromptServer | None = None) -> FastAPI:
    """Build the HTTP app.

    With no ``prompt_server`` the app serves the cached, settings-driven
    server; pass one to bind the routes and the SSE transport to it.
    """
    settings = get_settings()
    app = FastAPI(
        title="MCP Prompt Server",
        description="Serves a directory of prompt templates as MCP tools and prompts",
        version=settings.server_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api/v1")

    if prompt_server is not None:
        app.dependency_overrides[get_registry] = lambda: prompt_server.registry

    def current_server() -> PromptServer:
        if prompt_server is not None:
            return prompt_server
        from prompt_server.protocol.server import get_prompt_server

        return get_prompt_server()

    sse = SseServerTransport(MESSAGES_PATH)

    async def handle_sse(request: Request) -> Response:
        server = current_server()
        logger.info("server.sse_connected", client=request.client.host if request.client else None)
        async with sse.connect_sse(request.scope, request.receive, request._send) as streams:
            await server.mcp.run(streams[0], streams[1], server.mcp.create_initialization_options())
        return Response()

    app.add_route(SSE_PATH, handle_sse, methods=["GET"])
    app.mount(MESSAGES_PATH, app=sse.handle_post_message)

    @app.get("/")
    async def root():
        """Service info endpoint."""
        return {"service": settings.server_name, "version": settings.server_version}

    @app.get("/health")
    async def health(registry: PromptRegistry = Depends(get_registry)):
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": settings.server_name,
            "version": settings.server_version,
            "prompts": len(registry),
        }

    return app


app = create_app()
