"""Habits MCP Server - Entry point.

Runs the MCP server with HTTP transport for Cloud Run deployment.
Uses Starlette with the MCP HTTP app for maximum compatibility.
"""

import hmac
import logging
import os

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route, Mount

from .shell.mcp_server import mcp


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_ORIGINS = "http://localhost:5173"


# ==================== Route Handlers ====================


async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint for Cloud Run."""
    return JSONResponse({"status": "healthy", "service": "habits-mcp"})


# ==================== Auth Middleware ====================


class BearerTokenMiddleware(BaseHTTPMiddleware):
    """Require ``Authorization: Bearer <token>`` on MCP requests.

    With no token configured every request is let through, which is only
    meant for running locally.
    """

    def __init__(self, app, api_token: str | None = None) -> None:
        super().__init__(app)
        self.api_token = api_token

    async def dispatch(self, request: Request, call_next):
        # Skip auth for non-MCP routes
        if not self.api_token or not request.url.path.startswith("/mcp"):
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        token = auth_header.removeprefix("Bearer ") if auth_header.startswith("Bearer ") else ""

        if not token or not hmac.compare_digest(token, self.api_token):
            logger.warning("Rejected MCP request from %s", request.client.host if request.client else "unknown")
            return JSONResponse({"error": "Unauthorized"}, status_code=401)

        return await call_next(request)


# ==================== Create ASGI App ====================


def create_app(api_token: str | None = None, allowed_origins: list[str] | None = None) -> Starlette:
    """Create the Starlette application with MCP at root.

    Args:
        api_token: Bearer token required on /mcp (defaults to HABITS_API_TOKEN)
        allowed_origins: CORS origins (defaults to ALLOWED_ORIGINS, comma-separated)
    """
    if api_token is None:
        api_token = os.environ.get("HABITS_API_TOKEN")
    if allowed_origins is None:
        allowed_origins = [
            o.strip()
            for o in os.environ.get("ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS).split(",")
            if o.strip()
        ]

    if not api_token:
        logger.warning("HABITS_API_TOKEN is not set; MCP endpoint is unauthenticated")

    mcp_app = mcp.streamable_http_app()

    routes = [
        Route("/health", health_check, methods=["GET"]),
        # Mount MCP app at root - it handles /mcp/ path internally
        Mount("/", app=mcp_app),
    ]

    app = Starlette(
        routes=routes,
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=allowed_origins,
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["*"],
            ),
            Middleware(BearerTokenMiddleware, api_token=api_token),
        ],
        lifespan=mcp_app.router.lifespan_context,
    )

    return app


# Create app at module level for Cloud Run
app = create_app()


def main() -> None:
    """Run the server."""
    port = int(os.environ.get("PORT", 8080))
    host = os.environ.get("HOST", "0.0.0.0")

    logger.info("Starting habits MCP server on %s:%d", host, port)

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
