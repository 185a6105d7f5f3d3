"""
HTTP API for pong0.

GET  /query?ip=1.1.1.1
POST /query   {"ip": "1.1.1.1"}  or form-encoded ip=1.1.1.1
GET  /health

An empty ip queries the server's own address. When an API key is
configured, requests must send `Authorization: Bearer <key>`.
"""

import hmac
import json
import socket
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .audit_logger import AuditLogger
from .config import SystemConfig
from .enums import LogLevel
from .exceptions import Pong0Error
from .models import error_payload
from .orchestrator import QueryOrchestrator

METHOD_NOT_ALLOWED_MESSAGE = "Only POST and GET requests are supported"


def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=error_payload(message), headers=headers
    )


def _authorized(request: Request, api_key: Optional[str]) -> bool:
    if not api_key:
        return True
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return False
    return hmac.compare_digest(header[len("Bearer "):], api_key)


async def _requested_ip(request: Request) -> str:
    """Read the ip parameter from the query string, a JSON body or a form body."""
    if request.method == "GET":
        return request.query_params.get("ip", "")

    content_type = request.headers.get("Content-Type", "")
    if "application/json" in content_type:
        body = await request.json()
        if not isinstance(body, dict):
            raise ValueError("JSON body must be an object")
        value = body.get("ip") or ""
        return str(value)

    form = await request.form()
    return str(form.get("ip") or "")


def create_app(
    config: Optional[SystemConfig] = None,
    orchestrator: Optional[QueryOrchestrator] = None,
    logger: Optional[AuditLogger] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        config: System configuration (server.api_key is enforced)
        orchestrator: Optional orchestrator, e.g. one with a mock transport
        logger: Optional audit logger

    Returns:
        Configured FastAPI app
    """
    config = config or SystemConfig()
    orchestrator = orchestrator or QueryOrchestrator(config, logger=logger)
    api_key = config.server.api_key

    app = FastAPI(
        title="pong0",
        description="IP information lookups via ping0.cc",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    def log(level: LogLevel, message: str, data: Optional[dict] = None) -> None:
        if logger:
            logger.log(level, "Server", message, data)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return _error(405, METHOD_NOT_ALLOWED_MESSAGE, headers=exc.headers)
        return await http_exception_handler(request, exc)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": __version__}

    # Preflights carrying Origin are answered by CORSMiddleware first
    @app.options("/query")
    async def query_options():
        return Response(status_code=200)

    @app.api_route("/query", methods=["GET", "POST"])
    async def query(request: Request):
        if not _authorized(request, api_key):
            return _error(401, "Unauthorized: invalid or missing API key")

        try:
            ip = (await _requested_ip(request)).strip()
        except (ValueError, json.JSONDecodeError) as e:
            return _error(400, f"Could not parse request body: {e}")

        log(LogLevel.INFO, "Handling query", {"query_ip": ip or "current"})

        try:
            result = await orchestrator.query(ip or None)
        except Pong0Error as e:
            log(LogLevel.ERROR, "Query failed", e.to_dict())
            return _error(500, e.display_message)

        return JSONResponse(status_code=200, content=result.record.to_dict())

    return app


def is_port_available(port: int, host: str = "0.0.0.0") -> bool:
    """Return True if a TCP listener can bind host:port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


def run_server(config: SystemConfig, logger: Optional[AuditLogger] = None) -> None:
    """Serve the API with uvicorn until interrupted."""
    import uvicorn

    app = create_app(config, logger=logger)
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level="info" if config.logging.verbose else "warning",
        timeout_keep_alive=120,
    )
