from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .bridge import ToolBridge
from .errors import StorageError
from .logging import configure_logging, get_logger
from .routers import todos as todos_router
from .routers import tools as tools_router
from .service import TodoService, build_service, use_system_time_locale
from .settings import Settings, get_settings

logger = get_logger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "todos", "description": "CRUD operations for Todo items."},
    {"name": "tools", "description": "Tool catalog discovery and invocation through the dispatch bridge."},
]

# Route endpoint name -> 500 message
_FAILURE_MESSAGES = {
    "create_todo": "Failed to create todo",
    "list_todos": "Failed to fetch todos",
    "get_todo": "Failed to fetch todo",
    "update_todo": "Failed to update todo",
    "delete_todo": "Failed to delete todo",
}


def _failure_message(request: Request) -> str:
    endpoint = request.scope.get("endpoint")
    return _FAILURE_MESSAGES.get(getattr(endpoint, "__name__", ""), "Internal server error")


# PUBLIC_INTERFACE
def create_app(service: Optional[TodoService] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application around a single TodoService handle.

    When no service is given one is built from settings, which opens the
    configured store; failures there abort start-up.
    """
    settings = settings or get_settings()
    service = service or build_service(settings)

    app = FastAPI(
        title="Todo Backend",
        description="Todo management API with a tool-protocol bridge shared by MCP and chat front-ends.",
        version="1.0.0",
        openapi_tags=openapi_tags,
        docs_url="/api-docs",
    )
    app.state.settings = settings
    app.state.service = service
    app.state.bridge = ToolBridge(service)

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": [... pydantic/fastapi error details ...]
            }
        """
        return JSONResponse(
            status_code=400,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": [
                    {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                    for e in exc.errors()
                ],
            },
        )

    @app.exception_handler(StorageError)
    async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={"error": "StorageError", "message": _failure_message(request)},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "InternalServerError", "message": _failure_message(request)},
        )

    # PUBLIC_INTERFACE
    @app.get("/health", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"status": "ok", "backend": settings.persistence_backend}

    app.include_router(todos_router.router)
    app.include_router(tools_router.router)
    return app


# PUBLIC_INTERFACE
def run() -> None:
    """Console entry point: serve the REST API with uvicorn."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    use_system_time_locale()
    app = create_app(settings=settings)
    logger.info("REST API listening on http://%s:%s (docs at /api-docs)", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
