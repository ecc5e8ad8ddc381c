"""
TaskFlow API application.

create_app() builds the FastAPI app; main() loads config, sets up logging and
runs it under uvicorn.
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskflow import __version__
from taskflow.config import TaskflowConfig, get_config
from taskflow.db import DatabaseAdapter, get_adapter, run_migrations
from taskflow.errors import TaskflowError
from taskflow.logs import setup_logging
from taskflow.seed import seed_definitions
from taskflow_api.routes import ROUTERS

logger = logging.getLogger(__name__)
request_logger = logging.getLogger("taskflow_api.requests")


def create_app(
    config: Optional[TaskflowConfig] = None,
    adapter: Optional[DatabaseAdapter] = None,
) -> FastAPI:
    """
    Build the API.

    Args:
        config: Settings; defaults to the loaded ~/.taskflow/config.yaml
        adapter: Database adapter; defaults to the one the config describes

    The adapter is connected, migrated and seeded when the app starts and
    closed when it stops.
    """
    config = config or get_config()
    adapter = adapter or get_adapter(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await adapter.connect()
        applied = await run_migrations(adapter)
        if applied:
            logger.info(f"Applied migrations: {', '.join(applied)}")
        await seed_definitions(adapter)
        logger.info(f"TaskFlow API {__version__} started ({config.server.environment})")
        try:
            yield
        finally:
            await adapter.close()
            logger.info("TaskFlow API stopped")

    app = FastAPI(title="TaskFlow", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.adapter = adapter

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        request_logger.info(
            f"{request.method} {request.url.path} {response.status_code} {duration_ms}ms",
            extra={"extra_fields": {
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": duration_ms,
            }},
        )
        return response

    @app.exception_handler(TaskflowError)
    async def taskflow_error_handler(request: Request, exc: TaskflowError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"error": "INTERNAL_SERVER_ERROR", "message": "An unexpected error occurred"},
        )

    for router in ROUTERS:
        app.include_router(router)

    return app


def main() -> None:
    """Console entry point: validate config and serve with uvicorn."""
    import uvicorn

    config = get_config()
    problems = config.validate()
    if problems:
        for problem in problems:
            print(f"Config error: {problem}", file=sys.stderr)
        sys.exit(1)

    setup_logging(
        config.server.log_level,
        log_file=config.server.log_file,
        json_output=config.is_production,
    )
    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level.lower(),
    )


if __name__ == "__main__":
    main()
