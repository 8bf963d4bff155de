# agenda/main.py

import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from agenda.config import LOG_LEVEL, SESSION_BACKEND
from agenda.db import create_db_and_tables, engine
from agenda.errors import AgendaError, InternalError, ValidationError
from agenda.routers import (
    appointments_routes,
    auth_routes,
    availability_routes,
    date_blocks_routes,
    provider_routes,
    public_routes,
    services_routes,
)
from agenda.sessions import DatabaseSessionStore, InMemorySessionStore, SessionStore

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("passlib").setLevel(logging.ERROR)


def build_session_store(backend: str = SESSION_BACKEND) -> SessionStore:
    if backend == "memory":
        return InMemorySessionStore()
    if backend == "database":
        return DatabaseSessionStore(engine)
    raise ValueError(f"Unknown SESSION_BACKEND '{backend}'")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    create_db_and_tables()
    yield
    logger.info("Application shutting down...")


def create_app(session_store: Optional[SessionStore] = None) -> FastAPI:
    app = FastAPI(title="Agenda booking API", lifespan=lifespan)
    app.state.session_store = session_store or build_session_store()

    @app.exception_handler(AgendaError)
    async def agenda_error_handler(request: Request, exc: AgendaError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
        content = ValidationError().to_dict()
        content["errors"] = jsonable_encoder(
            [{"loc": e.get("loc"), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()]
        )
        return JSONResponse(status_code=ValidationError.status_code, content=content)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=InternalError.status_code, content=InternalError().to_dict())

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    app.include_router(auth_routes.router)
    app.include_router(provider_routes.router)
    app.include_router(services_routes.router)
    app.include_router(availability_routes.router)
    app.include_router(date_blocks_routes.router)
    app.include_router(appointments_routes.router)
    app.include_router(public_routes.router)

    return app


app = create_app()


def start_server():
    uvicorn.run(
        "agenda.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":
    start_server()
