# salon/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .db import create_db_and_tables
from .errors import (
    CapacityExceededError,
    ConcurrentModificationError,
    IllegalTransitionError,
    IncompleteSelectionError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from .logging_config import setup_logging
from .routers.appointments_routes import router as appointments_router
from .routers.availability_routes import router as availability_router
from .routers.reports_routes import router as reports_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Application starting up...")
    create_db_and_tables()
    yield
    logger.info("Application shutting down...")


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.include_router(availability_router)
app.include_router(appointments_router)
app.include_router(reports_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": exc.errors})


@app.exception_handler(IncompleteSelectionError)
async def incomplete_selection_handler(request: Request, exc: IncompleteSelectionError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": "Record not found", "kind": exc.kind})


@app.exception_handler(IllegalTransitionError)
async def illegal_transition_handler(request: Request, exc: IllegalTransitionError):
    logger.warning("Illegal transition on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=409, content={"detail": "This status change is not allowed"})


@app.exception_handler(CapacityExceededError)
async def capacity_handler(request: Request, exc: CapacityExceededError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ConcurrentModificationError)
async def concurrent_modification_handler(request: Request, exc: ConcurrentModificationError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error("Store unavailable on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Service temporarily unavailable, please retry"},
        headers={"Retry-After": "5"},
    )
