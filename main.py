"""
DevEvents - FastAPI Backend
Main application entry point
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from google.api_core.exceptions import GoogleAPICallError
from sqlalchemy.exc import SQLAlchemyError
import uvicorn

from devevents.core.config import settings
from devevents.core.db import init_db, dispose_engine
from devevents.core.exceptions import DevEventsError
from devevents.api import routes_bookings, routes_events, routes_public
from devevents.api.dependencies import get_event_service
from devevents.services.event_service import EventService
from devevents.services.repositories import use_firestore
from devevents.utils.responses import error_response

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Connect eagerly so a misconfigured process fails at startup
    if not use_firestore():
        init_db()
        logger.info("Database tables created")
    yield
    dispose_engine()
    logger.info("Application shutdown")

# Create FastAPI application
app = FastAPI(
    title="DevEvents",
    description="Browse developer events, publish new ones and book a slot",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount locally stored event images
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

# Setup templates
templates = Jinja2Templates(directory="templates")

# Include routers
app.include_router(routes_public.router, tags=["public"])
app.include_router(routes_events.router, prefix="/api", tags=["events"])
app.include_router(routes_bookings.router, prefix="/api", tags=["bookings"])

@app.exception_handler(DevEventsError)
async def devevents_error_handler(request: Request, exc: DevEventsError):
    if exc.status_code >= 500:
        logger.exception(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
    return error_response(
        message=type(exc).default_message,
        error=exc.message,
        error_code=exc.error_code,
        status_code=exc.status_code
    )

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return error_response(
        message="Validation failed",
        error=errors,
        error_code="validation_error",
        status_code=400
    )

@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"{request.method} {request.url.path} failed with a database error", exc_info=exc)
    return error_response(
        message="Database error",
        error=str(exc.__class__.__name__),
        error_code="store_error",
        status_code=500
    )

@app.exception_handler(GoogleAPICallError)
async def firestore_error_handler(request: Request, exc: GoogleAPICallError):
    logger.exception(f"{request.method} {request.url.path} failed with a Firestore error", exc_info=exc)
    return error_response(
        message="Database error",
        error=str(exc.__class__.__name__),
        error_code="store_error",
        status_code=500
    )

@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} failed unexpectedly", exc_info=exc)
    return error_response(
        message=DevEventsError.default_message,
        error=str(exc.__class__.__name__),
        error_code=DevEventsError.error_code,
        status_code=500
    )

@app.get("/", response_class=HTMLResponse)
def root(request: Request, service: EventService = Depends(get_event_service)):
    """Home page listing featured events"""
    return templates.TemplateResponse(request, "index.html", {
        "title": "DevEvents",
        "events": service.list_events()
    })

# Note: Run this ASGI app directly with Uvicorn or Hypercorn. For Gunicorn,
# use `uvicorn.workers.UvicornWorker` instead of wrapping the app.

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )
