"""
User Service - registration and profile API backed by Keycloak
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .config import settings
from .db import init_db
from .error_handlers import register_exception_handlers
from .routes import auth, health, users
from .utils.logging_setup import configure_logging

configure_logging()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Initialize database on startup"""
    init_db()
    yield


app = FastAPI(
    title="User Service",
    description="User registration and profile management",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)

register_exception_handlers(app)

# Include routers
app.include_router(users.router)
app.include_router(auth.router)
app.include_router(health.router)
