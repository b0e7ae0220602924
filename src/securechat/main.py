# src/securechat/main.py
"""Main entry point for the SecureChat application."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from securechat.api.v1 import (
    auth_router,
    conversations_router,
    messages_router,
    system_router,
    users_router,
)
from securechat.core.errors import SecureChatError
from securechat.core.settings import settings
from securechat.services.reaper import ExpiryReaper

# Initialize FastAPI app
app = FastAPI(
    title="SecureChat API",
    description="End-to-end encrypted messaging relay",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(conversations_router, prefix="/api/v1")
app.include_router(messages_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.exception_handler(SecureChatError)
async def handle_securechat_error(request: Request, exc: SecureChatError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.on_event("startup")
async def on_startup() -> None:
    if settings.reaper_enabled:
        reaper = ExpiryReaper()
        await reaper.start()
        app.state.expiry_reaper = reaper
    else:
        app.state.expiry_reaper = None


@app.on_event("shutdown")
async def on_shutdown() -> None:
    reaper: ExpiryReaper | None = getattr(app.state, "expiry_reaper", None)
    if reaper:
        await reaper.stop()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "End-to-end encrypted messaging relay",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("securechat.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
