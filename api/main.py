"""PatchGate API - FastAPI application over the patch pipeline."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import history, patches
from patchgate.core.config import get_settings
from patchgate.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting PatchGate API (workdir=%s)", get_settings().workdir.resolve())
    yield
    logger.info("🛑 Shutting down PatchGate API")

_settings = get_settings()

app = FastAPI(
    title=_settings.api_title,
    description="Policy enforcement, snapshots and rollback for AI agent file edits",
    version=_settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(patches.router, prefix="/api/v1", tags=["Patches"])
app.include_router(history.router, prefix="/api/v1", tags=["History"])

@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    return JSONResponse(status_code=500, content={"detail": str(exc)})

@app.get("/")
async def root():
    return {"name": _settings.api_title, "version": _settings.api_version, "docs": "/docs"}

@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": _settings.api_version}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.main:app", host=_settings.api_host, port=_settings.api_port, reload=_settings.is_development)
