# main.py
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.providers_root import init_providers
from core.settings import get_settings
from core.storage_validation import validate_storage_config

# Routers
from folders.router import router as folders_router
from health.router import router as health_router

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    validate_storage_config(settings.storage)

    # InvalidParameters / SettingMissing abort startup here
    providers = init_providers(app)

    grace = settings.storage.tombstone_grace_period_days
    if grace > 0:
        applied = providers.folder.update_tombstone_lifecycle(grace)
        log.info("Tombstone lifecycle grace_period_days=%s applied=%s", grace, applied is not None)

    yield


# ---------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------

app = FastAPI(
    title="Storage Folder Service",
    lifespan=lifespan,
)

origins = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(folders_router)


@app.get("/")
async def root():
    return {"status": "ok", "message": "storage folder service running"}


# ---------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------

if __name__ == "__main__":
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
