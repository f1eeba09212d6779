from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI

from core.settings import Settings, get_settings
from folders.service import StorageFolderClient

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Providers:
    """Central container attached to app.state.providers."""
    settings: Settings
    folder: StorageFolderClient


def build_providers(settings: Optional[Settings] = None) -> Providers:
    settings = settings or get_settings()
    folder = StorageFolderClient.from_settings(settings.storage)
    log.info(
        "Storage provider=%s bucket=%s folder=%s tombstone=%s",
        settings.storage.provider,
        folder.bucket_name,
        folder.folder_prefix or "-",
        folder.tombstone_prefix or "-",
    )
    return Providers(settings=settings, folder=folder)


def init_providers(app: FastAPI, providers: Optional[Providers] = None) -> Providers:
    """
    Canonical provider initialization.
    Called once during app startup/lifespan. Attaches Providers onto app.state.
    """
    app.state.providers = providers or build_providers()
    return app.state.providers
