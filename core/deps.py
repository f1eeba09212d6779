from __future__ import annotations

from typing import Annotated, Any

from fastapi import Depends, Request

from core.providers import providers_from_request
from folders.service import StorageFolderClient


# -----------------------------
# Canonical provider access
# -----------------------------

def get_providers(request: Request) -> Any:
    """
    Canonical runtime provider resolver.

    Source of truth: request.app.state.providers
    """
    return providers_from_request(request)


ProvidersDep = Annotated[Any, Depends(get_providers)]


# -----------------------------
# Canonical service deps
# -----------------------------

def get_folder(request: Request) -> StorageFolderClient:
    """
    Canonical StorageFolderClient dependency.
    """
    return get_providers(request).folder


FolderDep = Annotated[StorageFolderClient, Depends(get_folder)]
