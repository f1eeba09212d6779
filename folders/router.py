from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, Field

from core.deps import FolderDep, ProvidersDep

router = APIRouter(tags=["files"])


class UploadResponseModel(BaseModel):
    key: str


class ObjectSummaryModel(BaseModel):
    key: str
    size: int = 0
    lastModified: Optional[datetime] = None
    etag: Optional[str] = None


class RemoveResponseModel(BaseModel):
    path: str
    outcome: str


class TagRequestModel(BaseModel):
    key: str
    tags: Dict[str, str] = Field(default_factory=dict)


class LifecycleRequestModel(BaseModel):
    days: int = Field(..., ge=1)
    prefix: Optional[str] = None


class TombstoneLifecycleRequestModel(BaseModel):
    gracePeriodDays: int = Field(..., ge=1)


class LifecycleRuleModel(BaseModel):
    id: str
    status: str
    days: Optional[int] = None
    prefix: Optional[str] = None


class LifecycleResponseModel(BaseModel):
    applied: bool
    rules: List[LifecycleRuleModel] = Field(default_factory=list)


def _rules_response(rules) -> LifecycleResponseModel:
    if rules is None:
        return LifecycleResponseModel(applied=False)
    return LifecycleResponseModel(
        applied=True,
        rules=[
            LifecycleRuleModel(id=r.id, status=r.status, days=r.expiration_days, prefix=r.prefix)
            for r in rules
        ],
    )


def _content_type_options(provider: str, content_type: Optional[str]) -> Dict[str, str]:
    # each backend names the put option its own way
    if not content_type:
        return {}
    if provider == "s3":
        return {"ContentType": content_type}
    if provider == "minio":
        return {"content_type": content_type}
    return {}


# ---------------------------------------------------------------------
# /files
# ---------------------------------------------------------------------

@router.post("/files", response_model=UploadResponseModel)
def upload_file(
    folder: FolderDep,
    providers: ProvidersDep,
    path: str = Form(...),
    file: UploadFile = File(...),
):
    """Upload a file under the configured folder and return its storage key."""
    options = _content_type_options(providers.settings.storage.provider, file.content_type)
    try:
        key = folder.upload(file.file, path, options)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to upload file: {exc}")
    return UploadResponseModel(key=key)


@router.get("/files", response_model=List[ObjectSummaryModel])
def list_files(folder: FolderDep):
    try:
        return [
            ObjectSummaryModel(key=o.key, size=o.size, lastModified=o.last_modified, etag=o.etag)
            for o in folder.list()
        ]
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to list files: {exc}")


@router.put("/files/tags")
def tag_file(payload: TagRequestModel, folder: FolderDep):
    """Replace the tag set of an object. `key` is the full storage key."""
    try:
        folder.tag_file(payload.key, payload.tags)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to tag file: {exc}")
    return {"ok": True, "key": payload.key}


@router.delete("/files/{path:path}", response_model=RemoveResponseModel)
def remove_file(path: str, folder: FolderDep, tombstone: bool = False):
    try:
        outcome = folder.remove(path, copy_to_tombstone=tombstone)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to remove file: {exc}")
    return RemoveResponseModel(path=path, outcome=outcome.value)


# ---------------------------------------------------------------------
# /lifecycle
# ---------------------------------------------------------------------

@router.put("/lifecycle/tombstone", response_model=LifecycleResponseModel)
def update_tombstone_lifecycle(payload: TombstoneLifecycleRequestModel, folder: FolderDep):
    """Apply the tombstone purge rule; a no-op when no tombstone prefix is configured."""
    try:
        rules = folder.update_tombstone_lifecycle(payload.gracePeriodDays)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to update tombstone lifecycle: {exc}")
    return _rules_response(rules)


@router.put("/lifecycle/{rule_id}", response_model=LifecycleResponseModel)
def update_lifecycle(rule_id: str, payload: LifecycleRequestModel, folder: FolderDep):
    try:
        rules = folder.update_lifecycle(rule_id, payload.days, prefix=payload.prefix)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to update lifecycle: {exc}")
    return _rules_response(rules)
