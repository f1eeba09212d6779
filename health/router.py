# health/router.py
from fastapi import APIRouter

from core.deps import FolderDep

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    # Keep this super simple and always unauthenticated
    return {"ok": True}


@router.get("/health/storage")
def health_storage(folder: FolderDep):
    """
    Verifies:
      - the storage backend is reachable
      - the configured bucket exists (it is created on first write otherwise)
    """
    try:
        exists = folder.store.bucket_exists(folder.bucket_name)
    except Exception as e:
        return {
            "ok": False,
            "storageReachable": False,
            "bucketExists": False,
            "bucket": folder.bucket_name,
            "error": str(e),
        }

    return {
        "ok": True,
        "storageReachable": True,
        "bucketExists": bool(exists),
        "bucket": folder.bucket_name,
        "folder": folder.folder_prefix or None,
        "tombstonePrefix": folder.tombstone_prefix or None,
    }
