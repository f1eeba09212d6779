from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else str(v)


def _env_int(name: str, default: int) -> int:
    raw = _env(name, "")
    if not raw.strip():
        return default
    try:
        return int(raw)
    except Exception:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


# ---------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class StorageSettings:
    """
    Object storage configuration.

    provider:
      - "local"  -> LocalFilesObjectStore
      - "s3"     -> S3ObjectStore (boto3)
      - "minio"  -> MinioObjectStore (S3-compatible endpoint)

    bucket is the compound identifier "bucket" or "bucket/folder/path".
    """
    provider: str = "local"
    bucket: str = ""
    tombstone_prefix: str = ""
    tombstone_grace_period_days: int = 0

    region: str = "us-east-1"
    use_iam_profile: bool = False
    access_key_id: str = ""
    secret_access_key: str = ""
    endpoint_url: str = ""

    # Local
    local_dir: str = "./data"

    @property
    def credentials_required(self) -> bool:
        # local files need no keys; remote backends need them unless an IAM profile is used
        return not self.use_iam_profile and self.provider != "local"

    def connection_options(self) -> Dict[str, Any]:
        """Default connection options; credentials only when not using an IAM profile."""
        opts: Dict[str, Any] = {"region": self.region}
        if not self.use_iam_profile:
            opts["access_key_id"] = self.access_key_id
            opts["secret_access_key"] = self.secret_access_key
        if self.endpoint_url:
            opts["endpoint_url"] = self.endpoint_url
        if self.provider == "local":
            opts["local_dir"] = self.local_dir
        return opts


@dataclass(frozen=True)
class Settings:
    storage: StorageSettings


# ---------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------

def _normalize_storage_provider(raw: str) -> str:
    v = (raw or "").strip().lower()
    if v in ("s3", "aws", "aws_s3"):
        return "s3"
    if v in ("minio", "object_store", "objectstore"):
        return "minio"
    if v in ("local", "file", "files", "filesystem"):
        return "local"
    return "local"


def _load_storage_settings() -> StorageSettings:
    """
    Storage precedence (DO NOT break this):
      1) STORAGE_MODE (deployment/runtime truth)  <-- must win
      2) STORAGE_PROVIDER (legacy override)
      3) default local
    """
    raw_mode = (_env("STORAGE_MODE", "") or "").strip()
    raw_provider = (_env("STORAGE_PROVIDER", "") or "").strip()
    provider = _normalize_storage_provider(raw_mode or raw_provider or "local")

    bucket = (_env("S3_BUCKET", "") or "").strip()
    tombstone_prefix = (_env("S3_TOMBSTONE_PREFIX", "") or "").strip()
    grace = max(0, _env_int("S3_TOMBSTONE_GRACE_PERIOD_DAYS", 0))

    region = (_env("S3_REGION", "") or _env("AWS_REGION", "") or _env("AWS_DEFAULT_REGION", "") or "us-east-1").strip()
    use_iam_profile = _env_bool("S3_USE_IAM_PROFILE", False)
    access_key_id = (_env("S3_ACCESS_KEY_ID", "") or _env("AWS_ACCESS_KEY_ID", "") or "").strip()
    secret_access_key = (_env("S3_SECRET_ACCESS_KEY", "") or _env("AWS_SECRET_ACCESS_KEY", "") or "").strip()
    endpoint_url = (_env("S3_ENDPOINT_URL", "") or "").strip().rstrip("/")

    local_dir = (_env("STORAGE_LOCAL_DIR", "") or _env("LOCAL_STORAGE_DIR", "") or "./data").strip()

    return StorageSettings(
        provider=provider,
        bucket=bucket,
        tombstone_prefix=tombstone_prefix,
        tombstone_grace_period_days=grace,
        region=region,
        use_iam_profile=use_iam_profile,
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        endpoint_url=endpoint_url,
        local_dir=local_dir,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(storage=_load_storage_settings())
