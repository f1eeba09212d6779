from __future__ import annotations

import logging

from core.settings import StorageSettings

log = logging.getLogger(__name__)


class StorageConfigError(RuntimeError):
    pass


def validate_storage_config(s: StorageSettings) -> None:
    """
    Validate storage-related configuration at startup.

    - local: dev only, no hard validation
    - s3 / minio: hard fail without a bucket; warn on settings that will be ignored
    Credential completeness is enforced by StorageFolderClient itself.
    """
    provider = (s.provider or "").lower()

    if provider == "local":
        log.info("Storage provider: local (dir=%s)", s.local_dir)
        return

    if not s.bucket:
        raise StorageConfigError(f"S3_BUCKET is required when STORAGE_MODE={provider}")

    if provider == "minio" and not s.endpoint_url:
        raise StorageConfigError("S3_ENDPOINT_URL is required when STORAGE_MODE=minio")

    if s.use_iam_profile and (s.access_key_id or s.secret_access_key):
        log.warning("S3_USE_IAM_PROFILE is on; configured access keys will be ignored.")

    if s.tombstone_grace_period_days and not s.tombstone_prefix:
        log.warning(
            "S3_TOMBSTONE_GRACE_PERIOD_DAYS=%s has no effect without S3_TOMBSTONE_PREFIX.",
            s.tombstone_grace_period_days,
        )

    log.info("Storage provider: %s (region=%s, iam_profile=%s)", provider, s.region, s.use_iam_profile)
