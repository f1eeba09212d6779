from __future__ import annotations

from typing import Any, Dict

from .storage import ObjectStore


class UnknownProviderError(RuntimeError):
    pass


def build_object_store(provider: str, options: Dict[str, Any]) -> ObjectStore:
    """
    Build the ObjectStore for `provider` from merged connection options.

    Backend SDKs are imported on demand so a local deployment does not need
    boto3 or minio configured.
    """
    name = (provider or "local").strip().lower()

    if name == "s3":
        from providers.impl.storage_s3 import S3ObjectStore

        return S3ObjectStore.from_options(options)

    if name == "minio":
        from providers.impl.storage_minio import MinioObjectStore

        return MinioObjectStore.from_options(options)

    if name == "local":
        from providers.impl.storage_local_files import LocalFilesObjectStore

        return LocalFilesObjectStore.from_options(options)

    raise UnknownProviderError(f"Unknown storage provider: {provider!r}")
