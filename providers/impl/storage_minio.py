from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from minio import Minio
from minio.commonconfig import ENABLED, CopySource, Filter, Tags
from minio.error import S3Error
from minio.lifecycleconfig import Expiration, LifecycleConfig, Rule

from providers.storage import Body, LifecycleRule, ObjectOutcome, ObjectStore, ObjectSummary, Tag

_MISSING_KEY_CODES = ("NoSuchKey", "NoSuchObject")

# MinIO streams unknown-length bodies in parts of this size.
_PART_SIZE = 10 * 1024 * 1024


def _strip_http(endpoint: str) -> str:
    # Minio client expects "host:port" (no scheme)
    endpoint = (endpoint or "").strip()
    endpoint = endpoint.replace("http://", "").replace("https://", "")
    endpoint = endpoint.rstrip("/")
    return endpoint


def _rule_from_minio(rule: Rule) -> LifecycleRule:
    rule_filter = getattr(rule, "rule_filter", None)
    expiration = getattr(rule, "expiration", None)
    return LifecycleRule(
        id=rule.rule_id or "",
        status=rule.status,
        expiration_days=getattr(expiration, "days", None),
        prefix=getattr(rule_filter, "prefix", None),
        raw=rule,
    )


def _rule_to_minio(rule: LifecycleRule) -> Rule:
    if isinstance(rule.raw, Rule):
        return rule.raw
    expiration = Expiration(days=int(rule.expiration_days)) if rule.expiration_days is not None else None
    return Rule(
        status=rule.status or ENABLED,
        rule_filter=Filter(prefix=rule.prefix or ""),
        rule_id=rule.id,
        expiration=expiration,
    )


@dataclass
class MinioObjectStore(ObjectStore):
    """
    MinIO / S3-compatible ObjectStore.

    `put_object` options are handed to `Minio.put_object` as keyword
    arguments (content_type, metadata, ...).
    """

    endpoint: str
    access_key: str
    secret_key: str
    region: Optional[str] = None
    secure: bool = False

    def __post_init__(self) -> None:
        host = _strip_http(self.endpoint)
        if not host:
            raise RuntimeError("S3_ENDPOINT_URL is empty or invalid for the minio provider")

        self._client = Minio(
            host,
            access_key=self.access_key,
            secret_key=self.secret_key,
            region=self.region or None,
            secure=bool(self.secure),
        )

    @classmethod
    def from_options(cls, options: Dict[str, Any]) -> "MinioObjectStore":
        endpoint = (options.get("endpoint_url") or "http://minio:9000").strip()
        return cls(
            endpoint=endpoint,
            access_key=options.get("access_key_id") or "",
            secret_key=options.get("secret_access_key") or "",
            region=options.get("region") or None,
            # Derive secure from scheme
            secure=endpoint.lower().startswith("https://"),
        )

    def put_object(self, bucket: str, key: str, body: Body, options: Optional[Dict[str, Any]] = None) -> None:
        if isinstance(body, (bytes, bytearray)):
            stream, length, part_size = io.BytesIO(body), len(body), 0
        else:
            stream, length, part_size = body, -1, _PART_SIZE

        self._client.put_object(
            bucket_name=bucket,
            object_name=key,
            data=stream,
            length=length,
            part_size=part_size,
            **(options or {}),
        )

    def delete_object(self, bucket: str, key: str) -> ObjectOutcome:
        try:
            self._client.remove_object(bucket_name=bucket, object_name=key)
        except S3Error as e:
            if getattr(e, "code", "") in _MISSING_KEY_CODES:
                return ObjectOutcome.ABSENT
            raise
        return ObjectOutcome.DONE

    def copy_object(self, bucket: str, source_bucket: str, source_key: str, dest_key: str) -> ObjectOutcome:
        try:
            self._client.copy_object(
                bucket_name=bucket,
                object_name=dest_key,
                source=CopySource(source_bucket, source_key),
            )
        except S3Error as e:
            if getattr(e, "code", "") in _MISSING_KEY_CODES:
                return ObjectOutcome.ABSENT
            raise
        return ObjectOutcome.DONE

    def bucket_exists(self, bucket: str) -> bool:
        return self._client.bucket_exists(bucket_name=bucket)

    def create_bucket(self, bucket: str) -> bool:
        try:
            self._client.make_bucket(bucket_name=bucket)
        except S3Error as e:
            if getattr(e, "code", "") == "BucketAlreadyOwnedByYou":
                return False
            raise
        return True

    def get_bucket_lifecycle(self, bucket: str) -> List[LifecycleRule]:
        try:
            config = self._client.get_bucket_lifecycle(bucket_name=bucket)
        except S3Error as e:
            if getattr(e, "code", "") == "NoSuchLifecycleConfiguration":
                return []
            raise
        if config is None:
            return []
        return [_rule_from_minio(r) for r in config.rules]

    def put_bucket_lifecycle(self, bucket: str, rules: List[LifecycleRule]) -> None:
        config = LifecycleConfig([_rule_to_minio(r) for r in rules])
        self._client.set_bucket_lifecycle(bucket_name=bucket, config=config)

    def put_object_tagging(self, bucket: str, key: str, tags: List[Tag]) -> None:
        tag_set = Tags.new_object_tags()
        for t in tags:
            tag_set[t.key] = t.value
        self._client.set_object_tags(bucket_name=bucket, object_name=key, tags=tag_set)

    def list_objects(self, bucket: str, prefix: str = "") -> Iterator[ObjectSummary]:
        for obj in self._client.list_objects(bucket_name=bucket, prefix=prefix or None, recursive=True):
            yield ObjectSummary(
                key=obj.object_name,
                size=obj.size or 0,
                last_modified=obj.last_modified,
                etag=obj.etag,
            )
