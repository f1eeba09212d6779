from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from providers.storage import Body, LifecycleRule, ObjectOutcome, ObjectStore, ObjectSummary, Tag

log = logging.getLogger(__name__)

_MISSING_KEY_CODES = ("NoSuchKey", "404", "NotFound")


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def _rule_from_s3(raw: Dict[str, Any]) -> LifecycleRule:
    prefix = (raw.get("Filter") or {}).get("Prefix")
    if prefix is None:
        prefix = raw.get("Prefix")
    return LifecycleRule(
        id=raw.get("ID", ""),
        status=raw.get("Status", "Enabled"),
        expiration_days=(raw.get("Expiration") or {}).get("Days"),
        prefix=prefix,
        raw=raw,
    )


def _rule_to_s3(rule: LifecycleRule) -> Dict[str, Any]:
    if isinstance(rule.raw, dict):
        return rule.raw
    out: Dict[str, Any] = {
        "ID": rule.id,
        "Status": rule.status,
        "Filter": {"Prefix": rule.prefix or ""},
    }
    if rule.expiration_days is not None:
        out["Expiration"] = {"Days": int(rule.expiration_days)}
    return out


class S3ObjectStore(ObjectStore):
    """
    Native AWS S3 ObjectStore.

    Without explicit keys boto3 falls back to its own credential chain
    (instance profile / IRSA), which is what `use_iam_profile` relies on.

    Retry policy stays with botocore's defaults; nothing here retries.
    """

    def __init__(
        self,
        region: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ):
        self.region = (region or "").strip() or None
        if client is not None:
            self.s3 = client
            return

        kwargs: Dict[str, Any] = {"config": Config(region_name=self.region)}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        if access_key_id and secret_access_key:
            kwargs["aws_access_key_id"] = access_key_id
            kwargs["aws_secret_access_key"] = secret_access_key
        self.s3 = boto3.client("s3", **kwargs)

    @classmethod
    def from_options(cls, options: Dict[str, Any]) -> "S3ObjectStore":
        return cls(
            region=options.get("region"),
            access_key_id=options.get("access_key_id"),
            secret_access_key=options.get("secret_access_key"),
            endpoint_url=options.get("endpoint_url"),
        )

    def put_object(self, bucket: str, key: str, body: Body, options: Optional[Dict[str, Any]] = None) -> None:
        kwargs: Dict[str, Any] = dict(options or {})
        kwargs.update({"Bucket": bucket, "Key": key, "Body": body})
        self.s3.put_object(**kwargs)

    def delete_object(self, bucket: str, key: str) -> ObjectOutcome:
        try:
            self.s3.delete_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _MISSING_KEY_CODES:
                return ObjectOutcome.ABSENT
            raise
        return ObjectOutcome.DONE

    def copy_object(self, bucket: str, source_bucket: str, source_key: str, dest_key: str) -> ObjectOutcome:
        try:
            self.s3.copy_object(
                Bucket=bucket,
                Key=dest_key,
                CopySource={"Bucket": source_bucket, "Key": source_key},
            )
        except ClientError as e:
            if _error_code(e) in _MISSING_KEY_CODES:
                return ObjectOutcome.ABSENT
            raise
        return ObjectOutcome.DONE

    def bucket_exists(self, bucket: str) -> bool:
        try:
            self.s3.head_bucket(Bucket=bucket)
        except ClientError as e:
            if _error_code(e) in ("404", "NoSuchBucket", "NotFound"):
                return False
            raise
        return True

    def create_bucket(self, bucket: str) -> bool:
        kwargs: Dict[str, Any] = {"Bucket": bucket}
        # us-east-1 rejects an explicit LocationConstraint
        if self.region and self.region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            self.s3.create_bucket(**kwargs)
        except ClientError as e:
            if _error_code(e) == "BucketAlreadyOwnedByYou":
                log.info("[S3] bucket=%s already created by a concurrent caller", bucket)
                return False
            raise
        return True

    def get_bucket_lifecycle(self, bucket: str) -> List[LifecycleRule]:
        try:
            resp = self.s3.get_bucket_lifecycle_configuration(Bucket=bucket)
        except ClientError as e:
            if _error_code(e) == "NoSuchLifecycleConfiguration":
                return []
            raise
        return [_rule_from_s3(r) for r in resp.get("Rules", [])]

    def put_bucket_lifecycle(self, bucket: str, rules: List[LifecycleRule]) -> None:
        self.s3.put_bucket_lifecycle_configuration(
            Bucket=bucket,
            LifecycleConfiguration={"Rules": [_rule_to_s3(r) for r in rules]},
        )

    def put_object_tagging(self, bucket: str, key: str, tags: List[Tag]) -> None:
        self.s3.put_object_tagging(
            Bucket=bucket,
            Key=key,
            Tagging={"TagSet": [{"Key": t.key, "Value": t.value} for t in tags]},
        )

    def list_objects(self, bucket: str, prefix: str = "") -> Iterator[ObjectSummary]:
        paginator = self.s3.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix or ""):
            for obj in page.get("Contents", []):
                yield ObjectSummary(
                    key=obj["Key"],
                    size=obj.get("Size", 0),
                    last_modified=obj.get("LastModified"),
                    etag=obj.get("ETag"),
                )
