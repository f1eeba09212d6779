import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Mimic the container layout: top-level packages (core, providers, folders)
# import from the repo root.
REPO_ROOT = Path(__file__).resolve().parents[1]

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from core.settings import StorageSettings, get_settings  # noqa: E402
from providers.storage import LifecycleRule, ObjectOutcome, ObjectSummary  # noqa: E402


class FakeObjectStore:
    """In-memory ObjectStore that records every call in order."""

    def __init__(self, buckets=None, objects=None, rules=None):
        self.buckets = set(buckets or [])
        self.objects: Dict[tuple, bytes] = dict(objects or {})
        self.rules: Dict[str, List[LifecycleRule]] = dict(rules or {})
        self.tags: Dict[tuple, list] = {}
        self.calls: List[tuple] = []

    def put_object(self, bucket, key, body, options=None):
        self.calls.append(("put_object", bucket, key, dict(options or {})))
        data = body if isinstance(body, (bytes, bytearray)) else body.read()
        self.objects[(bucket, key)] = bytes(data)

    def delete_object(self, bucket, key):
        self.calls.append(("delete_object", bucket, key))
        if (bucket, key) not in self.objects:
            return ObjectOutcome.ABSENT
        del self.objects[(bucket, key)]
        return ObjectOutcome.DONE

    def copy_object(self, bucket, source_bucket, source_key, dest_key):
        self.calls.append(("copy_object", bucket, source_bucket, source_key, dest_key))
        if (source_bucket, source_key) not in self.objects:
            return ObjectOutcome.ABSENT
        self.objects[(bucket, dest_key)] = self.objects[(source_bucket, source_key)]
        return ObjectOutcome.DONE

    def bucket_exists(self, bucket):
        self.calls.append(("bucket_exists", bucket))
        return bucket in self.buckets

    def create_bucket(self, bucket):
        self.calls.append(("create_bucket", bucket))
        created = bucket not in self.buckets
        self.buckets.add(bucket)
        return created

    def get_bucket_lifecycle(self, bucket):
        self.calls.append(("get_bucket_lifecycle", bucket))
        return list(self.rules.get(bucket, []))

    def put_bucket_lifecycle(self, bucket, rules):
        self.calls.append(("put_bucket_lifecycle", bucket))
        self.rules[bucket] = list(rules)

    def put_object_tagging(self, bucket, key, tags):
        self.calls.append(("put_object_tagging", bucket, key))
        self.tags[(bucket, key)] = list(tags)

    def list_objects(self, bucket, prefix=""):
        self.calls.append(("list_objects", bucket, prefix))
        for (b, key), data in sorted(self.objects.items()):
            if b == bucket and key.startswith(prefix):
                yield ObjectSummary(key=key, size=len(data))

    def call_names(self) -> List[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore(buckets={"files"})


@pytest.fixture
def empty_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def settings() -> StorageSettings:
    return StorageSettings(
        provider="s3",
        bucket="files",
        region="us-west-2",
        access_key_id="AKIAEXAMPLE",
        secret_access_key="secret",
    )


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
