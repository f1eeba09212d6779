from __future__ import annotations

import json
import os
import shutil
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

from providers.storage import Body, LifecycleRule, ObjectOutcome, ObjectStore, ObjectSummary, Tag

_META_DIR = ".meta"


class LocalFilesObjectStore(ObjectStore):
    """
    Filesystem ObjectStore for local development.

    Layout under `root`:
      <bucket>/<key>                      object bytes
      .meta/<bucket>/lifecycle.json       lifecycle rules (recorded, never enforced)
      .meta/<bucket>/tags.json            {key: {tag: value}}
    """

    def __init__(self, root: str = "./data"):
        self.root = os.path.abspath(root)

    @classmethod
    def from_options(cls, options: Dict[str, Any]) -> "LocalFilesObjectStore":
        return cls(root=options.get("local_dir") or "./data")

    def _bucket_dir(self, bucket: str) -> str:
        return os.path.join(self.root, bucket)

    def _path(self, bucket: str, key: str) -> str:
        safe = key.replace("..", "").lstrip("/").replace("/", os.sep)
        return os.path.join(self._bucket_dir(bucket), safe)

    def _meta_path(self, bucket: str, name: str) -> str:
        return os.path.join(self.root, _META_DIR, bucket, name)

    def _read_meta(self, bucket: str, name: str, default: Any) -> Any:
        path = self._meta_path(bucket, name)
        if not os.path.exists(path):
            return default
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write_meta(self, bucket: str, name: str, data: Any) -> None:
        path = self._meta_path(bucket, name)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def put_object(self, bucket: str, key: str, body: Body, options: Optional[Dict[str, Any]] = None) -> None:
        path = self._path(bucket, key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            if isinstance(body, (bytes, bytearray)):
                f.write(body)
            else:
                shutil.copyfileobj(body, f)

    def delete_object(self, bucket: str, key: str) -> ObjectOutcome:
        path = self._path(bucket, key)
        if not os.path.isfile(path):
            return ObjectOutcome.ABSENT
        os.remove(path)
        return ObjectOutcome.DONE

    def copy_object(self, bucket: str, source_bucket: str, source_key: str, dest_key: str) -> ObjectOutcome:
        src = self._path(source_bucket, source_key)
        if not os.path.isfile(src):
            return ObjectOutcome.ABSENT
        dest = self._path(bucket, dest_key)
        os.makedirs(os.path.dirname(dest), exist_ok=True)
        shutil.copyfile(src, dest)
        return ObjectOutcome.DONE

    def bucket_exists(self, bucket: str) -> bool:
        return os.path.isdir(self._bucket_dir(bucket))

    def create_bucket(self, bucket: str) -> bool:
        path = self._bucket_dir(bucket)
        if os.path.isdir(path):
            return False
        os.makedirs(path, exist_ok=True)
        return True

    def get_bucket_lifecycle(self, bucket: str) -> List[LifecycleRule]:
        rules = self._read_meta(bucket, "lifecycle.json", [])
        return [
            LifecycleRule(
                id=r["id"],
                status=r.get("status", "Enabled"),
                expiration_days=r.get("expiration_days"),
                prefix=r.get("prefix"),
            )
            for r in rules
        ]

    def put_bucket_lifecycle(self, bucket: str, rules: List[LifecycleRule]) -> None:
        data = []
        for r in rules:
            item: Dict[str, Any] = {"id": r.id, "status": r.status, "expiration_days": r.expiration_days}
            if r.prefix is not None:
                item["prefix"] = r.prefix
            data.append(item)
        self._write_meta(bucket, "lifecycle.json", data)

    def put_object_tagging(self, bucket: str, key: str, tags: List[Tag]) -> None:
        if not os.path.isfile(self._path(bucket, key)):
            raise FileNotFoundError(key)
        all_tags = self._read_meta(bucket, "tags.json", {})
        all_tags[key] = {t.key: t.value for t in tags}
        self._write_meta(bucket, "tags.json", all_tags)

    def get_object_tagging(self, bucket: str, key: str) -> Dict[str, str]:
        return self._read_meta(bucket, "tags.json", {}).get(key, {})

    def list_objects(self, bucket: str, prefix: str = "") -> Iterator[ObjectSummary]:
        base = self._bucket_dir(bucket)
        for dirpath, _dirnames, filenames in sorted(os.walk(base)):
            for name in sorted(filenames):
                path = os.path.join(dirpath, name)
                key = os.path.relpath(path, base).replace(os.sep, "/")
                if prefix and not key.startswith(prefix):
                    continue
                st = os.stat(path)
                yield ObjectSummary(
                    key=key,
                    size=st.st_size,
                    last_modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
                )
