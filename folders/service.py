from __future__ import annotations

import logging
import os
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from core.settings import StorageSettings
from folders.errors import InvalidParameters, SettingMissing
from providers.factory import build_object_store
from providers.storage import Body, LifecycleRule, ObjectOutcome, ObjectStore, ObjectSummary, Tag

log = logging.getLogger(__name__)

TOMBSTONE_RULE_ID = "purge_tombstone"

UploadSource = Union[Body, str, os.PathLike]


def join_key(head: str, *parts: str) -> str:
    """Join key segments with exactly one "/" at each boundary."""
    out = head or ""
    for part in parts:
        part = part or ""
        if not out:
            out = part
            continue
        out = out.rstrip("/") + "/" + part.lstrip("/")
    return out


def _parse_bucket_identifier(identifier: Optional[str]) -> Tuple[str, str]:
    raw = (identifier or "").strip()
    if not raw:
        raise InvalidParameters("s3_bucket")

    bucket_name, _, folder = raw.lower().partition("/")
    if not bucket_name:
        raise InvalidParameters("s3_bucket")
    return bucket_name, folder.strip("/")


class StorageFolderClient:
    """
    Path-aware facade over one "folder" of an object storage bucket.

    The bucket identifier is either "bucket" or "bucket/folder/path"; the
    folder part prefixes every key this client writes, removes or lists.
    Removals can keep a copy under a tombstone prefix which a lifecycle rule
    expires after a grace period.

    Configuration is fixed at construction. No retries, caching or locking
    happen here; backend errors reach the caller unchanged, except a missing
    key during `remove`.
    """

    def __init__(
        self,
        bucket_identifier: str,
        tombstone_prefix: str = "",
        options: Optional[Mapping[str, Any]] = None,
        *,
        settings: StorageSettings,
        store: Optional[ObjectStore] = None,
    ):
        self._bucket_name, self._folder_prefix = _parse_bucket_identifier(bucket_identifier)

        self._options: Dict[str, Any] = dict(settings.connection_options())
        self._options.update(options or {})

        tombstone_prefix = tombstone_prefix or ""
        if self._folder_prefix and tombstone_prefix:
            self._tombstone_prefix = join_key(self._folder_prefix, tombstone_prefix)
        elif self._folder_prefix:
            # no tombstone argument keeps tombstones disabled inside a folder too
            self._tombstone_prefix = ""
        else:
            self._tombstone_prefix = tombstone_prefix

        if settings.credentials_required:
            for name in ("access_key_id", "secret_access_key"):
                if not str(self._options.get(name) or "").strip():
                    raise SettingMissing(name)

        self._store = store if store is not None else build_object_store(settings.provider, self._options)

    @classmethod
    def from_settings(cls, settings: StorageSettings, store: Optional[ObjectStore] = None) -> "StorageFolderClient":
        return cls(settings.bucket, settings.tombstone_prefix, settings=settings, store=store)

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    @property
    def folder_prefix(self) -> str:
        return self._folder_prefix

    @property
    def tombstone_prefix(self) -> str:
        return self._tombstone_prefix

    @property
    def options(self) -> Dict[str, Any]:
        return dict(self._options)

    @property
    def store(self) -> ObjectStore:
        return self._store

    def resolve_key(self, path: str) -> str:
        if self._folder_prefix:
            return join_key(self._folder_prefix, path)
        return path

    # -----------------------------------------------------------------
    # Objects
    # -----------------------------------------------------------------

    def upload(self, file: UploadSource, path: str, options: Optional[Mapping[str, Any]] = None) -> str:
        """
        Store `file` under the folder and return the resolved key.

        `file` may be bytes, a binary file object or a filesystem path.
        `options` go to the backend's put call as-is.
        """
        key = self.resolve_key(path)
        self._ensure_bucket()

        extra = dict(options or {})
        if isinstance(file, (str, os.PathLike)):
            with open(file, "rb") as fh:
                self._store.put_object(self._bucket_name, key, fh, extra)
        else:
            self._store.put_object(self._bucket_name, key, file, extra)

        log.debug("uploaded bucket=%s key=%s", self._bucket_name, key)
        return key

    def remove(self, filename: str, copy_to_tombstone: bool = False) -> ObjectOutcome:
        """
        Delete `filename` from the folder, optionally keeping a tombstone copy.

        The copy is issued and finished before the delete. A key that is
        already gone yields ObjectOutcome.ABSENT instead of an error.
        """
        self._ensure_bucket()
        key = self.resolve_key(filename)

        if copy_to_tombstone and self._tombstone_prefix:
            tombstone_key = join_key(self._tombstone_prefix, filename)
            copied = self._store.copy_object(self._bucket_name, self._bucket_name, key, tombstone_key)
            if copied is ObjectOutcome.ABSENT:
                log.debug("remove: nothing to tombstone, bucket=%s key=%s is absent", self._bucket_name, key)
                return ObjectOutcome.ABSENT
            log.debug("tombstoned bucket=%s key=%s -> %s", self._bucket_name, key, tombstone_key)

        outcome = self._store.delete_object(self._bucket_name, key)
        if outcome is ObjectOutcome.ABSENT:
            log.debug("remove: bucket=%s key=%s already absent", self._bucket_name, key)
        return outcome

    def list(self) -> Iterator[ObjectSummary]:
        self._ensure_bucket()
        prefix = join_key(self._folder_prefix, "") if self._folder_prefix else ""
        return self._store.list_objects(self._bucket_name, prefix)

    def tag_file(self, key: str, tags: Mapping[Any, Any]) -> None:
        """Replace the whole tag set of `key`. The key is used as given, not resolved."""
        tag_set = [Tag(key=str(k), value=str(v)) for k, v in tags.items()]
        self._store.put_object_tagging(self._bucket_name, key, tag_set)

    # -----------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------

    def update_lifecycle(self, rule_id: str, days: int, prefix: Optional[str] = None) -> List[LifecycleRule]:
        """
        Upsert the expiration rule `rule_id` and write back the whole configuration.

        Read-modify-write with no version check: two concurrent updates race
        and the last write wins, silently dropping the other one's rule.
        """
        rules = [r for r in self._store.get_bucket_lifecycle(self._bucket_name) if r.id != rule_id]
        rules.append(LifecycleRule(id=rule_id, status="Enabled", expiration_days=int(days), prefix=prefix))

        self._store.put_bucket_lifecycle(self._bucket_name, rules)
        log.info(
            "lifecycle rule updated bucket=%s id=%s days=%s prefix=%s total_rules=%s",
            self._bucket_name, rule_id, days, prefix, len(rules),
        )
        return rules

    def update_tombstone_lifecycle(self, grace_period: int) -> Optional[List[LifecycleRule]]:
        if not self._tombstone_prefix:
            return None
        return self.update_lifecycle(TOMBSTONE_RULE_ID, grace_period, prefix=self._tombstone_prefix)

    # -----------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------

    def _ensure_bucket(self) -> None:
        # check-then-create is not atomic; a concurrent creator is reported as a benign False
        if not self._store.bucket_exists(self._bucket_name):
            created = self._store.create_bucket(self._bucket_name)
            log.info("bucket=%s created=%s", self._bucket_name, created)

    def __repr__(self) -> str:
        return (
            f"StorageFolderClient(bucket={self._bucket_name}, folder={self._folder_prefix or '-'}, "
            f"tombstone={self._tombstone_prefix or '-'})"
        )
