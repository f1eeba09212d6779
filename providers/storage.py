from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Protocol, Union, runtime_checkable


Body = Union[bytes, BinaryIO]


class ObjectOutcome(str, enum.Enum):
    """
    Result of an object operation that tolerates a missing key.

    ABSENT is the "already gone" variant: callers decide whether to suppress it.
    """
    DONE = "done"
    ABSENT = "absent"


@dataclass(frozen=True)
class ObjectSummary:
    key: str
    size: int = 0
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None


@dataclass(frozen=True)
class Tag:
    key: str
    value: str


@dataclass(frozen=True)
class LifecycleRule:
    """
    One expiration rule of a bucket lifecycle configuration.

    `raw` carries the backend's own representation for rules read back from
    the bucket, so rules we did not author are written back untouched.
    """
    id: str
    expiration_days: Optional[int] = None
    prefix: Optional[str] = None
    status: str = "Enabled"
    raw: Any = field(default=None, compare=False, repr=False)


@runtime_checkable
class ObjectStore(Protocol):
    """
    Object storage capabilities the folder client relies on.

    Transport, auth, retries and timeouts belong to the implementation.
    """

    def put_object(self, bucket: str, key: str, body: Body, options: Optional[Dict[str, Any]] = None) -> None: ...

    def delete_object(self, bucket: str, key: str) -> ObjectOutcome: ...

    def copy_object(self, bucket: str, source_bucket: str, source_key: str, dest_key: str) -> ObjectOutcome: ...

    def bucket_exists(self, bucket: str) -> bool: ...

    def create_bucket(self, bucket: str) -> bool: ...

    def get_bucket_lifecycle(self, bucket: str) -> List[LifecycleRule]: ...

    def put_bucket_lifecycle(self, bucket: str, rules: List[LifecycleRule]) -> None: ...

    def put_object_tagging(self, bucket: str, key: str, tags: List[Tag]) -> None: ...

    def list_objects(self, bucket: str, prefix: str = "") -> Iterator[ObjectSummary]: ...
