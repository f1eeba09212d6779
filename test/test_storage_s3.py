from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError
from botocore.stub import Stubber

from providers.impl.storage_s3 import S3ObjectStore
from providers.storage import LifecycleRule, ObjectOutcome, Tag


@pytest.fixture
def s3_store():
    store = S3ObjectStore(region="us-west-2", access_key_id="testing", secret_access_key="testing")
    with Stubber(store.s3) as stubber:
        yield store, stubber
        stubber.assert_no_pending_responses()


def test_put_object_passes_options_through():
    client = MagicMock()
    store = S3ObjectStore(region="us-west-2", client=client)

    store.put_object("files", "uploads/a.png", b"img", {"ContentType": "image/png", "ACL": "private"})

    client.put_object.assert_called_once_with(
        Bucket="files", Key="uploads/a.png", Body=b"img", ContentType="image/png", ACL="private"
    )


def test_options_cannot_redirect_the_key():
    client = MagicMock()
    store = S3ObjectStore(client=client)

    store.put_object("files", "a.png", b"img", {"Key": "elsewhere.png"})

    assert client.put_object.call_args.kwargs["Key"] == "a.png"


def test_delete_object(s3_store):
    store, stubber = s3_store
    stubber.add_response("delete_object", {}, {"Bucket": "files", "Key": "a.png"})

    assert store.delete_object("files", "a.png") is ObjectOutcome.DONE


def test_delete_missing_key_is_absent(s3_store):
    store, stubber = s3_store
    stubber.add_client_error("delete_object", service_error_code="NoSuchKey", http_status_code=404)

    assert store.delete_object("files", "gone.png") is ObjectOutcome.ABSENT


def test_delete_access_denied_propagates(s3_store):
    store, stubber = s3_store
    stubber.add_client_error("delete_object", service_error_code="AccessDenied", http_status_code=403)

    with pytest.raises(ClientError):
        store.delete_object("files", "a.png")


def test_copy_missing_source_is_absent(s3_store):
    store, stubber = s3_store
    stubber.add_client_error("copy_object", service_error_code="NoSuchKey", http_status_code=404)

    assert store.copy_object("files", "files", "gone.png", "tombstone/gone.png") is ObjectOutcome.ABSENT


def test_bucket_exists(s3_store):
    store, stubber = s3_store
    stubber.add_response("head_bucket", {}, {"Bucket": "files"})
    stubber.add_client_error("head_bucket", service_error_code="404", http_status_code=404)

    assert store.bucket_exists("files") is True
    assert store.bucket_exists("missing") is False


def test_create_bucket_sends_location_constraint(s3_store):
    store, stubber = s3_store
    stubber.add_response(
        "create_bucket",
        {},
        {"Bucket": "files", "CreateBucketConfiguration": {"LocationConstraint": "us-west-2"}},
    )

    assert store.create_bucket("files") is True


def test_create_bucket_already_owned_is_benign(s3_store):
    store, stubber = s3_store
    stubber.add_client_error("create_bucket", service_error_code="BucketAlreadyOwnedByYou", http_status_code=409)

    assert store.create_bucket("files") is False


def test_create_bucket_taken_by_someone_else_propagates(s3_store):
    store, stubber = s3_store
    stubber.add_client_error("create_bucket", service_error_code="BucketAlreadyExists", http_status_code=409)

    with pytest.raises(ClientError):
        store.create_bucket("files")


def test_missing_lifecycle_configuration_is_empty(s3_store):
    store, stubber = s3_store
    stubber.add_client_error(
        "get_bucket_lifecycle_configuration",
        service_error_code="NoSuchLifecycleConfiguration",
        http_status_code=404,
    )

    assert store.get_bucket_lifecycle("files") == []


def test_lifecycle_rules_round_trip_untouched(s3_store):
    store, stubber = s3_store
    foreign = {
        "ID": "archive",
        "Status": "Enabled",
        "Filter": {"Prefix": "logs/"},
        "Transitions": [{"Days": 30, "StorageClass": "GLACIER"}],
    }
    stubber.add_response(
        "get_bucket_lifecycle_configuration",
        {"Rules": [foreign, {"ID": "legacy", "Status": "Enabled", "Prefix": "tmp/", "Expiration": {"Days": 2}}]},
        {"Bucket": "files"},
    )
    stubber.add_response(
        "put_bucket_lifecycle_configuration",
        {},
        {
            "Bucket": "files",
            "LifecycleConfiguration": {
                "Rules": [
                    foreign,
                    {"ID": "purge_tombstone", "Status": "Enabled", "Filter": {"Prefix": "uploads/deleted"}, "Expiration": {"Days": 30}},
                ]
            },
        },
    )

    rules = store.get_bucket_lifecycle("files")
    assert rules[0] == LifecycleRule(id="archive", expiration_days=None, prefix="logs/")
    assert rules[1] == LifecycleRule(id="legacy", expiration_days=2, prefix="tmp/")

    store.put_bucket_lifecycle("files", [rules[0], LifecycleRule(id="purge_tombstone", expiration_days=30, prefix="uploads/deleted")])


def test_rule_without_prefix_covers_whole_bucket(s3_store):
    store, stubber = s3_store
    stubber.add_response(
        "put_bucket_lifecycle_configuration",
        {},
        {
            "Bucket": "files",
            "LifecycleConfiguration": {
                "Rules": [{"ID": "all", "Status": "Enabled", "Filter": {"Prefix": ""}, "Expiration": {"Days": 5}}]
            },
        },
    )

    store.put_bucket_lifecycle("files", [LifecycleRule(id="all", expiration_days=5)])


def test_put_object_tagging_builds_tag_set(s3_store):
    store, stubber = s3_store
    stubber.add_response(
        "put_object_tagging",
        {},
        {
            "Bucket": "files",
            "Key": "uploads/a.png",
            "Tagging": {"TagSet": [{"Key": "secure", "Value": "true"}]},
        },
    )

    store.put_object_tagging("files", "uploads/a.png", [Tag("secure", "true")])


def test_list_objects_follows_pagination(s3_store):
    store, stubber = s3_store
    when = datetime(2024, 1, 1, tzinfo=timezone.utc)
    stubber.add_response(
        "list_objects_v2",
        {
            "IsTruncated": True,
            "NextContinuationToken": "t1",
            "Contents": [{"Key": "uploads/a.png", "Size": 3, "ETag": '"e1"', "LastModified": when}],
        },
        {"Bucket": "files", "Prefix": "uploads/"},
    )
    stubber.add_response(
        "list_objects_v2",
        {
            "IsTruncated": False,
            "Contents": [{"Key": "uploads/b.png", "Size": 5, "ETag": '"e2"', "LastModified": when}],
        },
        {"Bucket": "files", "Prefix": "uploads/", "ContinuationToken": "t1"},
    )

    listed = list(store.list_objects("files", "uploads/"))

    assert [(o.key, o.size, o.etag) for o in listed] == [("uploads/a.png", 3, '"e1"'), ("uploads/b.png", 5, '"e2"')]
    assert listed[0].last_modified == when
