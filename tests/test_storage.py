"""Tests for the S3Storage wrapper over a mocked boto3 client."""

from __future__ import annotations

import io
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from gallery.config import Settings
from gallery.errors import StorageError, StorageErrorKind
from gallery.storage import PRESIGNED_URL_EXPIRES, S3Storage, build_s3_client


def client_error(code: str, http_status: int = 400, op: str = "HeadBucket") -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": f"{code} happened"}, "ResponseMetadata": {"HTTPStatusCode": http_status}},
        op,
    )


@pytest.fixture
def s3():
    return MagicMock()


@pytest.fixture
def storage(s3):
    return S3Storage(s3, bucket="gallery-bucket", region="eu-west-1")


class TestErrorClassification:
    def test_404_is_not_found(self):
        err = StorageError.from_client_error(client_error("404", 404))
        assert err.kind is StorageErrorKind.NOT_FOUND
        assert err.code == "404"

    def test_no_such_bucket_is_not_found(self):
        assert StorageError.from_client_error(client_error("NoSuchBucket")).kind is StorageErrorKind.NOT_FOUND

    def test_forbidden_is_other(self):
        err = StorageError.from_client_error(client_error("403", 403))
        assert err.kind is StorageErrorKind.OTHER
        assert str(err) == "403 happened"


class TestEnsureBucket:
    def test_existing_bucket_is_left_alone(self, storage, s3):
        assert storage.ensure_bucket() is False
        s3.head_bucket.assert_called_once_with(Bucket="gallery-bucket")
        s3.create_bucket.assert_not_called()

    def test_missing_bucket_is_created_in_region(self, storage, s3):
        s3.head_bucket.side_effect = client_error("404", 404)
        assert storage.ensure_bucket() is True
        s3.create_bucket.assert_called_once_with(
            Bucket="gallery-bucket",
            CreateBucketConfiguration={"LocationConstraint": "eu-west-1"},
        )

    def test_us_east_1_has_no_location_constraint(self, s3):
        s3.head_bucket.side_effect = client_error("NotFound", 404)
        S3Storage(s3, bucket="b", region="us-east-1").ensure_bucket()
        s3.create_bucket.assert_called_once_with(Bucket="b")

    def test_other_head_errors_propagate(self, storage, s3):
        s3.head_bucket.side_effect = client_error("403", 403)
        with pytest.raises(StorageError) as exc:
            storage.ensure_bucket()
        assert exc.value.kind is StorageErrorKind.OTHER
        s3.create_bucket.assert_not_called()


class TestObjects:
    def test_put_object_streams_with_content_type(self, storage, s3):
        buf = io.BytesIO(b"jpeg-bytes")
        url = storage.put_object(buf, "uploads/1-a b.jpg", "image/jpeg")
        s3.upload_fileobj.assert_called_once_with(
            buf, "gallery-bucket", "uploads/1-a b.jpg", ExtraArgs={"ContentType": "image/jpeg"}
        )
        assert url == "https://gallery-bucket.s3.eu-west-1.amazonaws.com/uploads/1-a%20b.jpg"

    def test_put_object_failure_is_storage_error(self, storage, s3):
        s3.upload_fileobj.side_effect = client_error("SlowDown", 503, "PutObject")
        with pytest.raises(StorageError) as exc:
            storage.put_object(io.BytesIO(b"x"), "uploads/1-a.jpg", "image/jpeg")
        assert exc.value.code == "SlowDown"

    def test_object_url_with_custom_endpoint(self, s3):
        storage = S3Storage(s3, bucket="b", region="us-east-1", endpoint_url="http://localhost:9000/")
        assert storage.object_url("uploads/1-x.png") == "http://localhost:9000/b/uploads/1-x.png"

    def test_presigned_url_expires_in_one_hour(self, storage, s3):
        s3.generate_presigned_url.return_value = "https://signed"
        assert storage.presigned_url("uploads/1-a.jpg") == "https://signed"
        s3.generate_presigned_url.assert_called_once_with(
            "get_object",
            Params={"Bucket": "gallery-bucket", "Key": "uploads/1-a.jpg"},
            ExpiresIn=3600,
        )
        assert PRESIGNED_URL_EXPIRES == 3600

    def test_delete_object(self, storage, s3):
        storage.delete_object("uploads/1-a.jpg")
        s3.delete_object.assert_called_once_with(Bucket="gallery-bucket", Key="uploads/1-a.jpg")


class TestListKeys:
    def test_first_page_with_more(self, storage, s3):
        s3.list_objects_v2.return_value = {
            "Contents": [{"Key": "uploads/1-a.jpg"}, {"Key": "uploads/2-b.jpg"}],
            "IsTruncated": True,
            "NextContinuationToken": "tok-2",
        }
        keys, token = storage.list_keys(2)
        assert keys == ["uploads/1-a.jpg", "uploads/2-b.jpg"]
        assert token == "tok-2"
        s3.list_objects_v2.assert_called_once_with(Bucket="gallery-bucket", Prefix="uploads/", MaxKeys=2)

    def test_continuation_and_last_page(self, storage, s3):
        s3.list_objects_v2.return_value = {"Contents": [{"Key": "uploads/3-c.jpg"}], "IsTruncated": False}
        keys, token = storage.list_keys(2, token="tok-2")
        assert keys == ["uploads/3-c.jpg"]
        assert token is None
        s3.list_objects_v2.assert_called_once_with(
            Bucket="gallery-bucket", Prefix="uploads/", MaxKeys=2, ContinuationToken="tok-2"
        )

    def test_empty_listing(self, storage, s3):
        s3.list_objects_v2.return_value = {"KeyCount": 0, "IsTruncated": False}
        assert storage.list_keys(3) == ([], None)


class TestClientConstruction:
    def test_static_key_pair_is_passed(self):
        settings = Settings(
            _env_file=None, AWS_REGION="eu-west-1", S3_BUCKET="b",
            AWS_ACCESS_KEY_ID="AKIA", AWS_SECRET_ACCESS_KEY="secret",
        )
        with patch("gallery.storage.boto3.client") as factory:
            build_s3_client(settings)
        kwargs = factory.call_args.kwargs
        assert factory.call_args.args == ("s3",)
        assert kwargs["aws_access_key_id"] == "AKIA"
        assert kwargs["aws_secret_access_key"] == "secret"
        assert kwargs["region_name"] == "eu-west-1"

    def test_ambient_credentials_without_key_pair(self):
        settings = Settings(
            _env_file=None, AWS_REGION="eu-west-1", S3_BUCKET="b",
            AWS_ACCESS_KEY_ID="AKIA", AWS_SECRET_ACCESS_KEY=None,
        )
        with patch("gallery.storage.boto3.client") as factory:
            build_s3_client(settings)
        assert "aws_access_key_id" not in factory.call_args.kwargs
