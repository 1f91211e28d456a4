"""Unit tests for S3Manager."""

import pytest
from moto import mock_aws

from aws_infra.core.aws.s3 import S3Manager, join_key, parse_s3_uri
from aws_infra.utils.exceptions import APIError
from tests.conftest import make_client_error

BUCKET = "aws-infra-test-bucket"


@pytest.fixture
def s3(aws_session):
    with mock_aws():
        manager = S3Manager(aws_session)
        manager.create_bucket(BUCKET)
        yield manager


@pytest.fixture
def local_tree(tmp_path):
    root = tmp_path / "site"
    (root / "css").mkdir(parents=True)
    (root / "index.html").write_text("<html></html>")
    (root / "css" / "main.css").write_text("body {}")
    return root


@pytest.mark.parametrize(
    "uri,expected",
    [
        ("s3://bucket", ("bucket", "")),
        ("s3://bucket/", ("bucket", "")),
        ("s3://bucket/a/b.txt", ("bucket", "a/b.txt")),
    ],
)
def test_parse_s3_uri(uri, expected):
    assert parse_s3_uri(uri) == expected


@pytest.mark.parametrize("uri", ["bucket/key", "s3:///key"])
def test_parse_s3_uri_rejects_invalid(uri):
    with pytest.raises(ValueError):
        parse_s3_uri(uri)


def test_join_key():
    assert join_key("", "a/b.txt") == "a/b.txt"
    assert join_key("site/", "index.html") == "site/index.html"
    assert join_key("site", "/index.html") == "site/index.html"


class TestBuckets:
    def test_create_bucket_is_private_and_encrypted(self, s3):
        assert [b.name for b in s3.list_buckets()] == [BUCKET]

        block = s3.client.get_public_access_block(Bucket=BUCKET)
        assert block["PublicAccessBlockConfiguration"]["BlockPublicAcls"] is True
        encryption = s3.client.get_bucket_encryption(Bucket=BUCKET)
        rule = encryption["ServerSideEncryptionConfiguration"]["Rules"][0]
        assert rule["ApplyServerSideEncryptionByDefault"]["SSEAlgorithm"] == "AES256"

    def test_create_existing_bucket_returns_false(self, s3):
        assert s3.create_bucket(BUCKET) is False

    def test_create_bucket_in_us_east_1_omits_location(self, mock_session, mock_client):
        S3Manager(mock_session, region="us-east-1").create_bucket(BUCKET)
        mock_client.create_bucket.assert_called_once_with(Bucket=BUCKET)

    def test_delete_bucket_force_empties_it(self, s3):
        s3.put_object(BUCKET, "a.txt", "a")
        s3.put_object(BUCKET, "b/c.txt", b"c")

        assert s3.delete_bucket(BUCKET, force=True) is True
        assert s3.list_buckets() == []

    def test_delete_non_empty_bucket_without_force_fails(self, s3):
        s3.put_object(BUCKET, "a.txt", "a")
        with pytest.raises(APIError):
            s3.delete_bucket(BUCKET)

    def test_delete_missing_bucket_returns_false(self, s3):
        assert s3.delete_bucket("no-such-bucket-here") is False


class TestObjects:
    def test_put_get_list(self, s3):
        s3.put_object(BUCKET, "logs/one.txt", "hello")
        s3.put_object(BUCKET, "other.txt", "x")

        assert s3.get_object(BUCKET, "logs/one.txt") == b"hello"
        objects = s3.list_objects(BUCKET, "logs/")
        assert [(o.key, o.size) for o in objects] == [("logs/one.txt", 5)]

    def test_get_missing_object(self, s3):
        with pytest.raises(APIError):
            s3.get_object(BUCKET, "missing.txt")

    def test_upload_and_download_file(self, s3, tmp_path):
        source = tmp_path / "report.csv"
        source.write_text("a,b\n1,2\n")

        assert s3.upload_file(source, BUCKET, "reports/report.csv") == source.stat().st_size

        target = tmp_path / "out" / "report.csv"
        s3.download_file(BUCKET, "reports/report.csv", target)
        assert target.read_text() == "a,b\n1,2\n"

    def test_delete_objects(self, s3):
        for key in ("a", "b", "c"):
            s3.put_object(BUCKET, key, key)

        assert s3.delete_objects(BUCKET, ["a", "b"]) == 2
        assert [o.key for o in s3.list_objects(BUCKET)] == ["c"]

    def test_delete_objects_batches_requests(self, mock_session, mock_client):
        mock_client.delete_objects.return_value = {}
        keys = [f"k{i}" for i in range(2500)]

        assert S3Manager(mock_session).delete_objects(BUCKET, keys) == 2500
        sizes = [len(c.kwargs["Delete"]["Objects"]) for c in mock_client.delete_objects.call_args_list]
        assert sizes == [1000, 1000, 500]

    def test_delete_objects_reports_errors(self, mock_session, mock_client):
        mock_client.delete_objects.return_value = {
            "Errors": [{"Key": "a", "Code": "AccessDenied"}]
        }
        with pytest.raises(APIError, match="AccessDenied"):
            S3Manager(mock_session).delete_objects(BUCKET, ["a"])

    def test_list_objects_wraps_errors(self, mock_session, mock_client):
        mock_client.get_paginator.return_value.paginate.side_effect = make_client_error(
            "AccessDenied", status=403
        )
        with pytest.raises(APIError):
            S3Manager(mock_session).list_objects(BUCKET)


class TestSync:
    def test_sync_uploads_then_skips_unchanged(self, s3, local_tree):
        first = s3.sync(local_tree, BUCKET, "site")
        assert sorted(first.uploaded) == ["site/css/main.css", "site/index.html"]
        assert first.bytes_uploaded == len("<html></html>") + len("body {}")

        second = s3.sync(local_tree, BUCKET, "site")
        assert second.uploaded == []
        assert sorted(second.skipped) == ["site/css/main.css", "site/index.html"]

    def test_sync_reuploads_resized_files(self, s3, local_tree):
        s3.sync(local_tree, BUCKET, "site")
        (local_tree / "index.html").write_text("<html><body></body></html>")

        result = s3.sync(local_tree, BUCKET, "site")

        assert result.uploaded == ["site/index.html"]

    def test_sync_delete_removes_stale_keys(self, s3, local_tree):
        s3.put_object(BUCKET, "site/old.html", "old")
        s3.put_object(BUCKET, "elsewhere/keep.txt", "keep")

        result = s3.sync(local_tree, BUCKET, "site", delete=True)

        assert result.deleted == ["site/old.html"]
        keys = {o.key for o in s3.list_objects(BUCKET)}
        assert "site/old.html" not in keys
        assert "elsewhere/keep.txt" in keys

    def test_sync_dry_run_changes_nothing(self, s3, local_tree):
        s3.put_object(BUCKET, "site/old.html", "old")

        result = s3.sync(local_tree, BUCKET, "site", delete=True, dry_run=True)

        assert result.dry_run
        assert len(result.uploaded) == 2
        assert result.deleted == ["site/old.html"]
        assert [o.key for o in s3.list_objects(BUCKET)] == ["site/old.html"]

    def test_sync_requires_directory(self, s3, tmp_path):
        with pytest.raises(ValueError):
            s3.sync(tmp_path / "missing", BUCKET)
