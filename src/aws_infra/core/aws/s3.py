"""S3 Manager for bucket, object and directory sync operations."""

import os
from pathlib import Path
from typing import Dict, List, Optional, Union

import boto3
from boto3.exceptions import S3UploadFailedError

from aws_infra.core.aws.base import AWS_ERRORS, BaseManager
from aws_infra.core.constants import S3_DELETE_BATCH_SIZE
from aws_infra.core.models import BucketInfo, ObjectInfo, SyncResult
from aws_infra.core.processors.formatting import format_bytes
from aws_infra.utils.exceptions import APIError
from aws_infra.utils.retry import error_code, with_retry

MISSING_BUCKET_CODES = {"NoSuchBucket", "404"}


def parse_s3_uri(uri: str) -> tuple:
    """Split ``s3://bucket/key/prefix`` into ``(bucket, key)``."""
    if not uri.startswith("s3://"):
        raise ValueError(f"Not an S3 URI: {uri}")
    bucket, _, key = uri[len("s3://"):].partition("/")
    if not bucket:
        raise ValueError(f"S3 URI has no bucket: {uri}")
    return bucket, key


def join_key(prefix: str, relative: str) -> str:
    """Join an S3 prefix and a relative path with exactly one '/'."""
    relative = relative.replace(os.sep, "/").lstrip("/")
    if not prefix:
        return relative
    return f"{prefix.rstrip('/')}/{relative}"


class S3Manager(BaseManager):
    """AWS S3 resource manager."""

    service_name = "s3"

    @with_retry()
    def list_buckets(self) -> List[BucketInfo]:
        try:
            response = self.client.list_buckets()
        except AWS_ERRORS as e:
            self._raise_api_error("list_buckets", e)
        return [BucketInfo.from_aws_bucket(b) for b in response.get("Buckets", [])]

    def create_bucket(self, name: str) -> bool:
        """Create a private, encrypted bucket. Returns False when it already exists."""
        params: Dict = {"Bucket": name}
        # us-east-1 rejects an explicit location constraint
        if self.region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}

        self.logger.info(f"Creating bucket {name} in {self.region}")
        try:
            self.client.create_bucket(**params)
        except AWS_ERRORS as e:
            if error_code(e) == "BucketAlreadyOwnedByYou":
                self.logger.warning(f"Bucket {name} already exists and is owned by you")
                return False
            self._raise_api_error("create_bucket", e)

        try:
            self.client.put_public_access_block(
                Bucket=name,
                PublicAccessBlockConfiguration={
                    "BlockPublicAcls": True,
                    "IgnorePublicAcls": True,
                    "BlockPublicPolicy": True,
                    "RestrictPublicBuckets": True,
                },
            )
            self.client.put_bucket_encryption(
                Bucket=name,
                ServerSideEncryptionConfiguration={
                    "Rules": [
                        {"ApplyServerSideEncryptionByDefault": {"SSEAlgorithm": "AES256"}}
                    ]
                },
            )
        except AWS_ERRORS as e:
            self._raise_api_error("configure_bucket", e)

        self.logger.info(f"Created bucket {name}")
        return True

    def delete_bucket(self, name: str, force: bool = False) -> bool:
        """Delete a bucket; ``force`` empties it first. Returns False if it did not exist."""
        self.logger.info(f"Deleting bucket {name} (force={force})")
        try:
            if force:
                self._empty_bucket(name)
            self.client.delete_bucket(Bucket=name)
        except AWS_ERRORS as e:
            if error_code(e) in MISSING_BUCKET_CODES:
                self.logger.warning(f"Bucket {name} does not exist")
                return False
            self._raise_api_error("delete_bucket", e)

        self.logger.info(f"Deleted bucket {name}")
        return True

    def _empty_bucket(self, name: str) -> None:
        paginator = self.client.get_paginator("list_object_versions")
        removed = 0
        for page in paginator.paginate(Bucket=name):
            entries = page.get("Versions", []) + page.get("DeleteMarkers", [])
            objects = [{"Key": e["Key"], "VersionId": e["VersionId"]} for e in entries]
            for start in range(0, len(objects), S3_DELETE_BATCH_SIZE):
                batch = objects[start:start + S3_DELETE_BATCH_SIZE]
                self.client.delete_objects(Bucket=name, Delete={"Objects": batch, "Quiet": True})
                removed += len(batch)
        self.logger.info(f"Removed {removed} object versions from {name}")

    @with_retry()
    def list_objects(self, bucket: str, prefix: str = "") -> List[ObjectInfo]:
        objects = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                objects.extend(ObjectInfo.from_aws_object(o) for o in page.get("Contents", []))
        except AWS_ERRORS as e:
            self._raise_api_error(f"list_objects s3://{bucket}/{prefix}", e)

        self.logger.debug(f"Listed {len(objects)} objects under s3://{bucket}/{prefix}")
        return objects

    def put_object(self, bucket: str, key: str, body: Union[bytes, str]) -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        try:
            self.client.put_object(Bucket=bucket, Key=key, Body=body)
        except AWS_ERRORS as e:
            self._raise_api_error(f"put_object s3://{bucket}/{key}", e)
        self.logger.info(f"Put s3://{bucket}/{key} ({format_bytes(len(body))})")

    def get_object(self, bucket: str, key: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
            return response["Body"].read()
        except AWS_ERRORS as e:
            self._raise_api_error(f"get_object s3://{bucket}/{key}", e)

    def upload_file(self, path: Union[str, Path], bucket: str, key: str) -> int:
        """Upload a local file; returns its size in bytes."""
        size = os.path.getsize(path)
        try:
            self.client.upload_file(str(path), bucket, key)
        except AWS_ERRORS as e:
            self._raise_api_error(f"upload_file {path} -> s3://{bucket}/{key}", e)
        except S3UploadFailedError as e:
            self._raise_api_error(f"upload_file {path} -> s3://{bucket}/{key}", e, retryable=True)
        self.logger.info(f"Uploaded {path} to s3://{bucket}/{key} ({format_bytes(size)})")
        return size

    def download_file(self, bucket: str, key: str, path: Union[str, Path]) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self.client.download_file(bucket, key, str(path))
        except AWS_ERRORS as e:
            self._raise_api_error(f"download_file s3://{bucket}/{key}", e)
        self.logger.info(f"Downloaded s3://{bucket}/{key} to {path}")

    def delete_objects(self, bucket: str, keys: List[str]) -> int:
        """Delete keys in batches of 1000; returns the number deleted."""
        deleted = 0
        for start in range(0, len(keys), S3_DELETE_BATCH_SIZE):
            batch = keys[start:start + S3_DELETE_BATCH_SIZE]
            try:
                response = self.client.delete_objects(
                    Bucket=bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
            except AWS_ERRORS as e:
                self._raise_api_error(f"delete_objects s3://{bucket}", e)

            errors = response.get("Errors", [])
            if errors:
                first = errors[0]
                raise APIError(
                    f"failed to delete {len(errors)} objects from {bucket}, "
                    f"first: {first.get('Key')} ({first.get('Code')})"
                )
            deleted += len(batch)

        self.logger.info(f"Deleted {deleted} objects from s3://{bucket}")
        return deleted

    def sync(
        self,
        local_dir: Union[str, Path],
        bucket: str,
        prefix: str = "",
        delete: bool = False,
        dry_run: bool = False,
    ) -> SyncResult:
        """Upload new or resized files from ``local_dir`` to ``s3://bucket/prefix``.

        With ``delete``, remote keys under the prefix without a local
        counterpart are removed.
        """
        root = Path(local_dir)
        if not root.is_dir():
            raise ValueError(f"Not a directory: {local_dir}")

        list_prefix = f"{prefix.rstrip('/')}/" if prefix else ""
        remote: Dict[str, int] = {
            obj.key: obj.size for obj in self.list_objects(bucket, list_prefix)
        }
        result = SyncResult(dry_run=dry_run)
        local_keys = set()

        for path in sorted(p for p in root.rglob("*") if p.is_file()):
            key = join_key(prefix, path.relative_to(root).as_posix())
            local_keys.add(key)
            size = path.stat().st_size

            if remote.get(key) == size:
                result.skipped.append(key)
                continue

            if not dry_run:
                self.upload_file(path, bucket, key)
            result.uploaded.append(key)
            result.bytes_uploaded += size

        if delete:
            stale = sorted(key for key in remote if key not in local_keys)
            if stale and not dry_run:
                self.delete_objects(bucket, stale)
            result.deleted.extend(stale)

        self.logger.info(
            f"{'[DRY RUN] ' if dry_run else ''}Synced {root} to s3://{bucket}/{prefix}: "
            f"{len(result.uploaded)} uploaded ({format_bytes(result.bytes_uploaded)}), "
            f"{len(result.skipped)} unchanged, {len(result.deleted)} deleted"
        )
        return result


def create_s3_manager(session: boto3.Session, region: Optional[str] = None) -> S3Manager:
    """Create S3Manager instance."""
    return S3Manager(session, region)
