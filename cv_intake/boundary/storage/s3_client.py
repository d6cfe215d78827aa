"""
S3 client for staged CV uploads.

Puts uploaded files under a batch-scoped key on the API side and fetches them
back to local disk on the worker side.

Dependencies: boto3
System role: Object storage get/put by key
"""

import boto3
from botocore.exceptions import BotoCoreError, ClientError


class S3StorageError(Exception):
    """Raised when an S3 get or put fails."""

    def __init__(self, message: str, s3_key: str | None = None) -> None:
        self.s3_key = s3_key
        super().__init__(message)


class S3ObjectStore:
    """Get/put objects in an S3 bucket."""

    def __init__(self, bucket: str, region: str = "us-east-1", client=None) -> None:
        """
        Initialize S3 object store.

        Args:
            bucket: Default bucket for uploads
            region: AWS region for the bucket
            client: Pre-built boto3 S3 client (created from region if None)
        """
        self._bucket = bucket
        self._region = region
        self._s3_client = client or boto3.client("s3", region_name=region)

    @property
    def bucket(self) -> str:
        return self._bucket

    def put_file(self, local_path: str, key: str) -> str:
        """
        Upload a local file to the default bucket.

        Args:
            local_path: File to upload
            key: Destination object key

        Returns:
            str: The object key written

        Raises:
            S3StorageError: When the upload fails
        """
        try:
            self._s3_client.upload_file(
                Filename=local_path,
                Bucket=self._bucket,
                Key=key,
            )
            return key
        except (ClientError, BotoCoreError) as e:
            raise S3StorageError(f"Failed to upload to S3: {e}", key) from e

    def get_file(self, bucket: str, key: str, local_path: str) -> str:
        """
        Download an object to a local path.

        Args:
            bucket: Source bucket
            key: Source object key
            local_path: Destination path (parent directory must exist)

        Returns:
            str: local_path

        Raises:
            S3StorageError: When the object is missing or the download fails
        """
        try:
            self._s3_client.download_file(
                Bucket=bucket,
                Key=key,
                Filename=local_path,
            )
            return local_path

        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "404" or error_code == "NoSuchKey":
                raise S3StorageError(f"File not found in S3: s3://{bucket}/{key}", key) from e
            raise S3StorageError(f"Failed to download from S3: {e}", key) from e
        except BotoCoreError as e:
            raise S3StorageError(f"Unexpected error downloading from S3: {e}", key) from e
