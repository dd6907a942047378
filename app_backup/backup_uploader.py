#backup_uploader.py
import logging

from botocore.exceptions import BotoCoreError, ClientError

from app_backup.backup_errors import UploadError

logger = logging.getLogger(__name__)


class BackupUploader:

    def __init__(self, client, bucket):
        self._client = client
        self.bucket = bucket

    def put(self, key: str, body: bytes) -> str:
        """
        Write one object and return its s3:// location. Any failure, including
        a non-200 response, raises UploadError.
        """
        logger.debug(f"Executing transfer to S3: {key} ({len(body)} bytes)")
        try:
            response = self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=bytes(body),
            )
        except (BotoCoreError, ClientError) as e:
            raise UploadError(key, str(e)) from e

        status = (response or {}).get("ResponseMetadata", {}).get("HTTPStatusCode")
        if status != 200:
            raise UploadError(key, f"unexpected HTTP status {status}")

        return f"s3://{self.bucket}/{key}"
