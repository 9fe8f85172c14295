# courtfile/services/s3_service.py

import boto3
from botocore.exceptions import ClientError
from typing import Optional

from courtfile.core.config import settings
from courtfile.core.logger import logger

class S3Service:
    """
    Service layer for AWS S3 operations.
    """

    def __init__(self, client=None, bucket: Optional[str] = None):
        self.s3_client = client or boto3.client(
            's3',
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None
        )
        self.bucket = bucket or settings.S3_BUCKET_NAME

    def upload_bytes(self, s3_key: str, data: bytes, content_type: str) -> None:
        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=s3_key,
                Body=data,
                ContentType=content_type
            )
            logger.info(f"Uploaded {len(data)} bytes to s3://{self.bucket}/{s3_key}")
        except ClientError as e:
            logger.error(f"Failed to upload {s3_key}: {str(e)}")
            raise

    def object_exists(self, s3_key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket, Key=s3_key)
            return True
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("404", "NoSuchKey", "NotFound"):
                return False
            logger.error(f"Failed to check {s3_key}: {str(e)}")
            raise

    def delete_object(self, s3_key: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=s3_key)
            logger.info(f"Deleted s3://{self.bucket}/{s3_key}")
        except ClientError as e:
            logger.error(f"Failed to delete {s3_key}: {str(e)}")
            raise

    def generate_download_url(
        self,
        s3_key: str,
        expires_in: int = 3600
    ) -> str:
        """
        Generate pre-signed URL for GET operation (download).
        """
        try:
            url = self.s3_client.generate_presigned_url(
                'get_object',
                Params={
                    'Bucket': self.bucket,
                    'Key': s3_key
                },
                ExpiresIn=expires_in
            )
            return url

        except ClientError as e:
            logger.error(f"Failed to generate download URL: {str(e)}")
            raise
