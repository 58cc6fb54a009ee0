"""
Adapter for S3 through boto3.
"""
import logging
from typing import Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from resourcestore.adapters.base import ClientCallError, ObjectNotFoundError, ObjectStorageClient

logger = logging.getLogger(__name__)

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


def _error_code(e: ClientError) -> str:
    return str(e.response.get("Error", {}).get("Code", ""))


class S3ObjectClient(ObjectStorageClient):
    """ObjectStorageClient for one bucket."""

    def __init__(self, s3, bucket: str):
        self.s3 = s3
        self.bucket = bucket

    @classmethod
    def from_config(
        cls,
        bucket: str,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
    ) -> "S3ObjectClient":
        session = boto3.session.Session(region_name=region)
        return cls(session.client("s3", region_name=region, endpoint_url=endpoint_url), bucket)

    def put(self, key: str, body: bytes, metadata: Dict[str, str]) -> None:
        try:
            self.s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType="application/json",
                Metadata=metadata,
            )
        except (ClientError, BotoCoreError) as e:
            raise ClientCallError(f"failed to put object {key}: {e}", original_error=e) from e

    def get(self, key: str) -> bytes:
        try:
            response = self.s3.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                raise ObjectNotFoundError(f"object {key} not found", original_error=e) from e
            raise ClientCallError(f"failed to get object {key}: {e}", original_error=e) from e
        except BotoCoreError as e:
            raise ClientCallError(f"failed to get object {key}: {e}", original_error=e) from e

    def exists(self, key: str) -> bool:
        try:
            self.s3.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                return False
            raise ClientCallError(f"failed to check object {key}: {e}", original_error=e) from e
        except BotoCoreError as e:
            raise ClientCallError(f"failed to check object {key}: {e}", original_error=e) from e

    def delete(self, key: str) -> None:
        try:
            self.s3.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise ClientCallError(f"failed to delete object {key}: {e}", original_error=e) from e

    def list_keys(self, prefix: str) -> List[str]:
        keys = []
        try:
            paginator = self.s3.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for item in page.get("Contents", []):
                    keys.append(item["Key"])
        except (ClientError, BotoCoreError) as e:
            raise ClientCallError(f"failed to list objects under {prefix}: {e}", original_error=e) from e
        logger.debug(f"Listed {len(keys)} objects under {prefix}")
        return keys
