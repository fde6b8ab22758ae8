import sys
from typing import List, Optional, Tuple
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, ProfileNotFound

from errors import ConfigError, StorageError, UploadError

DEFAULT_REGION = "us-east-1"
PUBLIC_HOST = "s3.amazonaws.com"


def resolve_session(profile: str = "default") -> Tuple[boto3.Session, str]:
    """
    Turn a profile name into a boto3 session plus the region to use.
    The "default" profile goes through the normal provider chain, so plain
    AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY env vars work without a config file.
    """
    try:
        if profile == "default":
            session = boto3.Session()
        else:
            session = boto3.Session(profile_name=profile)
        region = session.region_name or DEFAULT_REGION
    except ProfileNotFound as e:
        raise ConfigError(str(e)) from e
    return session, region


class S3Client:
    """
    Our S3 toolbox for s3-share.
    The rest of the project only talks to S3 through this class.
    """

    def __init__(
        self,
        profile: str = "default",
        bucket_name: Optional[str] = None,
        session: Optional[boto3.Session] = None,
    ):
        self.profile = profile
        self.bucket_name = bucket_name

        if session is None:
            session, self.region = resolve_session(profile)
        else:
            self.region = session.region_name or DEFAULT_REGION

        self._s3 = session.client(
            "s3",
            region_name=self.region,
            config=Config(signature_version="s3v4"),
        )
        print(
            f"[S3Client] Using bucket={self.bucket_name} region={self.region} profile={self.profile}",
            file=sys.stderr,
        )

    # URL helpers
    def get_public_url(self, key: str) -> str:
        """
        Public https URL (virtual-hosted style).
        Only opens in a browser if the bucket/object is publicly readable.
        """
        safe_key = quote(key, safe="/")
        return f"https://{self.bucket_name}.{PUBLIC_HOST}/{safe_key}"

    # Buckets
    def list_buckets(self) -> List[str]:
        """Names of every bucket the credentials can see."""
        try:
            resp = self._s3.list_buckets()
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"S3 Error (list): {e}") from e
        return [b["Name"] for b in resp.get("Buckets", [])]

    # Uploading
    def put_object(self, key: str, body: bytes, content_type: str, cache_control: str) -> None:
        if not self.bucket_name:
            raise ConfigError("Bucket name is required")
        try:
            self._s3.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=body,
                ContentType=content_type,
                CacheControl=cache_control,
            )
        except (ClientError, BotoCoreError) as e:
            raise UploadError(f"Upload failed: {e}") from e
