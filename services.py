"""
Service layer: the actual upload logic lives here.
cli.py only parses arguments and loops over paths; it forwards the work here.
"""

import os
import secrets
import subprocess
import tempfile
import time
from pathlib import Path
from types import MappingProxyType

from errors import ArchiveError, UploadError

TARBALL_SUFFIX = ".tar.gz"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = MappingProxyType({
    ".txt": "text/plain",
    ".js": "text/javascript",
    ".json": "application/json",
    ".md": "text/markdown",
    ".css": "text/css",
    ".html": "text/html",
    ".htm": "text/html",
    ".xml": "text/xml",
    ".csv": "text/csv",
    ".log": "text/plain",
    ".yml": "text/yaml",
    ".yaml": "text/yaml",
    ".coffee": "text/coffeescript",
    ".sh": "text/x-shellscript",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".tar": "application/x-tar",
    ".gz": "application/gzip",
    ".7z": "application/x-7z-compressed",
})

TEXT_LIKE_TYPES = {"application/json", "application/javascript"}

NO_CACHE = "no-cache"
# Keys are random and never reused, so caching forever is safe
IMMUTABLE_CACHE = "max-age=31536000"


class ContentTypes:

    @staticmethod
    def classify(filename: str) -> str:
        ext = os.path.splitext(filename)[1].lower()
        return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)

    @staticmethod
    def is_text_like(mime_type: str) -> bool:
        return mime_type.startswith("text/") or mime_type in TEXT_LIKE_TYPES

    @staticmethod
    def cache_control(filename: str) -> str:
        """Text gets no-cache so an overwrite shows up right away."""
        if ContentTypes.is_text_like(ContentTypes.classify(filename)):
            return NO_CACHE
        return IMMUTABLE_CACHE

    @staticmethod
    def browser_renderable():
        """Extensions a browser will display inline instead of downloading."""
        return [
            ext for ext, mime in CONTENT_TYPES.items()
            if mime.startswith("text/") or mime.startswith("image/") or mime == "application/json"
        ]


class Utils:

    @staticmethod
    def generate_remote_key(original_filename: str) -> str:
        """
        Random object key that keeps the file's extension.
        `.tar.gz` is kept whole; splitext would only give us `.gz`.
        """
        random_part = secrets.token_hex(8)
        if original_filename.endswith(TARBALL_SUFFIX):
            return f"{random_part}{TARBALL_SUFFIX}"
        ext = os.path.splitext(original_filename)[1]
        return f"{random_part}{ext}"


class ArchiveService:

    @staticmethod
    def create_tarball(directory) -> Path:
        """
        Pack a directory into a temporary .tar.gz.
        Entries are relative to the directory itself (./a.txt, not dir/a.txt).
        Caller owns the returned file and should hand it to cleanup().
        """
        tmp = tempfile.NamedTemporaryFile(
            prefix=f"{int(time.time() * 1000)}-", suffix=TARBALL_SUFFIX, delete=False
        )
        tmp.close()
        archive = Path(tmp.name)

        try:
            subprocess.run(
                ["tar", "-czf", str(archive), "-C", str(directory), "."],
                check=True,
                capture_output=True,
                text=True,
            )
        except subprocess.CalledProcessError as e:
            ArchiveService.cleanup(archive)
            detail = (e.stderr or "").strip() or f"tar exited with status {e.returncode}"
            raise ArchiveError(f"Failed to tarball {directory}: {detail}") from e
        except OSError as e:
            ArchiveService.cleanup(archive)
            raise ArchiveError(f"Failed to tarball {directory}: {e}") from e

        return archive

    @staticmethod
    def cleanup(archive) -> None:
        try:
            os.unlink(archive)
        except FileNotFoundError:
            pass


class UploadService:
    """
    Uploads one local file and hands back its public URL.
    """

    def __init__(self, s3_client):
        self.s3 = s3_client

    def upload(self, local_path, original_filename: str) -> str:
        """
        1. read the whole file
        2. pick a random key + content type + cache header
        3. put it in the bucket
        """
        try:
            body = Path(local_path).read_bytes()
        except OSError as e:
            raise UploadError(f"Upload failed: {e}") from e

        key = Utils.generate_remote_key(original_filename)
        content_type = ContentTypes.classify(original_filename)
        cache_control = ContentTypes.cache_control(original_filename)

        self.s3.put_object(key, body, content_type, cache_control)
        return self.s3.get_public_url(key)
