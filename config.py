"""
Configuration for s3-share.

Everything that comes from the environment is read exactly once, in
load_settings(). The rest of the project gets a Settings object handed to it.
"""

import os
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Optional

from dotenv import load_dotenv

from errors import ConfigError, StorageError

BUCKET_VAR = "S3_SHARE_BUCKET"
PROFILE_VAR = "S3_SHARE_AWS_PROFILE"
SHELL_PROFILE_VAR = "S3_SHARE_SHELL_PROFILE"
DEFAULT_PROFILE = "default"


@dataclass(frozen=True)
class Settings:
    bucket: Optional[str] = None
    profile: str = DEFAULT_PROFILE
    # What boto3 actually gets; AWS_PROFILE wins over our own variable
    credentials_profile: str = DEFAULT_PROFILE
    shell_profile: Path = Path.home() / ".bashrc"


def load_settings(environ=None) -> Settings:
    if environ is None:
        load_dotenv()
        environ = os.environ

    profile = environ.get(PROFILE_VAR) or DEFAULT_PROFILE
    credentials_profile = (
        environ.get("AWS_PROFILE") or environ.get("AWS_DEFAULT_PROFILE") or profile
    )
    shell_profile = environ.get(SHELL_PROFILE_VAR)

    return Settings(
        bucket=environ.get(BUCKET_VAR) or None,
        profile=profile,
        credentials_profile=credentials_profile,
        shell_profile=Path(shell_profile).expanduser() if shell_profile else Path.home() / ".bashrc",
    )


def append_export(path: Path, variable: str, value: str) -> None:
    """Append `export VARIABLE=value` to a shell profile (e.g. ~/.bashrc)."""
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"\nexport {variable}={value}")


class ConfigResolver:
    """
    Makes sure we know which bucket to upload to.
    If the environment doesn't say, ask the user once and remember the answer
    in their shell profile.
    """

    def __init__(self, settings: Settings, prompter, storage_factory: Callable[[Settings], object]):
        self.settings = settings
        self.prompter = prompter
        self._storage_factory = storage_factory

    def ensure_bucket(self, auto_confirm: bool = False) -> str:
        if self.settings.bucket:
            return self.settings.bucket

        # Nobody is there to answer a prompt
        if auto_confirm:
            raise ConfigError(f"{BUCKET_VAR} not set and --y specified")

        buckets = self._list_buckets()
        if not buckets:
            raise ConfigError("No S3 buckets found in your AWS account. Please create a bucket first.")

        print("\nAvailable buckets:", file=sys.stderr)
        for i, name in enumerate(buckets, start=1):
            print(f"{i}. {name}", file=sys.stderr)

        answer = self.prompter.ask_choice("\nEnter bucket number or name: ").strip()
        bucket = self._match(answer, buckets)
        if bucket is None:
            raise ConfigError("Invalid bucket selection")

        self._remember(bucket)
        self.settings = replace(self.settings, bucket=bucket)
        return bucket

    def _list_buckets(self):
        try:
            storage = self._storage_factory(self.settings)
            return storage.list_buckets()
        except StorageError as e:
            print(f"[error] failed to list buckets: {e}", file=sys.stderr)
            return []

    @staticmethod
    def _match(answer: str, buckets):
        if answer.isdecimal():
            num = int(answer)
            if 0 < num <= len(buckets):
                return buckets[num - 1]
        if answer in buckets:
            return answer
        return None

    def _remember(self, bucket: str) -> None:
        path = self.settings.shell_profile
        try:
            append_export(path, BUCKET_VAR, bucket)
        except OSError as e:
            print(f"[warning] could not write {path}: {e}", file=sys.stderr)
            return
        print(f"Added {BUCKET_VAR} to {path}", file=sys.stderr)
