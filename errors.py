"""
Error kinds for s3-share.
The message of each error is what the user sees, so keep it readable.
"""


class ShareError(Exception):
    """Base class for everything the CLI knows how to report."""


class ConfigError(ShareError):
    """Bucket or profile could not be resolved. Fatal at startup."""


class InputError(ShareError):
    """A path given on the command line does not exist."""

    def __init__(self, path):
        super().__init__(f"File not found: {path}")
        self.path = path


class ArchiveError(ShareError):
    """tar failed while packing a directory."""


class StorageError(ShareError):
    """An S3 call failed."""


class UploadError(StorageError):
    """put_object failed, or the local file could not be read."""


class UsageError(ShareError):
    """Command line arguments argparse could not make sense of."""
