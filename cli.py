#!/usr/bin/env python3
"""
CLI for s3-share: upload files (or tarballed directories) to S3 and print a public URL for each.
"""

import argparse
import os
import sys
from pathlib import Path

from config import BUCKET_VAR, PROFILE_VAR, SHELL_PROFILE_VAR, ConfigResolver, load_settings
from errors import ArchiveError, InputError, ShareError, UploadError, UsageError
from infrastructure.s3_client import S3Client
from services import TARBALL_SUFFIX, ArchiveService, ContentTypes, UploadService

PROG = "s3-share"


# Prompts
# -----------------------
class TerminalPrompter:
    """
    Asks the user things on the terminal.
    Prompts go to stderr so stdout only ever has URLs on it.
    """

    def _ask(self, message: str):
        print(message, end="", file=sys.stderr, flush=True)
        try:
            return input()
        except EOFError:
            return None

    def ask_choice(self, message: str) -> str:
        return self._ask(message) or ""

    def confirm(self, message: str) -> bool:
        answer = self._ask(message)
        if answer is None:
            # stdin closed, nobody to say yes
            return False
        return answer.strip().lower() != "n"


def default_storage_factory(settings):
    return S3Client(profile=settings.credentials_profile, bucket_name=settings.bucket)


# -----------------------
# Argparse wiring
# -----------------------
class SharedParser(argparse.ArgumentParser):
    """Bad arguments are an Error: line and exit 1, not argparse's exit 2."""

    def error(self, message):
        raise UsageError(message)


def help_epilog() -> str:
    return f"""\
Environment:
  {BUCKET_VAR}         S3 bucket name
  {PROFILE_VAR}    AWS profile name (default: default)
  {SHELL_PROFILE_VAR}  file the chosen bucket is saved to (default: ~/.bashrc)

Examples:
  {PROG} file.txt              Upload a single file
  {PROG} --y directory/        Upload a directory
  {PROG} file1.txt file2.txt   Upload multiple files

Supported text files that will render in browser:
  {", ".join(ContentTypes.browser_renderable())}"""


def build_parser():
    p = SharedParser(
        prog=PROG,
        allow_abbrev=False,
        description="Upload files to S3 and print a public URL for each.",
        epilog=help_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("paths", nargs="*", metavar="file", help="files or directories to upload")
    p.add_argument("--info", action="store_true", help="show AWS configuration")
    p.add_argument("--y", dest="auto_confirm", action="store_true",
                   help="automatically confirm directory prompts")
    return p


# Commands
# -----------------------
def show_info(settings):
    print("AWS Configuration:")
    print(f"  Bucket: {settings.bucket}")
    print(f"  Profile: {settings.profile}")


def prepare_path(raw: str, auto_confirm: bool, prompter):
    """
    Work out what to upload for one command line argument.
    Returns (local_path, original_filename, is_temporary), or None if the user said no.
    """
    path = Path(raw).expanduser()
    if not path.exists():
        raise InputError(raw)

    if not path.is_dir():
        return path, path.name, False

    question = f"{raw} is a directory. Tarball this directory to a temporary file and upload? (Y/n): "
    if not auto_confirm and not prompter.confirm(question):
        return None

    archive = ArchiveService.create_tarball(path)
    # abspath, not resolve(): a symlinked dir keeps the name it was given as
    return archive, f"{Path(os.path.abspath(path)).name}{TARBALL_SUFFIX}", True


def upload_paths(paths, uploader, auto_confirm: bool, prompter) -> None:
    """One line per path: URL on stdout, or what went wrong on stderr."""
    for raw in paths:
        try:
            prepared = prepare_path(raw, auto_confirm, prompter)
        except (InputError, ArchiveError) as e:
            print(e, file=sys.stderr)
            continue

        if prepared is None:
            print(f"Skipped directory: {raw}", file=sys.stderr)
            continue

        local_path, original_filename, is_temporary = prepared
        try:
            print(uploader.upload(local_path, original_filename))
        except UploadError as e:
            print(e, file=sys.stderr)
        finally:
            if is_temporary:
                ArchiveService.cleanup(local_path)


def run(args, parser, prompter, storage_factory) -> int:
    resolver = ConfigResolver(load_settings(), prompter, storage_factory)
    resolver.ensure_bucket(auto_confirm=args.auto_confirm)
    settings = resolver.settings

    if args.info:
        show_info(settings)
        return 0

    if not args.paths:
        print("Error: No files specified", file=sys.stderr)
        parser.print_help()
        return 1

    s3 = storage_factory(settings)
    upload_paths(args.paths, UploadService(s3), args.auto_confirm, prompter)
    return 0


def main(argv=None, prompter=None, storage_factory=default_storage_factory) -> int:
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0

    try:
        args, unknown = parser.parse_known_intermixed_args(argv)
        for opt in unknown:
            print(f"[warning] ignoring unknown option {opt}", file=sys.stderr)

        return run(args, parser, prompter or TerminalPrompter(), storage_factory)
    except ShareError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
