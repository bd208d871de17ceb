import argparse
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Tuple

from .base_check import BaseCheck, CheckResult, CheckStatus
from ..core import ValidationError
from ..resource_filter import RecordFilter, megabytes

logger = logging.getLogger(__name__)

# delete_objects accepts at most this many keys per request
DELETE_BATCH_SIZE = 1000


def parse_s3_uri(uri: str) -> Tuple[str, str]:
    """Split ``s3://bucket/prefix`` (or ``bucket/prefix``) into its parts."""
    path = uri[len("s3://") :] if uri.startswith("s3://") else uri
    bucket, _, prefix = path.partition("/")
    if not bucket:
        raise ValidationError(f"Invalid S3 location: {uri}")
    return bucket, prefix


class S3Check(BaseCheck):
    def __init__(self, session, settings=None):
        super().__init__(session, settings)
        self.client = session.client("s3")

    def list_objects(self, bucket: str, prefix: str = "") -> List[Dict]:
        paginator = self.client.get_paginator("list_objects_v2")
        objects = []
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            objects.extend(page.get("Contents", []))
        return objects


class UploadCheck(S3Check):
    name = "s3-upload"
    help = "Upload a local file to S3."

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("path", help="Local file to upload.")
        parser.add_argument(
            "destination",
            help="s3://bucket/key. A key ending in '/' keeps the file name.",
        )

    def run(self, args: argparse.Namespace) -> CheckResult:
        path = Path(args.path)
        if not path.is_file():
            return CheckResult(CheckStatus.UNHEALTHY, f"File not found: {path}")

        bucket, key = parse_s3_uri(args.destination)
        if not key or key.endswith("/"):
            key = f"{key}{path.name}"

        logger.info(f"Uploading {path} to s3://{bucket}/{key}")
        self.client.upload_file(str(path), bucket, key)
        uri = f"s3://{bucket}/{key}"
        return CheckResult(CheckStatus.OK, f"Uploaded {path}", data=uri)


class LargeObjectsCheck(S3Check):
    name = "large-objects"
    help = "List S3 objects above a size threshold, largest first."

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("location", help="s3://bucket[/prefix]")
        parser.add_argument(
            "--min-size-mb", type=float, help="Size threshold in MiB."
        )

    def run(self, args: argparse.Namespace) -> CheckResult:
        bucket, prefix = parse_s3_uri(args.location)
        threshold_mb = (
            args.min_size_mb
            if args.min_size_mb is not None
            else self.settings.large_object_threshold_mb
        )
        record_filter = RecordFilter()
        large = record_filter.sort_desc(
            record_filter.larger_than(
                self.list_objects(bucket, prefix), megabytes(threshold_mb), "Size"
            ),
            "Size",
        )
        lines = [f"{obj['Size']}\t{obj['Key']}" for obj in large]
        message = f"{len(large)} object(s) larger than {threshold_mb} MiB"
        if record_filter.errors:
            message += f", {len(record_filter.errors)} skipped"
        return CheckResult(CheckStatus.OK, message, data=lines)


class SyncCheck(S3Check):
    name = "s3-sync"
    help = "Sync a local directory to S3."

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("source", help="Local directory.")
        parser.add_argument("destination", help="s3://bucket[/prefix]")
        parser.add_argument(
            "--delete",
            action="store_true",
            help="Delete remote objects that have no local counterpart.",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would change without touching S3.",
        )

    @staticmethod
    def local_files(source: Path, prefix: str) -> Dict[str, Path]:
        base = prefix.rstrip("/")
        files = {}
        for root, _, names in os.walk(source):
            for name in names:
                path = Path(root) / name
                relative = path.relative_to(source).as_posix()
                files[f"{base}/{relative}" if base else relative] = path
        return files

    @staticmethod
    def needs_upload(path: Path, remote: Dict) -> bool:
        stat = path.stat()
        if stat.st_size != remote.get("Size"):
            return True
        local_mtime = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
        return local_mtime > remote["LastModified"]

    def plan(
        self, source: Path, bucket: str, prefix: str, delete: bool
    ) -> Tuple[List[Tuple[Path, str]], List[str]]:
        base = prefix.rstrip("/")
        local = self.local_files(source, base)
        remote = {
            obj["Key"]: obj
            for obj in self.list_objects(bucket, f"{base}/" if base else "")
        }

        uploads = [
            (path, key)
            for key, path in sorted(local.items())
            if key not in remote or self.needs_upload(path, remote[key])
        ]
        deletes = sorted(set(remote) - set(local)) if delete else []
        return uploads, deletes

    def run(self, args: argparse.Namespace) -> CheckResult:
        source = Path(args.source)
        if not source.is_dir():
            return CheckResult(CheckStatus.UNHEALTHY, f"Directory not found: {source}")

        bucket, prefix = parse_s3_uri(args.destination)
        uploads, deletes = self.plan(source, bucket, prefix, args.delete)
        lines = [f"upload: {path} to s3://{bucket}/{key}" for path, key in uploads]
        lines += [f"delete: s3://{bucket}/{key}" for key in deletes]

        if args.dry_run:
            return CheckResult(
                CheckStatus.OK,
                f"Dry run: {len(uploads)} upload(s), {len(deletes)} delete(s)",
                data=lines,
            )

        for path, key in uploads:
            logger.debug(f"Uploading {path} to s3://{bucket}/{key}")
            self.client.upload_file(str(path), bucket, key)

        failed = []
        for i in range(0, len(deletes), DELETE_BATCH_SIZE):
            batch = deletes[i : i + DELETE_BATCH_SIZE]
            response = self.client.delete_objects(
                Bucket=bucket,
                Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
            )
            failed.extend(error["Key"] for error in response.get("Errors", []))

        if failed:
            return CheckResult(
                CheckStatus.UNHEALTHY,
                f"Failed to delete {len(failed)} object(s): {', '.join(failed)}",
                data=lines,
            )
        return CheckResult(
            CheckStatus.OK,
            f"Synced {source} to s3://{bucket}/{prefix}: "
            f"{len(uploads)} upload(s), {len(deletes)} delete(s)",
            data=lines,
        )
