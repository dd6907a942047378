#backup_controller.py
from __future__ import annotations
import logging
import time
from typing import Any, Callable, Dict, Optional

from app_backup.backup_manifest import build_manifest, manifest_body
from app_backup.backup_model import BackupJob, BackupState
from app_backup.backup_scanner import AdaptiveScanner
from app_backup.backup_serializer import serialize_item
from app_backup.backup_uploader import BackupUploader

logger = logging.getLogger(__name__)

SUCCESS_MARKER = "_SUCCESS"
MANIFEST_KEY = "manifest"

EventSink = Callable[[str, Dict[str, Any]], None]


def log_event(name: str, fields: Dict[str, Any]) -> None:
    # Default event sink: one INFO line per event
    logger.info("%s %s", name, " ".join(f"{k}={v}" for k, v in fields.items()))


class Ticker:
    """
    Fixed cadence for the scan loop: wait() returns once per interval, the
    first time one interval after creation. Ticks that were missed because a
    request ran long are dropped, not replayed.
    """

    def __init__(self, interval: float = 1.0, sleep=time.sleep, clock=time.monotonic):
        self.interval = interval
        self._sleep = sleep
        self._clock = clock
        self._next = clock() + interval

    def wait(self) -> None:
        if self.interval <= 0:
            return
        now = self._clock()
        if self._next > now:
            self._sleep(self._next - now)
            self._next += self.interval
        else:
            missed = int((now - self._next) // self.interval) + 1
            self._next += missed * self.interval


class BackupController:
    """
    Runs one export: scan the whole table into memory, then upload the data
    object, the manifest and the _SUCCESS marker, in that order. Any error
    stops the run where it happened; nothing is retried or cleaned up, so a
    prefix without _SUCCESS is an incomplete backup.
    """

    def __init__(
        self,
        job: BackupJob,
        scanner: AdaptiveScanner,
        uploader: BackupUploader,
        ticker: Optional[Ticker] = None,
        on_event: EventSink = log_event,
    ):
        self.job = job
        self.scanner = scanner
        self.uploader = uploader
        self.ticker = ticker or Ticker()
        self.on_event = on_event

    def _emit(self, name: str, **fields) -> None:
        self.on_event(name, fields)

    # -------------------------
    # Public
    # -------------------------
    def run(self) -> Dict[str, Any]:
        job = self.job
        self._emit("backup.started", table=job.table_name, bucket=job.bucket,
                   prefix=job.prefix, run_id=job.run_id)
        try:
            self._scan()
            location = self._upload()
        except Exception as e:
            failed_in = job.state
            job.state = BackupState.FAILED
            self._emit("backup.failed", state=failed_in.value, error=str(e) or type(e).__name__)
            raise

        job.state = BackupState.DONE
        self._emit("backup.complete", prefix=job.prefix, rows=job.row_count)
        return {
            "table": job.table_name,
            "bucket": job.bucket,
            "prefix": job.prefix,
            "run_id": job.run_id,
            "rows": job.row_count,
            "iterations": job.iteration_count,
            "location": location,
        }

    # -------------------------
    # Scanning
    # -------------------------
    def _scan(self) -> None:
        job = self.job
        job.state = BackupState.SCANNING

        while True:
            self.ticker.wait()
            job.iteration_count += 1

            page = self.scanner.fetch_page(job)
            for row in page.rows:
                job.append_row(serialize_item(row))

            self._emit("scan.page", iteration=job.iteration_count, rows=len(page.rows),
                       consumed_capacity=page.consumed_capacity, limit=job.page_limit)

            if not job.cursor:
                break

        self._emit("scan.complete", rows=job.row_count, iterations=job.iteration_count,
                   bytes=len(job.buffer))

    # -------------------------
    # Uploading
    # -------------------------
    def _upload(self) -> str:
        job = self.job
        job.state = BackupState.UPLOADING

        location = self.uploader.put(job.data_key, bytes(job.buffer))
        self._emit("upload.complete", object="data", location=location)

        manifest = build_manifest(job.bucket, job.table_name, job.timestamp, job.run_id)
        manifest_location = self.uploader.put(job.s3_key(MANIFEST_KEY), manifest_body(manifest))
        self._emit("upload.complete", object="manifest", location=manifest_location)

        marker_location = self.uploader.put(job.s3_key(SUCCESS_MARKER), b"")
        self._emit("upload.complete", object="marker", location=marker_location)

        return location


def build_controller(config, dynamodb_client, s3_client, on_event: EventSink = log_event,
                     ticker: Optional[Ticker] = None) -> BackupController:
    """Wire a controller for one run from a BackupConfig and two boto3 clients."""
    job = BackupJob(
        table_name=config.table_name,
        bucket=config.bucket,
        max_consumed_capacity=config.max_consumed_capacity,
    )
    return BackupController(
        job,
        AdaptiveScanner(dynamodb_client, on_event=on_event),
        BackupUploader(s3_client, config.bucket),
        ticker=ticker or Ticker(config.tick_seconds),
        on_event=on_event,
    )
