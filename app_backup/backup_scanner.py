#backup_scanner.py
import logging
import math
from typing import Any, Callable, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from app_backup.backup_errors import ScanError
from app_backup.backup_model import BackupJob, ScanPage, item_from_dynamodb

logger = logging.getLogger(__name__)


def next_page_limit(limit: int, max_consumed_capacity: float, consumed_capacity: float) -> int:
    """
    Scale the page size toward the capacity ceiling: cost grows roughly with
    the number of items read, so limit * (ceiling / cost) is the size that
    would have landed on the ceiling. Never returns less than 1.
    """
    if consumed_capacity <= 0:
        return max(1, limit)

    new_limit = int(math.floor(limit * (max_consumed_capacity / consumed_capacity)))
    if new_limit < 1:
        logger.debug("Limit <1, clamping to 1")
        return 1
    return new_limit


class AdaptiveScanner:
    """
    Reads a table one page per call with a strongly consistent Scan, feeding
    the reported consumed capacity back into the next page size.
    """

    def __init__(self, client, on_event: Optional[Callable[[str, Dict[str, Any]], None]] = None):
        self._client = client
        self._on_event = on_event

    def _build_request(self, job: BackupJob) -> Dict[str, Any]:
        kwargs = {
            "TableName": job.table_name,
            "ConsistentRead": True,
            "Limit": job.page_limit,
            "ReturnConsumedCapacity": "TOTAL",
        }
        if job.cursor:
            kwargs["ExclusiveStartKey"] = job.cursor
        return kwargs

    def fetch_page(self, job: BackupJob) -> ScanPage:
        """
        Scan one page and advance the job: page_limit is recalculated from the
        page's cost and cursor is set to LastEvaluatedKey (None once the table
        is exhausted). On failure the job is left untouched.
        """
        request = self._build_request(job)
        try:
            resp = self._client.scan(**request)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error while executing scan: {e}")
            raise ScanError(f"Scan of {job.table_name} failed: {e}") from e

        rows = [item_from_dynamodb(it) for it in resp.get("Items", [])]
        consumed = float((resp.get("ConsumedCapacity") or {}).get("CapacityUnits", 0.0))
        cursor = resp.get("LastEvaluatedKey") or None

        previous = job.page_limit
        job.page_limit = next_page_limit(previous, job.max_consumed_capacity, consumed)
        job.cursor = cursor

        if self._on_event:
            self._on_event("scan.limit", {
                "consumed_capacity": consumed,
                "previous_limit": previous,
                "limit": job.page_limit,
            })

        return ScanPage(rows=rows, consumed_capacity=consumed, cursor=cursor)
