from __future__ import annotations

import sys
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app_backup.backup_model import BackupJob  # noqa: E402


def client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": f"{code} raised"}}, operation)


class FakeDynamoDB:
    """Returns the given scan responses in order and records each request."""

    def __init__(self, pages, error: Exception | None = None):
        self._pages = list(pages)
        self._error = error
        self.calls = []

    def scan(self, **kwargs):
        self.calls.append(kwargs)
        if self._error is not None:
            raise self._error
        return self._pages.pop(0)


class EndlessDynamoDB:
    """Every page carries a cursor, so a scan against it never finishes."""

    def __init__(self):
        self.calls = []

    def scan(self, **kwargs):
        self.calls.append(kwargs)
        n = len(self.calls)
        return page([{"id": {"S": f"row-{n}"}}], capacity=1.0, cursor={"id": {"S": f"row-{n}"}})


class FakeS3:
    """Stores put_object bodies by key; keys in fail_keys raise ClientError."""

    def __init__(self, fail_keys=(), status: int = 200):
        self.fail_keys = set(fail_keys)
        self.status = status
        self.attempts = []
        self.objects = {}

    def put_object(self, Bucket, Key, Body):
        self.attempts.append(Key)
        if Key in self.fail_keys:
            raise client_error("AccessDenied", "PutObject")
        self.objects[(Bucket, Key)] = Body
        return {"ResponseMetadata": {"HTTPStatusCode": self.status}}


def page(items, capacity=1.0, cursor=None):
    resp = {
        "Items": items,
        "Count": len(items),
        "ConsumedCapacity": {"TableName": "table", "CapacityUnits": capacity},
    }
    if cursor is not None:
        resp["LastEvaluatedKey"] = cursor
    return resp


@pytest.fixture
def job():
    return BackupJob(
        table_name="table",
        bucket="bucket",
        max_consumed_capacity=5.0,
        run_id="runId",
        timestamp="timestamp",
    )


@pytest.fixture
def events():
    recorded = []

    def on_event(name, fields):
        recorded.append((name, fields))

    on_event.recorded = recorded
    return on_event
