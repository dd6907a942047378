import pytest

from app_backup.backup_errors import ScanError
from app_backup.backup_model import AttributeValue
from app_backup.backup_scanner import AdaptiveScanner, next_page_limit
from conftest import FakeDynamoDB, client_error, page


@pytest.mark.parametrize(
    "limit, ceiling, cost, expected",
    [
        (10, 5.0, 50.0, 1),
        (1, 10.0, 0.5, 20),
        (4, 2.5, 2.0, 5),
        (7, 3.0, 3.0, 7),
        (3, 1.0, 4.0, 1),
        (100, 25.0, 30.0, 83),
    ],
)
def test_next_page_limit(limit, ceiling, cost, expected):
    assert next_page_limit(limit, ceiling, cost) == expected


def test_next_page_limit_ignores_zero_cost():
    assert next_page_limit(6, 5.0, 0.0) == 6


def test_first_page_request_has_no_start_key(job):
    client = FakeDynamoDB([page([], capacity=0.5)])
    AdaptiveScanner(client).fetch_page(job)

    assert client.calls == [{
        "TableName": "table",
        "ConsistentRead": True,
        "Limit": 1,
        "ReturnConsumedCapacity": "TOTAL",
    }]


def test_fetch_page_advances_cursor_and_limit(job):
    cursor = {"id": {"S": "a"}}
    client = FakeDynamoDB([
        page([{"id": {"S": "a"}}], capacity=0.5, cursor=cursor),
        page([{"id": {"S": "b"}}], capacity=10.0),
    ])
    scanner = AdaptiveScanner(client)

    first = scanner.fetch_page(job)
    assert first.rows == [{"id": AttributeValue.string("a")}]
    assert first.consumed_capacity == 0.5
    assert job.cursor == cursor
    assert job.page_limit == 10

    second = scanner.fetch_page(job)
    assert client.calls[1]["ExclusiveStartKey"] == cursor
    assert client.calls[1]["Limit"] == 10
    assert second.cursor is None
    assert job.cursor is None
    assert job.page_limit == 5


def test_missing_consumed_capacity_keeps_limit(job):
    job.page_limit = 3
    client = FakeDynamoDB([{"Items": []}])
    result = AdaptiveScanner(client).fetch_page(job)
    assert result.consumed_capacity == 0.0
    assert job.page_limit == 3


def test_limit_event_is_emitted(job, events):
    client = FakeDynamoDB([page([], capacity=2.5)])
    AdaptiveScanner(client, on_event=events).fetch_page(job)
    assert events.recorded == [
        ("scan.limit", {"consumed_capacity": 2.5, "previous_limit": 1, "limit": 2}),
    ]


def test_transport_failure_raises_scan_error_and_leaves_job(job):
    job.page_limit = 4
    job.cursor = {"id": {"S": "x"}}
    client = FakeDynamoDB([], error=client_error("ProvisionedThroughputExceededException", "Scan"))

    with pytest.raises(ScanError) as excinfo:
        AdaptiveScanner(client).fetch_page(job)

    assert "ProvisionedThroughputExceededException" in str(excinfo.value)
    assert job.page_limit == 4
    assert job.cursor == {"id": {"S": "x"}}
