import json

import pytest

from app_backup.backup_errors import UploadError
from app_backup.backup_manifest import build_manifest, manifest_body
from app_backup.backup_uploader import BackupUploader
from conftest import FakeS3


def test_manifest_has_one_mandatory_entry():
    manifest = build_manifest("bucket", "table", "2024-01-02-03-04-05", "run")
    assert manifest == {
        "name": "DynamoDB-export",
        "version": 3,
        "entries": [{"url": "s3://bucket/table/2024-01-02-03-04-05/run", "mandatory": True}],
    }


def test_manifest_body_is_compact_json():
    body = manifest_body(build_manifest("b", "t", "ts", "r"))
    assert body == b'{"name":"DynamoDB-export","version":3,"entries":[{"url":"s3://b/t/ts/r","mandatory":true}]}'
    assert json.loads(body)["entries"][0]["mandatory"] is True


def test_put_returns_location():
    s3 = FakeS3()
    location = BackupUploader(s3, "bucket").put("t/ts/_SUCCESS", b"")
    assert location == "s3://bucket/t/ts/_SUCCESS"
    assert s3.objects[("bucket", "t/ts/_SUCCESS")] == b""


def test_put_wraps_client_errors():
    s3 = FakeS3(fail_keys={"t/ts/manifest"})
    with pytest.raises(UploadError) as excinfo:
        BackupUploader(s3, "bucket").put("t/ts/manifest", b"{}")
    assert excinfo.value.key == "t/ts/manifest"
    assert "AccessDenied" in str(excinfo.value)


def test_put_rejects_non_200_status():
    with pytest.raises(UploadError):
        BackupUploader(FakeS3(status=503), "bucket").put("k", b"x")
