#backup_manifest.py
import json
from typing import Any, Dict

MANIFEST_NAME = "DynamoDB-export"
MANIFEST_VERSION = 3


def build_manifest(bucket: str, table_name: str, timestamp: str, run_id: str) -> Dict[str, Any]:
    """
    Descriptor that points bulk-load tooling at the uploaded data object.
    Always a single mandatory entry.
    """
    return {
        "name": MANIFEST_NAME,
        "version": MANIFEST_VERSION,
        "entries": [
            {
                "url": f"s3://{bucket}/{table_name}/{timestamp}/{run_id}",
                "mandatory": True,
            }
        ],
    }


def manifest_body(manifest: Dict[str, Any]) -> bytes:
    return json.dumps(manifest, separators=(",", ":")).encode("utf-8")
