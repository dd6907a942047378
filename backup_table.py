# backup_table.py
import argparse
import logging
import sys

from env_config import configure_logging, get_clients, load_config
from app_backup.backup_controller import build_controller
from app_backup.backup_errors import BackupError

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    ap = argparse.ArgumentParser(
        description="Export a DynamoDB table to S3 (data file, manifest and _SUCCESS marker)."
    )
    ap.add_argument("--table", help="Source table name (DYNAMODB_TABLE)")
    ap.add_argument("--region", help="AWS region of the table and bucket (DYNAMODB_REGION)")
    ap.add_argument("--bucket", help="Output bucket name (BACKUP_BUCKET)")
    ap.add_argument("--max-capacity", type=float, help="Capacity units to aim for per scan page (MAX_CAPACITY)")
    ap.add_argument("--tick-seconds", type=float, help="Seconds between scan pages (TICK_SECONDS)")
    ap.add_argument("--profile", help="AWS profile name")
    return ap.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        config = load_config(
            table_name=args.table,
            region=args.region,
            bucket=args.bucket,
            max_consumed_capacity=args.max_capacity,
            tick_seconds=args.tick_seconds,
        )
        configure_logging(config.log_level)
        dynamodb, s3 = get_clients(config, profile=args.profile)
        result = build_controller(config, dynamodb, s3).run()
    except BackupError as e:
        logger.error(f"Backup failed: {e}")
        return 1

    print(f"[backup] Done. {result['rows']} items written to {result['location']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
