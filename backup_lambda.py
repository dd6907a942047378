# backup_lambda.py
import logging

from env_config import configure_logging, get_clients, load_config
from app_backup.backup_controller import build_controller

logger = logging.getLogger(__name__)


def handler(event, context):
    """
    Scheduled Lambda entry point. Settings come from the function's
    environment; any failure is logged and re-raised so the invocation is
    reported as failed.
    """
    logger.info("Parsing environment variables")
    config = load_config()
    configure_logging(config.log_level)

    dynamodb, s3 = get_clients(config)
    controller = build_controller(config, dynamodb, s3)

    try:
        result = controller.run()
    except Exception as e:
        logger.error(f"Failed to execute backup: {e}")
        raise

    logger.info("Lambda complete")
    return result
