#backup_errors.py


class BackupError(Exception):
    """Base class for every failure that ends a backup run."""


class ConfigurationError(BackupError):
    """A required setting is missing or cannot be parsed."""


class ScanError(BackupError):
    """The DynamoDB scan request failed."""


class SerializationError(BackupError):
    """An attribute value did not match any known DynamoDB type."""


class UploadError(BackupError):
    """Writing an object to S3 failed."""

    def __init__(self, key, message):
        super().__init__(f"Error uploading {key} to S3: {message}")
        self.key = key
