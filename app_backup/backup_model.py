#backup_model.py
from __future__ import annotations
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from app_backup.backup_errors import ConfigurationError, SerializationError


TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M-%S"


class AttributeKind(str, Enum):
    MAP = "M"
    BOOL = "BOOL"
    BINARY = "B"
    BINARY_SET = "BS"
    LIST = "L"
    NUMBER = "N"
    NUMBER_SET = "NS"
    NULL = "NULL"
    STRING = "S"
    STRING_SET = "SS"


# Payload type each kind is stored as once built by its constructor
_PAYLOAD_TYPES = {
    AttributeKind.MAP: dict,
    AttributeKind.BOOL: bool,
    AttributeKind.BINARY: bytes,
    AttributeKind.BINARY_SET: tuple,
    AttributeKind.LIST: tuple,
    AttributeKind.NUMBER: str,
    AttributeKind.NUMBER_SET: tuple,
    AttributeKind.NULL: bool,
    AttributeKind.STRING: str,
    AttributeKind.STRING_SET: tuple,
}


@dataclass(frozen=True)
class AttributeValue:
    """
    One typed DynamoDB attribute value. Exactly one kind is set, chosen by the
    constructor used to build it.

    - Numbers stay as the decimal string DynamoDB sent (no float conversion).
    - Binary payloads stay as bytes.
    - Sets keep the order they arrived in.
    """

    kind: AttributeKind
    value: Any

    def __post_init__(self):
        if not isinstance(self.kind, AttributeKind):
            raise SerializationError(f"Cannot serialize type: {self.kind!r}")
        if not isinstance(self.value, _PAYLOAD_TYPES[self.kind]):
            raise SerializationError(
                f"{self.kind.name} value must be {_PAYLOAD_TYPES[self.kind].__name__}, got {self.value!r}"
            )

    # -------------------------
    # Constructors
    # -------------------------
    @classmethod
    def map(cls, entries: Dict[str, "AttributeValue"]) -> "AttributeValue":
        return cls(AttributeKind.MAP, dict(entries))

    @classmethod
    def list(cls, elements: List["AttributeValue"]) -> "AttributeValue":
        return cls(AttributeKind.LIST, tuple(elements))

    @classmethod
    def bool(cls, flag: bool) -> "AttributeValue":
        return cls(AttributeKind.BOOL, bool(flag))

    @classmethod
    def null(cls, flag: bool = True) -> "AttributeValue":
        return cls(AttributeKind.NULL, bool(flag))

    @classmethod
    def string(cls, text: str) -> "AttributeValue":
        return cls(AttributeKind.STRING, text)

    @classmethod
    def number(cls, digits: str) -> "AttributeValue":
        return cls(AttributeKind.NUMBER, str(digits))

    @classmethod
    def binary(cls, payload: bytes) -> "AttributeValue":
        return cls(AttributeKind.BINARY, bytes(payload))

    @classmethod
    def string_set(cls, members: List[str]) -> "AttributeValue":
        return cls(AttributeKind.STRING_SET, tuple(members))

    @classmethod
    def number_set(cls, members: List[str]) -> "AttributeValue":
        return cls(AttributeKind.NUMBER_SET, tuple(str(m) for m in members))

    @classmethod
    def binary_set(cls, members: List[bytes]) -> "AttributeValue":
        return cls(AttributeKind.BINARY_SET, tuple(bytes(m) for m in members))

    # -------------------------
    # DynamoDB wire format
    # -------------------------
    @classmethod
    def from_dynamodb(cls, wire: Dict[str, Any]) -> "AttributeValue":
        """
        Build a value from the low-level client format, e.g. {"S": "x"} or
        {"L": [{"N": "1"}]}. The dict must carry exactly one type key.
        """
        if not isinstance(wire, dict):
            raise SerializationError(f"Cannot serialize type: {wire!r}")

        present = [k for k, v in wire.items() if v is not None]
        if len(present) != 1:
            raise SerializationError(
                f"Attribute value must carry exactly one type, got {sorted(present) or 'none'}"
            )

        tag = present[0]
        payload = wire[tag]
        try:
            kind = AttributeKind(tag)
        except ValueError:
            raise SerializationError(f"Cannot serialize type: {tag}") from None

        try:
            return cls._from_payload(kind, payload)
        except (AttributeError, TypeError, ValueError) as e:
            raise SerializationError(f"Malformed {tag} value: {payload!r}") from e

    @classmethod
    def _from_payload(cls, kind: AttributeKind, payload: Any) -> "AttributeValue":
        if kind is AttributeKind.MAP:
            return cls.map({k: cls.from_dynamodb(v) for k, v in payload.items()})
        if kind is AttributeKind.LIST:
            return cls.list([cls.from_dynamodb(v) for v in payload])
        if kind is AttributeKind.BOOL:
            return cls.bool(payload)
        if kind is AttributeKind.NULL:
            return cls.null(payload)
        if kind is AttributeKind.STRING:
            return cls.string(payload)
        if kind is AttributeKind.NUMBER:
            return cls.number(payload)
        if kind is AttributeKind.BINARY:
            return cls.binary(payload)
        if kind is AttributeKind.STRING_SET:
            return cls.string_set(payload)
        if kind is AttributeKind.NUMBER_SET:
            return cls.number_set(payload)
        return cls.binary_set(payload)


def item_from_dynamodb(wire_item: Dict[str, Dict[str, Any]]) -> Dict[str, AttributeValue]:
    # Convert one scanned item (attribute name -> wire value) into a row
    return {k: AttributeValue.from_dynamodb(v) for k, v in wire_item.items()}


@dataclass
class ScanPage:
    rows: List[Dict[str, AttributeValue]]
    consumed_capacity: float
    cursor: Optional[Dict[str, Any]] = None


class BackupState(str, Enum):
    SCANNING = "scanning"
    UPLOADING = "uploading"
    DONE = "done"
    FAILED = "failed"


def new_run_id() -> str:
    return str(uuid.uuid4())


def format_timestamp(moment: Optional[datetime] = None) -> str:
    return (moment or datetime.now()).strftime(TIMESTAMP_FORMAT)


@dataclass
class BackupJob:
    """
    State of a single backup run. Only the controller mutates it; the scanner
    updates page_limit and cursor after each page.
    """

    table_name: str
    bucket: str
    max_consumed_capacity: float
    run_id: str = field(default_factory=new_run_id)
    timestamp: str = field(default_factory=format_timestamp)

    page_limit: int = 1
    cursor: Optional[Dict[str, Any]] = None
    buffer: bytearray = field(default_factory=bytearray, repr=False)
    iteration_count: int = 0
    row_count: int = 0
    state: BackupState = BackupState.SCANNING

    def __post_init__(self):
        ceiling = self.max_consumed_capacity
        if not isinstance(ceiling, (int, float)) or not math.isfinite(ceiling) or ceiling <= 0:
            raise ConfigurationError(f"max_consumed_capacity must be a finite number > 0, got {ceiling!r}")

    @property
    def prefix(self) -> str:
        return f"{self.table_name}/{self.timestamp}"

    def s3_key(self, name: str) -> str:
        return f"{self.prefix}/{name}"

    @property
    def data_key(self) -> str:
        return self.s3_key(self.run_id)

    @property
    def data_url(self) -> str:
        return f"s3://{self.bucket}/{self.data_key}"

    def append_row(self, serialized: bytes) -> None:
        self.buffer.extend(serialized)
        self.buffer.extend(b"\n")
        self.row_count += 1
