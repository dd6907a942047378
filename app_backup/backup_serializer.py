#backup_serializer.py
import json
from typing import Dict

from app_backup.backup_errors import SerializationError
from app_backup.backup_model import AttributeKind, AttributeValue


# Binary payloads are written as their raw bytes. Decoding with surrogateescape
# and encoding the finished row the same way keeps every byte intact.
_BINARY_ENCODING = ("utf-8", "surrogateescape")


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _raw(payload: bytes) -> str:
    return '"' + payload.decode(*_BINARY_ENCODING) + '"'


def serialize_row(row: Dict[str, AttributeValue]) -> str:
    """
    Render a row (or a map value) as {"key":{<tag>},...}.
    Attribute order follows the mapping; readers must not depend on it.
    """
    return "{" + ",".join(serialize_attribute(k, v) for k, v in row.items()) + "}"


def serialize_item(row: Dict[str, AttributeValue]) -> bytes:
    return serialize_row(row).encode(*_BINARY_ENCODING)


def serialize_attribute(key: str, value: AttributeValue) -> str:
    """
    Render one value as a "tag":payload token. With a key the token is wrapped
    as "key":{...}; list elements are rendered with an empty key and come back
    bare.
    """
    token = _tag_token(value)
    if key:
        return f"{_quote(key)}:{{{token}}}"
    return token


def _tag_token(value: AttributeValue) -> str:
    kind = getattr(value, "kind", None)

    if kind is AttributeKind.MAP:
        return '"m":' + serialize_row(value.value)

    if kind is AttributeKind.BOOL:
        return '"bOOL":' + ("true" if value.value else "false")

    if kind is AttributeKind.BINARY:
        return '"b":' + _raw(value.value)

    if kind is AttributeKind.BINARY_SET:
        return '"bS":[' + ",".join(_raw(b) for b in value.value) + "]"

    if kind is AttributeKind.LIST:
        elements = ["{" + serialize_attribute("", v) + "}" for v in value.value]
        return '"l":[' + ",".join(elements) + "]"

    if kind is AttributeKind.NUMBER:
        return f'"n":"{value.value}"'

    if kind is AttributeKind.NUMBER_SET:
        return '"nS":[' + ",".join(f'"{n}"' for n in value.value) + "]"

    if kind is AttributeKind.NULL:
        # The flag's own value, quoted
        return '"nULLValue":"' + ("true" if value.value else "false") + '"'

    if kind is AttributeKind.STRING:
        return '"s":' + _quote(value.value)

    if kind is AttributeKind.STRING_SET:
        return '"sS":[' + ",".join(_quote(s) for s in value.value) + "]"

    raise SerializationError(f"Cannot serialize type: {value!r}")
