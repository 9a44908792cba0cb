from __future__ import annotations

from uuid import UUID, uuid4

from .errors import INVALID_ID, ValidationError, ValidationIssue


def new_id() -> UUID:
    return uuid4()


def to_bytes(value: UUID) -> bytes:
    return value.bytes


def from_bytes(raw: bytes | bytearray | memoryview) -> UUID:
    return UUID(bytes=bytes(raw))


def parse_uuid(text: object, field: str = "id") -> UUID:
    """Parse a textual UUID from the outside world.

    Malformed values raise ValidationError naming ``field``.
    """
    if isinstance(text, UUID):
        return text
    try:
        return UUID(str(text))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(
            [ValidationIssue(INVALID_ID, field, f"'{text}' is not a valid UUID.")]
        ) from None
