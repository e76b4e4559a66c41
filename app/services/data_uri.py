# app/services/data_uri.py
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Optional

from app.core.config import settings
from app.core.errors import EmptyPayload, InvalidEncoding, InvalidFormat, PayloadTooLarge

logger = logging.getLogger(__name__)

DATA_URI_SCHEME = "data:"
BASE64_MARKER = "base64,"
DEFAULT_MIME_TYPE = "application/octet-stream"
ASCII_WHITESPACE = " \t\n\f\r"


@dataclass(frozen=True)
class DecodedPayload:
    """Raw bytes pulled out of a data URI."""
    data: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.data)


def extract_mime_type(prefix: str) -> str:
    """
    Extracts the MIME type from the part of a data URI before the base64 marker.

    "data:image/png;" -> "image/png"
    "data:text/plain;charset=utf-8;" -> "text/plain"
    "data:;" -> "application/octet-stream"
    """
    media = prefix[len(DATA_URI_SCHEME):]
    mime_type = media.split(";", 1)[0].strip()
    return mime_type or DEFAULT_MIME_TYPE


def normalize_base64(payload: str) -> str:
    """
    Applies forgiving base64 rules so the result can be decoded strictly.

    ASCII whitespace is removed, trailing padding is optional, and a payload
    whose length leaves a single dangling character is rejected.

    Raises:
        InvalidEncoding: Misplaced padding or an impossible length
    """
    stripped = "".join(ch for ch in payload if ch not in ASCII_WHITESPACE)
    if len(stripped) % 4 == 0 and stripped.endswith("="):
        stripped = stripped[:-2] if stripped.endswith("==") else stripped[:-1]
    if len(stripped) % 4 == 1 or "=" in stripped:
        raise InvalidEncoding("Invalid base64 encoding")
    return stripped + "=" * (-len(stripped) % 4)


def decode_data_uri(uri: str, max_size: Optional[int] = None) -> DecodedPayload:
    """
    Parses and validates a base64 data URI.

    Args:
        uri: A string of the form ``data:<mime>;base64,<payload>``
        max_size: Largest accepted decoded size in bytes, defaults to
            settings.MAX_FILE_SIZE_BYTES

    Returns:
        DecodedPayload with the decoded bytes and MIME type

    Raises:
        InvalidFormat: Not a data URI, or no single base64 marker
        EmptyPayload: Nothing after the marker, or it decodes to 0 bytes
        InvalidEncoding: Payload is not valid base64
        PayloadTooLarge: Decoded payload exceeds max_size
    """
    if not isinstance(uri, str) or not uri.startswith(DATA_URI_SCHEME):
        raise InvalidFormat("Invalid data URI format")

    parts = uri.split(BASE64_MARKER)
    if len(parts) != 2:
        raise InvalidFormat("Invalid data URI: missing base64 data")

    prefix, base64_string = parts

    if not base64_string:
        raise EmptyPayload("Invalid data URI: empty base64 data")

    normalized = normalize_base64(base64_string)
    try:
        data = base64.b64decode(normalized, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.debug(f"Rejecting data URI with bad base64 payload: {e}")
        raise InvalidEncoding("Invalid base64 encoding") from e

    if len(data) == 0:
        raise EmptyPayload("Invalid data URI: decoded to 0 bytes")

    if max_size is None:
        max_size = settings.MAX_FILE_SIZE_BYTES
    if len(data) > max_size:
        raise PayloadTooLarge("File too large")

    return DecodedPayload(data=data, mime_type=extract_mime_type(prefix))
