"""Base64 and data-URI helpers for audio transport."""

import base64
import binascii
import logging
import re
from typing import Optional, Tuple

from ..exceptions import DecodeError

logger = logging.getLogger(__name__)

DATA_URI_AUDIO_PREFIX = "data:audio"

_DATA_URI_RE = re.compile(r"^data:(?P<mime>audio/[^;,]+(?:;[^;,]+=[^;,]+)*);base64,(?P<body>.*)$", re.DOTALL)
_DATA_URI_HEADER_RE = re.compile(r"^data:audio/[^;,]+(?:;[^;,]+=[^;,]+)*;base64,")


def encode(data: bytes) -> str:
    """Encode bytes as standard base64 text without line wrapping."""
    return base64.b64encode(data).decode("ascii")


def decode(text: str) -> bytes:
    """Decode standard base64 text.

    Raises:
        DecodeError: If the text is not valid base64. No partial result is returned.
    """
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Malformed base64 payload: {e}") from e


def is_data_uri(payload: str) -> bool:
    """True if the payload is a self-describing audio data URI."""
    return payload.startswith(DATA_URI_AUDIO_PREFIX)


def build_data_uri(data: bytes, mime_type: str) -> str:
    """Wrap bytes into a ``data:<mime>;base64,<body>`` payload."""
    return f"data:{mime_type};base64,{encode(data)}"


def parse_data_uri(payload: str) -> Tuple[str, bytes]:
    """Split an audio data URI into its mime type and decoded body.

    Returns:
        Tuple of (mime_type, body_bytes). The mime type keeps any parameters,
        e.g. ``audio/webm;codecs=opus``.
    """
    match = _DATA_URI_RE.match(payload)
    if not match:
        raise DecodeError(f"Malformed audio data URI: {payload[:40]!r}")
    return match.group("mime"), decode(match.group("body"))


def strip_data_uri_header(payload: str) -> str:
    """Remove a leading audio data-URI header, leaving the bare base64 body."""
    return _DATA_URI_HEADER_RE.sub("", payload, count=1)


def data_uri_mime_type(payload: str) -> Optional[str]:
    """Mime type declared in an audio data-URI header, or None if there is none."""
    match = _DATA_URI_HEADER_RE.match(payload)
    if not match:
        return None
    return match.group(0)[len("data:"):-len(";base64,")]
