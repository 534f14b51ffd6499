"""
Reversible wrapping of message bodies at rest.

This is obfuscation, not encryption. The transform key is a fixed constant
shared by every client, so anyone holding the client code can read stored
bodies. Stored rows written by any client version must stay readable by all
others, so the key and the current format must not change.

Formats:
- json-v1 (current): {"encrypted": b64(utf8(text + "|" + key[:8])), "iv": key[:16], "timestamp": ms}
- legacy-pipe: "<b64 or plain text>|<key fragment>"
"""

from __future__ import annotations

import base64
import binascii
import time
from enum import Enum
from typing import Callable, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from joysync.infra.logging_config import get_logger

logger = get_logger("envelope_codec")

SHARED_KEY = "joy-sync-shared-key-2024"
KEY_SUFFIX = "|" + SHARED_KEY[:8]
IV = SHARED_KEY[:16]
LEGACY_SEPARATOR = "|"
LEGACY_MIN_KEY_LENGTH = 6

# Surrogatepass keeps lone surrogates round-trippable instead of failing encode.
_TEXT_ERRORS = "surrogatepass"


class EnvelopeFormat(str, Enum):
    LEGACY_PIPE = "legacy-pipe"
    JSON_V1 = "json-v1"


CURRENT_FORMAT = EnvelopeFormat.JSON_V1


class JsonEnvelope(BaseModel):
    """Wire shape of the current format. Extra keys written by other clients are ignored."""

    encrypted: str = Field(min_length=1)
    iv: str = Field(min_length=1)
    timestamp: Optional[int] = None

    model_config = {"extra": "ignore"}


def _b64encode_text(text: str) -> str:
    return base64.b64encode(text.encode("utf-8", _TEXT_ERRORS)).decode("ascii")


def _b64decode_text(payload: str) -> str:
    return base64.b64decode(payload, validate=True).decode("utf-8", _TEXT_ERRORS)


def _parse_json_envelope(text: str) -> Optional[JsonEnvelope]:
    if not text.lstrip().startswith("{"):
        return None
    try:
        return JsonEnvelope.model_validate_json(text)
    except ValidationError:
        return None


def _legacy_parts(text: str) -> Optional[tuple[str, str]]:
    parts = text.split(LEGACY_SEPARATOR)
    if len(parts) != 2:
        return None
    message_part, key_part = parts[0].strip(), parts[1].strip()
    if len(key_part) < LEGACY_MIN_KEY_LENGTH:
        return None
    return message_part, key_part


def detect_format(text: str) -> Optional[EnvelopeFormat]:
    """Return the envelope format of text, or None for plain text."""
    if not isinstance(text, str) or not text:
        return None
    if _parse_json_envelope(text) is not None:
        return EnvelopeFormat.JSON_V1
    if _legacy_parts(text) is not None:
        return EnvelopeFormat.LEGACY_PIPE
    return None


def is_envelope(text: str) -> bool:
    """True when text carries an envelope marker of any supported format."""
    return detect_format(text) is not None


def encode(plain_text: str, *, now_ms: Optional[int] = None) -> str:
    """Wrap plain text in the current envelope format. Never raises."""
    text = plain_text if isinstance(plain_text, str) else ("" if plain_text is None else str(plain_text))
    envelope = JsonEnvelope(
        encrypted=_b64encode_text(text + KEY_SUFFIX),
        iv=IV,
        timestamp=now_ms if now_ms is not None else int(time.time() * 1000),
    )
    return envelope.model_dump_json()


def _decode_json_v1(text: str) -> str:
    envelope = JsonEnvelope.model_validate_json(text)
    unwrapped = _b64decode_text(envelope.encrypted)
    if unwrapped.endswith(KEY_SUFFIX):
        return unwrapped[: -len(KEY_SUFFIX)]
    return unwrapped


def _decode_legacy_pipe(text: str) -> str:
    parts = _legacy_parts(text)
    if parts is None:
        raise ValueError("not a legacy envelope")
    message_part, _ = parts
    try:
        return _b64decode_text(message_part)
    except (binascii.Error, ValueError):
        # Oldest rows stored the text itself in front of the key fragment.
        return message_part


_DECODERS: Dict[EnvelopeFormat, Callable[[str], str]] = {
    EnvelopeFormat.JSON_V1: _decode_json_v1,
    EnvelopeFormat.LEGACY_PIPE: _decode_legacy_pipe,
}


def decode(envelope: str) -> str:
    """
    Unwrap an envelope; return any other input unchanged.

    Safe to apply to every stored body. On any parse failure the original
    input is returned.
    """
    if not isinstance(envelope, str):
        return "" if envelope is None else str(envelope)
    envelope_format = detect_format(envelope)
    if envelope_format is None:
        return envelope
    try:
        return _DECODERS[envelope_format](envelope)
    except (ValidationError, binascii.Error, ValueError) as e:
        logger.debug("Undecodable %s envelope: %s", envelope_format.value, e)
        return envelope
