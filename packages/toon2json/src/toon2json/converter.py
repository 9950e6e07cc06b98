"""Convenience wrappers around encode/decode."""

import logging
from typing import Any

from .decode import decode
from .encode import encode
from .errors import ToonDecodeError
from .types import DecodeOptions, EncodeOptions, JsonValue, ValidationResult

logger = logging.getLogger(__name__)


def json_to_toon(data: Any, options: EncodeOptions | None = None) -> str:
    """Convert a JSON-compatible value to TOON text."""
    return encode(data, options)


def toon_to_json(text: str, options: DecodeOptions | None = None) -> JsonValue:
    """Convert TOON text back to a JSON-compatible value."""
    return decode(text, options)


class ToonConverter:
    """Static facade over the encoder and decoder."""

    @staticmethod
    def to_toon(data: Any, options: EncodeOptions | None = None) -> str:
        return encode(data, options)

    @staticmethod
    def to_json(text: str, options: DecodeOptions | None = None) -> JsonValue:
        return decode(text, options)

    @staticmethod
    def is_valid(text: str) -> bool:
        """Check whether text decodes cleanly in strict mode."""
        return ToonConverter.validate(text).valid

    @staticmethod
    def validate(text: str) -> ValidationResult:
        """
        Decode text in strict mode and report the first problem found.

        Returns:
            A ValidationResult; on failure it carries the error message,
            the error class name and the offending line number when known.
        """
        try:
            decode(text, DecodeOptions(strict=True))
        except ToonDecodeError as e:
            logger.debug("TOON validation failed: %s", e)
            return ValidationResult(
                valid=False,
                error=str(e),
                error_type=type(e).__name__,
                line_number=e.line_number,
            )
        return ValidationResult(valid=True)
