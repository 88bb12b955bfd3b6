"""Base64 text encoding for secret data values."""

import base64
import binascii

from ehrbase_seal.exceptions import MalformedEncodingError


def encode(data: bytes) -> str:
    """Encode raw bytes as standard base64 text.

    Args:
        data: The bytes to encode.

    Returns:
        The base64 text (ASCII, padded, no line breaks).

    """
    return base64.b64encode(data).decode("ascii")


def decode(text: str) -> bytes:
    """Decode standard base64 text.

    Args:
        text: The base64 text.

    Returns:
        The decoded bytes.

    Raises:
        MalformedEncodingError: If text contains characters outside the
            base64 alphabet or is incorrectly padded.

    """
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as err:
        raise MalformedEncodingError(f"Value is not valid base64: {err}") from err
