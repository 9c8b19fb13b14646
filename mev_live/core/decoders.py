"""Binary decoding for MEV LIVE.

Pure functions over the wire encodings the upstream feed uses for keys,
signatures and instruction data. Keys and payloads arrive as raw bytes,
base64 text, integer lists, or {"type": "Buffer", "data": [...]} wrappers.
"""

import base64
import binascii
import struct
from dataclasses import dataclass
from typing import Any, Union

import base58

from ..models.transactions import DecodedInstructionPayload

KEY_LENGTH = 32
SIGNATURE_LENGTH = 64

BytesLike = Union[bytes, bytearray, memoryview]


class DecodeError(ValueError):
    """Raised when bytes cannot be decoded into the requested shape."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason


@dataclass(frozen=True)
class PayloadLayout:
    """Byte offsets of the monitored instruction's arguments.

    The flashloan flag has been observed at offset 16 and at 24 across
    program versions; 16 is the default.
    """

    discriminator: int = 0
    min_profit: int = 1  # u64 LE
    compute_unit_limit: int = 9  # u32 LE
    no_failure: int = 13  # u8
    additional_fee_bp: int = 14  # u16 LE
    use_flashloan: int = 16  # u8

    @property
    def min_length(self) -> int:
        """Shortest payload that covers every field of this layout."""
        return max(
            self.discriminator + 1,
            self.min_profit + 8,
            self.compute_unit_limit + 4,
            self.no_failure + 1,
            self.additional_fee_bp + 2,
            self.use_flashloan + 1,
        )


DEFAULT_LAYOUT = PayloadLayout()


def _looks_base64(text: str) -> bool:
    return text.endswith("=") or "+" in text or "/" in text


def to_bytes(value: Any) -> bytes:
    """Normalize any supported wire encoding to bytes.

    Strings are base64 when they carry base64-only characters, otherwise
    base58, which is only unambiguous for fixed-length keys. Dicts are
    Buffer-style wrappers with a "data" field.

    Raises:
        DecodeError: unsupported shape or undecodable text.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, dict):
        if "data" not in value:
            raise DecodeError("InvalidEncoding", "wrapper without data field")
        return to_bytes(value["data"])
    if isinstance(value, (list, tuple)):
        try:
            return bytes(value)
        except (TypeError, ValueError) as exc:
            raise DecodeError("InvalidEncoding", f"bad byte list: {exc}") from exc
    if isinstance(value, str):
        try:
            if _looks_base64(value):
                return base64.b64decode(value, validate=True)
            return base58.b58decode(value)
        except (binascii.Error, ValueError) as exc:
            raise DecodeError("InvalidEncoding", f"undecodable text: {value[:16]!r}") from exc
    raise DecodeError("InvalidEncoding", f"unsupported type: {type(value).__name__}")


def decode_key(value: Any) -> str:
    """Decode a public key to base58 text.

    Raises:
        DecodeError: reason "InvalidLength" unless exactly 32 bytes.
    """
    raw = to_bytes(value)
    if len(raw) != KEY_LENGTH:
        raise DecodeError("InvalidLength", f"key must be {KEY_LENGTH} bytes, got {len(raw)}")
    return base58.b58encode(raw).decode()


def decode_signature(value: Any) -> str:
    """Canonicalize a signature to base58 text.

    Base64 text of a 64-byte signature is re-encoded; other text is taken
    to be base58 already and passed through. Bytes-like input is encoded.
    """
    if isinstance(value, str):
        if not value:
            raise DecodeError("InvalidLength", "empty signature")
        if _looks_base64(value):
            try:
                raw = base64.b64decode(value, validate=True)
            except (binascii.Error, ValueError):
                return value
            if len(raw) == SIGNATURE_LENGTH:
                return base58.b58encode(raw).decode()
        return value
    raw = to_bytes(value)
    if not raw:
        raise DecodeError("InvalidLength", "empty signature")
    return base58.b58encode(raw).decode()


def decode_base64(text: str) -> bytes:
    """Strict base64 for packed byte fields (instruction data, index lists)."""
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError("InvalidEncoding", f"not base64: {text[:16]!r}") from exc


def decode_instruction_data(value: Any) -> bytes:
    """Instruction data is base64 text when it arrives as a string."""
    if isinstance(value, str):
        return decode_base64(value)
    if value is None:
        return b""
    return to_bytes(value)


def decode_instruction_payload(
    data: BytesLike,
    layout: PayloadLayout = DEFAULT_LAYOUT,
) -> DecodedInstructionPayload:
    """Extract the fixed-layout instruction arguments.

    Raises:
        DecodeError: reason "TooShort" if data is shorter than the layout.
    """
    data = bytes(data)
    if len(data) < layout.min_length:
        raise DecodeError(
            "TooShort", f"payload needs {layout.min_length} bytes, got {len(data)}"
        )
    return DecodedInstructionPayload(
        discriminator=data[layout.discriminator],
        min_profit_lamports=struct.unpack_from("<Q", data, layout.min_profit)[0],
        compute_unit_limit=struct.unpack_from("<I", data, layout.compute_unit_limit)[0],
        no_failure_flag=data[layout.no_failure],
        additional_fee_basis_points=struct.unpack_from("<H", data, layout.additional_fee_bp)[0],
        use_flashloan=data[layout.use_flashloan] == 1,
    )
