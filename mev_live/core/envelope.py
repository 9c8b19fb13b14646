"""Envelope normalization for MEV LIVE.

All knowledge of upstream wire shapes lives here. Both the plain shape
{slot, transaction: {signatures, message}, meta} and the streaming update
shape {slot, transaction: {signature, transaction: {...}, meta}} are
accepted and decoded eagerly into a TransactionEnvelope.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..models.transactions import (
    LoadedAddresses,
    MessageHeader,
    RawInstruction,
    TableLookup,
    TransactionEnvelope,
)
from .decoders import (
    DecodeError,
    decode_base64,
    decode_instruction_data,
    decode_key,
    decode_signature,
    to_bytes,
)

logger = logging.getLogger(__name__)


class EnvelopeValidationError(ValueError):
    """Raised when an envelope carries no decodable transaction message."""


def _get(data: Optional[Dict[str, Any]], *names: str, default: Any = None) -> Any:
    """First present key among camelCase / snake_case spellings."""
    if not data:
        return default
    for name in names:
        if name in data and data[name] is not None:
            return data[name]
    return default


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _index_list(value: Any) -> List[int]:
    """Account index lists arrive as int lists or packed byte buffers.

    Text is always base64; the base58 fallback only applies to keys.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)) and all(isinstance(v, int) for v in value):
        return list(value)
    try:
        if isinstance(value, str):
            return list(decode_base64(value))
        return list(to_bytes(value))
    except DecodeError:
        logger.debug("Undecodable index list: %r", value)
        return []


def _key_or_none(value: Any) -> Optional[str]:
    try:
        return decode_key(value)
    except DecodeError as exc:
        logger.debug("Undecodable key (%s): %s", exc.reason, exc)
        return None


def _keys(values: Optional[Sequence[Any]]) -> List[Optional[str]]:
    return [_key_or_none(v) for v in (values or [])]


def _unwrap(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten the streaming update shape into the plain shape."""
    tx = raw.get("transaction")
    if isinstance(tx, dict) and isinstance(tx.get("transaction"), dict):
        inner = tx["transaction"]
        signatures = _get(inner, "signatures") or ([tx["signature"]] if tx.get("signature") else [])
        return {
            "slot": _get(raw, "slot", default=tx.get("slot")),
            "transaction": {"signatures": signatures, "message": inner.get("message")},
            "meta": tx.get("meta"),
        }
    return raw


def _loaded_addresses(meta: Optional[Dict[str, Any]]) -> Optional[LoadedAddresses]:
    loaded = _get(meta, "loadedAddresses", "loaded_addresses")
    if loaded is not None:
        writable = _keys(_get(loaded, "writable"))
        readonly = _keys(_get(loaded, "readonly"))
    else:
        writable = _keys(_get(meta, "loadedWritableAddresses", "loaded_writable_addresses"))
        readonly = _keys(_get(meta, "loadedReadonlyAddresses", "loaded_readonly_addresses"))
    if not writable and not readonly:
        return None
    return LoadedAddresses(writable=writable, readonly=readonly)


def _instructions(raw_instructions: Optional[Sequence[Dict[str, Any]]]) -> List[RawInstruction]:
    instructions: List[RawInstruction] = []
    for ix in raw_instructions or []:
        try:
            data = decode_instruction_data(_get(ix, "data"))
        except DecodeError as exc:
            logger.debug("Undecodable instruction data: %s", exc)
            data = b""
        instructions.append(
            RawInstruction(
                program_id_index=_int(_get(ix, "programIdIndex", "program_id_index"), -1),
                accounts=tuple(_index_list(_get(ix, "accounts"))),
                data=data,
            )
        )
    return instructions


def _table_lookups(raw_lookups: Optional[Sequence[Dict[str, Any]]]) -> List[TableLookup]:
    lookups: List[TableLookup] = []
    for lookup in raw_lookups or []:
        address = _key_or_none(_get(lookup, "accountKey", "account_key"))
        if address is None:
            continue
        lookups.append(
            TableLookup(
                table_address=address,
                writable_indexes=tuple(_index_list(_get(lookup, "writableIndexes", "writable_indexes"))),
                readonly_indexes=tuple(_index_list(_get(lookup, "readonlyIndexes", "readonly_indexes"))),
            )
        )
    return lookups


def normalize_envelope(raw: Dict[str, Any]) -> TransactionEnvelope:
    """Decode a raw upstream envelope into a TransactionEnvelope.

    Undecodable keys become None placeholders rather than errors.

    Raises:
        EnvelopeValidationError: no transaction message present.
    """
    if not isinstance(raw, dict):
        raise EnvelopeValidationError(f"Envelope must be a dict, got {type(raw).__name__}")
    flat = _unwrap(raw)
    tx = flat.get("transaction")
    message = _get(tx, "message") if isinstance(tx, dict) else None
    if not isinstance(message, dict):
        raise EnvelopeValidationError("Envelope has no transaction message")

    signatures = _get(tx, "signatures", default=[])
    try:
        signature = decode_signature(signatures[0]) if signatures else "N/A"
    except DecodeError:
        signature = "N/A"

    header_raw = _get(message, "header", default={})
    header = MessageHeader(
        num_required_signatures=_int(_get(header_raw, "numRequiredSignatures", "num_required_signatures")),
        num_readonly_signed_accounts=_int(
            _get(header_raw, "numReadonlySignedAccounts", "num_readonly_signed_accounts")
        ),
        num_readonly_unsigned_accounts=_int(
            _get(header_raw, "numReadonlyUnsignedAccounts", "num_readonly_unsigned_accounts")
        ),
    )

    meta = flat.get("meta") or {}
    return TransactionEnvelope(
        signature=signature,
        slot=_int(flat.get("slot")),
        header=header,
        account_keys=_keys(_get(message, "accountKeys", "account_keys")),
        instructions=_instructions(_get(message, "instructions")),
        table_lookups=_table_lookups(_get(message, "addressTableLookups", "address_table_lookups")),
        loaded_addresses=_loaded_addresses(meta),
        error=_get(meta, "err", "errorInfo", "error_info"),
        fee=_int(_get(meta, "fee")),
        compute_units_consumed=_int(_get(meta, "computeUnitsConsumed", "compute_units_consumed")),
        pre_balances=[_int(b) for b in _get(meta, "preBalances", "pre_balances", default=[])],
        post_balances=[_int(b) for b in _get(meta, "postBalances", "post_balances", default=[])],
        log_messages=[str(m) for m in _get(meta, "logMessages", "log_messages", default=[])],
    )
