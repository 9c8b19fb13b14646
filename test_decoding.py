"""Decoder and envelope normalization tests for MEV LIVE."""

import base64
import struct

import base58

from mev_live.config.known_addresses import MEV_PROGRAM_ID, WSOL_MINT
from mev_live.core.decoders import (
    DecodeError,
    PayloadLayout,
    decode_instruction_data,
    decode_instruction_payload,
    decode_key,
    decode_signature,
)
from mev_live.core.envelope import EnvelopeValidationError, normalize_envelope

KEY_BYTES = bytes(range(1, 33))
KEY = base58.b58encode(KEY_BYTES).decode()


def make_payload(flashloan: int = 0, extra: bytes = b"") -> bytes:
    return (
        bytes([7])
        + struct.pack("<Q", 1_500_000)
        + struct.pack("<I", 400_000)
        + bytes([1])
        + struct.pack("<H", 25)
        + bytes([flashloan])
        + extra
    )


def test_decode_key():
    print("=== decode_key ===")
    assert decode_key(KEY_BYTES) == KEY
    assert decode_key(KEY) == KEY
    assert decode_key(base64.b64encode(KEY_BYTES).decode()) == KEY
    assert decode_key(list(KEY_BYTES)) == KEY
    assert decode_key({"type": "Buffer", "data": list(KEY_BYTES)}) == KEY
    print("  raw / base58 / base64 / list / wrapper: OK")

    for bad in (KEY_BYTES[:31], KEY_BYTES + b"\x00", b""):
        try:
            decode_key(bad)
            assert False, "Should have raised"
        except DecodeError as exc:
            assert exc.reason == "InvalidLength"
    print("  wrong lengths rejected: OK")

    try:
        decode_key({"type": "Buffer"})
        assert False, "Should have raised"
    except DecodeError as exc:
        assert exc.reason == "InvalidEncoding"
    print("  wrapper without data rejected: OK")


def test_decode_signature():
    print("=== decode_signature ===")
    raw = bytes(range(64))
    text = base58.b58encode(raw).decode()
    assert decode_signature(text) == text
    assert decode_signature(raw) == text
    assert decode_signature({"data": list(raw)}) == text
    assert decode_signature(base64.b64encode(raw).decode()) == text
    print("  base64 text re-encoded to base58: OK")
    try:
        decode_signature("")
        assert False, "Should have raised"
    except DecodeError:
        print("  empty signature rejected: OK")


def test_decode_payload():
    print("=== decode_instruction_payload ===")
    payload = decode_instruction_payload(make_payload())
    assert payload.discriminator == 7
    assert payload.min_profit_lamports == 1_500_000
    assert payload.compute_unit_limit == 400_000
    assert payload.no_failure_flag == 1
    assert payload.additional_fee_basis_points == 25
    assert payload.use_flashloan is False
    assert decode_instruction_payload(make_payload(flashloan=1)).use_flashloan is True
    print("  fields: OK")

    # Same input, same output
    assert decode_instruction_payload(make_payload()) == payload

    try:
        decode_instruction_payload(make_payload()[:16])
        assert False, "Should have raised"
    except DecodeError as exc:
        assert exc.reason == "TooShort"
    print("  16 bytes rejected: OK")


def test_payload_layout_override():
    print("=== PayloadLayout ===")
    assert PayloadLayout().min_length == 17
    layout = PayloadLayout(use_flashloan=24)
    assert layout.min_length == 25
    data = make_payload(flashloan=0, extra=bytes(7) + b"\x01")
    assert decode_instruction_payload(data, layout).use_flashloan is True
    assert decode_instruction_payload(data).use_flashloan is False
    print("  flashloan @24: OK")


def test_instruction_data():
    assert decode_instruction_data(None) == b""
    assert decode_instruction_data(base64.b64encode(b"\x01\x02").decode()) == b"\x01\x02"
    assert decode_instruction_data([1, 2]) == b"\x01\x02"


def _plain_envelope():
    return {
        "slot": 321,
        "transaction": {
            "signatures": ["5sig"],
            "message": {
                "accountKeys": [KEY, MEV_PROGRAM_ID, "not-a-key"],
                "header": {
                    "numRequiredSignatures": 1,
                    "numReadonlySignedAccounts": 0,
                    "numReadonlyUnsignedAccounts": 1,
                },
                "instructions": [
                    {
                        "programIdIndex": 1,
                        "accounts": [0, 2],
                        "data": base64.b64encode(make_payload()).decode(),
                    }
                ],
                "addressTableLookups": [
                    {"accountKey": WSOL_MINT, "writableIndexes": [0, 2], "readonlyIndexes": [1]}
                ],
            },
        },
        "meta": {
            "err": None,
            "fee": 5000,
            "computeUnitsConsumed": 120_000,
            "preBalances": [10, 0, 0],
            "postBalances": [5, 0, 0],
            "logMessages": ["Program log: ok"],
        },
    }


def test_normalize_plain_envelope():
    print("=== normalize_envelope (plain) ===")
    env = normalize_envelope(_plain_envelope())
    assert env.signature == "5sig"
    assert env.slot == 321
    assert env.header.num_required_signatures == 1
    assert env.account_keys == [KEY, MEV_PROGRAM_ID, None]
    assert env.instructions[0].program_id_index == 1
    assert env.instructions[0].accounts == (0, 2)
    assert env.instructions[0].data == make_payload()
    assert env.table_lookups[0].table_address == WSOL_MINT
    assert env.table_lookups[0].writable_indexes == (0, 2)
    assert env.table_lookups[0].readonly_indexes == (1,)
    assert env.loaded_addresses is None
    assert env.fee == 5000 and env.compute_units_consumed == 120_000
    assert env.pre_balances == [10, 0, 0]
    print("  fields: OK")


def test_normalize_streaming_envelope():
    print("=== normalize_envelope (streaming) ===")
    plain = _plain_envelope()
    raw_sig = bytes(range(64))
    streaming = {
        "slot": 999,
        "transaction": {
            "signature": list(raw_sig),
            "transaction": {"message": plain["transaction"]["message"]},
            "meta": dict(
                plain["meta"],
                loadedWritableAddresses=[list(KEY_BYTES)],
                loadedReadonlyAddresses=[],
                errorInfo={"InstructionError": [0, "Custom"]},
                err=None,
            ),
        },
    }
    env = normalize_envelope(streaming)
    assert env.slot == 999
    assert env.signature == base58.b58encode(raw_sig).decode()
    assert env.loaded_addresses is not None
    assert env.loaded_addresses.writable == [KEY]
    assert env.loaded_addresses.readonly == []
    assert env.error == {"InstructionError": [0, "Custom"]}
    print("  fields: OK")


def test_streaming_index_lists_are_base64():
    print("=== Packed index lists ===")
    plain = _plain_envelope()
    message = dict(plain["transaction"]["message"])
    message["instructions"] = [
        dict(message["instructions"][0], accounts=base64.b64encode(bytes(range(9))).decode())
    ]
    message["addressTableLookups"] = [
        {
            "accountKey": WSOL_MINT,
            "writableIndexes": base64.b64encode(bytes([0, 1, 2])).decode(),
            "readonlyIndexes": base64.b64encode(bytes([3, 4, 5, 6, 7, 8])).decode(),
        }
    ]
    streaming = {
        "slot": 5,
        "transaction": {
            "signature": list(bytes(64)),
            "transaction": {"message": message},
            "meta": plain["meta"],
        },
    }
    env = normalize_envelope(streaming)
    assert env.instructions[0].accounts == tuple(range(9))
    assert env.table_lookups[0].writable_indexes == (0, 1, 2)
    assert env.table_lookups[0].readonly_indexes == (3, 4, 5, 6, 7, 8)
    print("  unpadded base64 decoded as base64: OK")


def test_envelope_without_message():
    for bad in ({}, {"transaction": {}}, {"transaction": {"message": None}}, []):
        try:
            normalize_envelope(bad)
            assert False, "Should have raised"
        except EnvelopeValidationError:
            pass
    print("  envelopes without message rejected: OK")


if __name__ == "__main__":
    test_decode_key()
    test_decode_signature()
    test_decode_payload()
    test_payload_layout_override()
    test_instruction_data()
    test_normalize_plain_envelope()
    test_normalize_streaming_envelope()
    test_streaming_index_lists_are_base64()
    test_envelope_without_message()
    print("\nAll decoding tests passed.")
