"""
Init-Parameter Codec Tests

Round trips, nesting of the factory variant and truncated buffers.
"""

import pytest
from eth_abi import decode

from tradetrust_escrow.evm.codecs import (
    InitParams,
    decode_init_params,
    decode_init_params_with_factory,
    encode_init_params,
    encode_init_params_with_factory,
)
from tradetrust_escrow.exceptions import CodecError, DecodeLengthMismatch, EscrowError

from mocks import MOCK_FACTORY_ADDRESS, MOCK_HOLDER_ADDRESS


class TestInitParams:
    """Tests for the ``(string, string, address)`` layout."""

    @pytest.mark.parametrize("name,symbol", [
        ("The Great Shipping Co.", "GSC"),
        ("", ""),
        ("Connaissement électronique", "CÉ"),
        ("船荷証券", "BL"),
        ("x" * 255, "y" * 255),
    ])
    def test_round_trip(self, name, symbol):
        encoded = encode_init_params(name, symbol, MOCK_HOLDER_ADDRESS)
        assert decode_init_params(encoded) == InitParams(name, symbol, MOCK_HOLDER_ADDRESS)

    def test_head_layout(self):
        encoded = encode_init_params("A", "B", MOCK_HOLDER_ADDRESS)
        assert len(encoded) == 3 * 32 + 2 * 64
        assert int.from_bytes(encoded[0:32], "big") == 0x60
        assert encoded[64 + 12:96] == bytes.fromhex(MOCK_HOLDER_ADDRESS[2:])

    def test_decode_accepts_hex_string(self):
        encoded = encode_init_params("Token", "TKN", MOCK_HOLDER_ADDRESS)
        assert decode_init_params("0x" + encoded.hex()).name == "Token"

    def test_deployer_is_checksummed(self):
        encoded = encode_init_params("Token", "TKN", MOCK_HOLDER_ADDRESS.lower())
        assert decode_init_params(encoded).deployer == MOCK_HOLDER_ADDRESS

    def test_truncated_tail_raises(self):
        encoded = encode_init_params("Token", "TKN", MOCK_HOLDER_ADDRESS)
        with pytest.raises(DecodeLengthMismatch):
            decode_init_params(encoded[:-32])

    def test_truncated_head_raises(self):
        encoded = encode_init_params("Token", "TKN", MOCK_HOLDER_ADDRESS)
        with pytest.raises(DecodeLengthMismatch):
            decode_init_params(encoded[:64])

    def test_offset_past_end_raises(self):
        encoded = bytearray(encode_init_params("Token", "TKN", MOCK_HOLDER_ADDRESS))
        encoded[0:32] = (10_000).to_bytes(32, "big")
        with pytest.raises(DecodeLengthMismatch):
            decode_init_params(bytes(encoded))

    def test_declared_length_past_end_raises(self):
        encoded = bytearray(encode_init_params("Token", "TKN", MOCK_HOLDER_ADDRESS))
        encoded[0x60:0x80] = (500).to_bytes(32, "big")
        with pytest.raises(DecodeLengthMismatch) as exc_info:
            decode_init_params(bytes(encoded))
        assert isinstance(exc_info.value, CodecError)

    def test_invalid_utf8_name_raises_codec_error(self):
        encoded = bytearray(encode_init_params("ab", "TKN", MOCK_HOLDER_ADDRESS))
        # name length word at 0x60, name bytes at 0x80
        encoded[0x80] = 0xFF
        with pytest.raises(CodecError) as exc_info:
            decode_init_params(bytes(encoded))
        assert isinstance(exc_info.value, EscrowError)

    def test_non_hex_string_raises_codec_error(self):
        with pytest.raises(CodecError):
            decode_init_params("0xzz")


class TestInitParamsWithFactory:
    """Tests for the ``(bytes, address)`` wrapper."""

    def test_inner_tuple_is_nested_as_bytes(self):
        encoded = encode_init_params_with_factory("Token", "TKN", MOCK_HOLDER_ADDRESS, MOCK_FACTORY_ADDRESS)
        inner, factory = decode(["bytes", "address"], encoded)
        assert inner == encode_init_params("Token", "TKN", MOCK_HOLDER_ADDRESS)
        assert factory.lower() == MOCK_FACTORY_ADDRESS.lower()

    def test_round_trip_with_factory(self):
        encoded = encode_init_params_with_factory("Token", "TKN", MOCK_HOLDER_ADDRESS, MOCK_FACTORY_ADDRESS)
        decoded = decode_init_params_with_factory(encoded)
        assert decoded.params == InitParams("Token", "TKN", MOCK_HOLDER_ADDRESS)
        assert decoded.title_escrow_factory == MOCK_FACTORY_ADDRESS

    def test_missing_factory_round_trips_as_none(self):
        encoded = encode_init_params_with_factory("Token", "TKN", MOCK_HOLDER_ADDRESS)
        assert decode_init_params_with_factory(encoded).title_escrow_factory is None

    def test_truncated_outer_raises(self):
        encoded = encode_init_params_with_factory("Token", "TKN", MOCK_HOLDER_ADDRESS, MOCK_FACTORY_ADDRESS)
        with pytest.raises(DecodeLengthMismatch):
            decode_init_params_with_factory(encoded[:-64])

    def test_invalid_utf8_in_nested_params_raises_codec_error(self):
        encoded = encode_init_params_with_factory("ab", "TKN", MOCK_HOLDER_ADDRESS, MOCK_FACTORY_ADDRESS)
        inner = bytearray(encode_init_params("ab", "TKN", MOCK_HOLDER_ADDRESS))
        inner[0x80] = 0xFF
        encoded = encoded.replace(encode_init_params("ab", "TKN", MOCK_HOLDER_ADDRESS), bytes(inner))
        with pytest.raises(CodecError):
            decode_init_params_with_factory(encoded)
