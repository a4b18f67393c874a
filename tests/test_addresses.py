"""
Clone Address Derivation Tests

Pinned CREATE2 vectors, init-code layout and input validation for
``tradetrust_escrow.evm.addresses``.
"""

import pytest
from eth_utils import keccak

from tradetrust_escrow.evm.addresses import (
    build_clone_init_code,
    compute_create2_address,
    compute_init_code_hash,
    compute_salt,
    derive_clone_address,
    is_zero_address,
    normalize_address,
    to_address_bytes,
    token_id_to_int,
)
from tradetrust_escrow.evm.constants import ZERO_ADDRESS
from tradetrust_escrow.exceptions import AddressError, InvalidAddress, InvalidAddressLength

from mocks import (
    GOLDEN_CLONE_ADDRESS,
    GOLDEN_INIT_CODE_HASH,
    GOLDEN_SALT,
    MOCK_FACTORY_ADDRESS,
    MOCK_IMPLEMENTATION_ADDRESS,
    MOCK_REGISTRY_ADDRESS,
)


class TestDeriveCloneAddress:
    """Tests for the full derivation."""

    def test_golden_vector(self):
        address = derive_clone_address(
            "0x" + "11" * 20, "0x" + "22" * 20, "0x" + "33" * 20, 1
        )
        assert address == GOLDEN_CLONE_ADDRESS

    def test_golden_vector_with_bytes32_token_id(self):
        token_id = "0x" + "00" * 31 + "01"
        address = derive_clone_address(
            MOCK_FACTORY_ADDRESS, MOCK_IMPLEMENTATION_ADDRESS, MOCK_REGISTRY_ADDRESS, token_id
        )
        assert address == GOLDEN_CLONE_ADDRESS

    def test_deterministic(self):
        args = (MOCK_FACTORY_ADDRESS, MOCK_IMPLEMENTATION_ADDRESS, MOCK_REGISTRY_ADDRESS, 42)
        assert derive_clone_address(*args) == derive_clone_address(*args)

    def test_address_case_does_not_matter(self):
        lower = derive_clone_address(
            MOCK_FACTORY_ADDRESS.lower(), MOCK_IMPLEMENTATION_ADDRESS.lower(), MOCK_REGISTRY_ADDRESS.lower(), 1
        )
        assert lower == GOLDEN_CLONE_ADDRESS

    def test_distinct_token_ids_give_distinct_addresses(self):
        addresses = {
            derive_clone_address(MOCK_FACTORY_ADDRESS, MOCK_IMPLEMENTATION_ADDRESS, MOCK_REGISTRY_ADDRESS, i)
            for i in range(10)
        }
        assert len(addresses) == 10

    def test_zero_addresses_are_accepted(self):
        address = derive_clone_address(ZERO_ADDRESS, ZERO_ADDRESS, ZERO_ADDRESS, 0)
        assert address == derive_clone_address(ZERO_ADDRESS, ZERO_ADDRESS, ZERO_ADDRESS, 0)
        assert len(to_address_bytes(address)) == 20

    def test_short_factory_raises(self):
        with pytest.raises(InvalidAddressLength) as exc_info:
            derive_clone_address("0x" + "11" * 19, MOCK_IMPLEMENTATION_ADDRESS, MOCK_REGISTRY_ADDRESS, 1)
        assert exc_info.value.length == 19

    def test_odd_length_hex_raises_length_error(self):
        with pytest.raises(InvalidAddressLength) as exc_info:
            derive_clone_address("0x" + "1" * 39, MOCK_IMPLEMENTATION_ADDRESS, MOCK_REGISTRY_ADDRESS, 1)
        assert exc_info.value.length == 19

    def test_long_implementation_raises(self):
        with pytest.raises(InvalidAddressLength):
            derive_clone_address(MOCK_FACTORY_ADDRESS, "0x" + "22" * 21, MOCK_REGISTRY_ADDRESS, 1)


class TestBuildingBlocks:
    """Tests for init code, salt and the CREATE2 formula."""

    def test_init_code_layout(self):
        init_code = build_clone_init_code(MOCK_IMPLEMENTATION_ADDRESS)
        assert len(init_code) == 55
        assert init_code[20:40] == bytes.fromhex("22" * 20)
        assert init_code.hex().startswith("3d602d80600a3d3981f3363d3d373d3d3d363d73")
        assert init_code.hex().endswith("5af43d82803e903d91602b57fd5bf3")

    def test_init_code_hash(self):
        assert compute_init_code_hash(MOCK_IMPLEMENTATION_ADDRESS).hex() == GOLDEN_INIT_CODE_HASH

    def test_salt(self):
        assert compute_salt(MOCK_REGISTRY_ADDRESS, 1).hex() == GOLDEN_SALT

    def test_salt_is_packed_not_padded(self):
        expected = keccak(bytes.fromhex("33" * 20) + (1).to_bytes(32, "big"))
        assert compute_salt(MOCK_REGISTRY_ADDRESS, 1) == expected

    def test_create2_eip1014_example(self):
        address = compute_create2_address(ZERO_ADDRESS, b"\x00" * 32, keccak(b"\x00"))
        assert address == "0x4D1A2e2bB4F88F0250f26Ffff098B0b30B26BF38"

    def test_create2_rejects_short_salt(self):
        with pytest.raises(ValueError):
            compute_create2_address(ZERO_ADDRESS, b"\x00" * 31, keccak(b"\x00"))


class TestAddressHelpers:
    """Tests for address and token id normalization."""

    def test_to_address_bytes_without_prefix(self):
        assert to_address_bytes("11" * 20) == bytes.fromhex("11" * 20)

    def test_non_hex_raises_invalid_address(self):
        with pytest.raises(InvalidAddress):
            to_address_bytes("0x" + "zz" * 20)

    def test_address_errors_share_a_base(self):
        assert issubclass(InvalidAddress, AddressError)
        assert issubclass(InvalidAddressLength, AddressError)

    def test_normalize_address_checksums(self):
        assert normalize_address(GOLDEN_CLONE_ADDRESS.lower()) == GOLDEN_CLONE_ADDRESS

    def test_is_zero_address(self):
        assert is_zero_address(ZERO_ADDRESS)
        assert not is_zero_address(MOCK_FACTORY_ADDRESS)

    @pytest.mark.parametrize("token_id", [1, "1", "0x01", "0x" + "00" * 31 + "01", b"\x01"])
    def test_token_id_forms(self, token_id):
        assert token_id_to_int(token_id) == 1

    def test_token_id_out_of_range(self):
        with pytest.raises(ValueError):
            token_id_to_int(2**256)
        with pytest.raises(ValueError):
            token_id_to_int(-1)

    def test_token_id_rejects_bool(self):
        with pytest.raises(ValueError):
            token_id_to_int(True)
