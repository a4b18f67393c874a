"""
EIP-712 Hashing and Signer Test Suite

Tests cover:
- Type hashes and the encodeType string
- Pinned domain separator, struct hash and digest vectors
- Agreement between the explicit hashing path and eth_account
- Packed signature conversion
"""

import pytest
from eth_account import Account

from tradetrust_escrow.evm.schemas import EVMECDSASignature
from tradetrust_escrow.evm.signatures import (
    BENEFICIARY_TRANSFER_TYPEHASH,
    EIP712_DOMAIN_TYPEHASH,
    build_endorsement_typed_data,
    compute_domain_separator,
    digest_to_sign,
    endorsement_signable,
    hash_endorsement,
    recover_endorsement_signer,
)
from tradetrust_escrow.evm.standards import BENEFICIARY_TRANSFER_FIELDS, encode_type

from mocks import (
    GOLDEN_BENEFICIARY_TRANSFER_TYPEHASH,
    GOLDEN_DIGEST,
    GOLDEN_DOMAIN_SEPARATOR,
    GOLDEN_EIP712_DOMAIN_TYPEHASH,
    GOLDEN_STRUCT_HASH,
    MOCK_CHAIN_ID_MAINNET,
    MOCK_ESCROW_ADDRESS,
    MOCK_HOLDER_ADDRESS,
    MOCK_HOLDER_PRIVATE_KEY,
    create_mock_endorsement,
)

GOLDEN_HOLDER = "0x" + "bb" * 20


class TestTypeHashes:
    """Tests for the EIP-712 type strings."""

    def test_encode_type(self):
        assert encode_type("BeneficiaryTransfer", BENEFICIARY_TRANSFER_FIELDS) == (
            "BeneficiaryTransfer(address beneficiary,address holder,address nominee,"
            "address registry,uint256 tokenId,uint256 deadline,uint256 nonce)"
        )

    def test_beneficiary_transfer_typehash(self):
        assert BENEFICIARY_TRANSFER_TYPEHASH.hex() == GOLDEN_BENEFICIARY_TRANSFER_TYPEHASH

    def test_domain_typehash(self):
        assert EIP712_DOMAIN_TYPEHASH.hex() == GOLDEN_EIP712_DOMAIN_TYPEHASH


class TestGoldenVectors:
    """Pinned hashes for a fixed endorsement on mainnet."""

    def test_domain_separator(self):
        separator = compute_domain_separator(
            "TradeTrust Title Escrow", "1", MOCK_CHAIN_ID_MAINNET, MOCK_ESCROW_ADDRESS
        )
        assert separator.hex() == GOLDEN_DOMAIN_SEPARATOR

    def test_struct_hash(self):
        endorsement = create_mock_endorsement(holder=GOLDEN_HOLDER)
        assert hash_endorsement(endorsement).hex() == GOLDEN_STRUCT_HASH

    def test_digest(self):
        digest = digest_to_sign(bytes.fromhex(GOLDEN_DOMAIN_SEPARATOR), bytes.fromhex(GOLDEN_STRUCT_HASH))
        assert digest.hex() == GOLDEN_DIGEST

    def test_eth_account_agrees_with_explicit_hashing(self):
        endorsement = create_mock_endorsement(holder=GOLDEN_HOLDER)
        signable = endorsement_signable(
            endorsement, chain_id=MOCK_CHAIN_ID_MAINNET, verifying_contract=MOCK_ESCROW_ADDRESS
        )
        assert bytes(signable.header) == bytes.fromhex(GOLDEN_DOMAIN_SEPARATOR)
        assert bytes(signable.body) == bytes.fromhex(GOLDEN_STRUCT_HASH)

    def test_struct_hash_ignores_address_case(self):
        lower = create_mock_endorsement(holder=GOLDEN_HOLDER.lower())
        upper = create_mock_endorsement(holder="0x" + "BB" * 20)
        assert hash_endorsement(lower) == hash_endorsement(upper)


class TestDomainSensitivity:
    """A signature for one domain never verifies under another."""

    @pytest.mark.parametrize("chain_id,contract", [
        (chain_id, "0x" + byte * 20)
        for chain_id in (1, 5, 137, 11155111)
        for byte in ("44", "45", "99")
        if not (chain_id == 1 and byte == "44")
    ])
    def test_other_domain_rejects(self, endorsement, sign, chain_id, contract):
        signature = sign(endorsement)
        other = compute_domain_separator("TradeTrust Title Escrow", "1", chain_id, contract)
        recovered = recover_endorsement_signer(other, hash_endorsement(endorsement), signature)
        assert recovered != MOCK_HOLDER_ADDRESS

    @pytest.mark.parametrize("name,version", [
        ("TradeTrust Title Escrow", "2"),
        ("Title Escrow", "1"),
        ("", ""),
    ])
    def test_name_and_version_change_separator(self, name, version):
        default = compute_domain_separator("TradeTrust Title Escrow", "1", 1, MOCK_ESCROW_ADDRESS)
        assert compute_domain_separator(name, version, 1, MOCK_ESCROW_ADDRESS) != default


class TestSigner:
    """Tests for sign_endorsement and recovery."""

    def test_signature_recovers_to_holder(self, endorsement, sign, verifier):
        signature = sign(endorsement)
        recovered = recover_endorsement_signer(
            verifier.domain_separator, hash_endorsement(endorsement), signature
        )
        assert recovered == MOCK_HOLDER_ADDRESS

    def test_message_hash_matches_digest(self, endorsement, verifier):
        typed_data = build_endorsement_typed_data(
            endorsement, chain_id=MOCK_CHAIN_ID_MAINNET, verifying_contract=MOCK_ESCROW_ADDRESS
        )
        signed = Account.sign_typed_data(MOCK_HOLDER_PRIVATE_KEY, full_message=typed_data)
        expected = digest_to_sign(verifier.domain_separator, hash_endorsement(endorsement))
        assert bytes(signed.message_hash) == expected

    def test_signature_components_are_padded(self, endorsement, sign):
        signature = sign(endorsement)
        assert signature.v in (27, 28)
        assert len(signature.r) == 66
        assert len(signature.s) == 66

    def test_typed_data_structure(self, endorsement):
        typed_data = build_endorsement_typed_data(
            endorsement, chain_id=MOCK_CHAIN_ID_MAINNET, verifying_contract=MOCK_ESCROW_ADDRESS.lower()
        )
        assert typed_data["primaryType"] == "BeneficiaryTransfer"
        assert set(typed_data["types"]) == {"EIP712Domain", "BeneficiaryTransfer"}
        assert typed_data["domain"] == {
            "name": "TradeTrust Title Escrow",
            "version": "1",
            "chainId": 1,
            "verifyingContract": MOCK_ESCROW_ADDRESS,
        }
        assert typed_data["message"]["tokenId"] == 1
        assert typed_data["message"]["holder"] == MOCK_HOLDER_ADDRESS

    def test_digest_to_sign_rejects_short_input(self):
        with pytest.raises(ValueError):
            digest_to_sign(b"\x00" * 31, b"\x00" * 32)
        with pytest.raises(ValueError):
            digest_to_sign(b"\x00" * 32, b"\x00" * 33)


class TestPackedSignature:
    """Tests for EVMECDSASignature packed conversion."""

    def test_packed_round_trip(self, endorsement, sign):
        signature = sign(endorsement)
        packed = signature.to_packed_hex()
        assert len(packed) == 132
        assert EVMECDSASignature.from_packed(packed) == signature

    def test_from_packed_bytes(self, endorsement, sign):
        signature = sign(endorsement)
        raw = bytes.fromhex(signature.to_packed_hex()[2:])
        assert EVMECDSASignature.from_packed(raw) == signature

    @pytest.mark.parametrize("raw_v,expected", [(0, 27), (1, 28), (27, 27), (28, 28)])
    def test_v_normalization(self, raw_v, expected):
        raw = b"\x11" * 32 + b"\x22" * 32 + bytes([raw_v])
        assert EVMECDSASignature.from_packed(raw).v == expected

    def test_wrong_length_raises(self):
        with pytest.raises(ValueError):
            EVMECDSASignature.from_packed(b"\x00" * 64)

    def test_short_components_are_left_padded(self):
        signature = EVMECDSASignature(v=28, r="0x01", s="0x02")
        packed = signature.to_packed_hex()
        assert packed == "0x" + "00" * 31 + "01" + "00" * 31 + "02" + "1c"

    def test_oversized_component_raises(self):
        signature = EVMECDSASignature(v=27, r="0x" + "1" * 66, s="0x" + "2" * 64)
        with pytest.raises(ValueError):
            signature.to_packed_hex()
