"""
EIP-712 Hashing and Off-chain Endorsement Signer

Pure helpers reproducing the hashes a TitleEscrow contract computes for a
``BeneficiaryTransfer`` endorsement, plus a signer producing the holder's
signature in-process with ``eth_account``.

    DOMAIN_SEPARATOR = keccak256(abi.encode(EIP712_DOMAIN_TYPEHASH,
                                            keccak256(name), keccak256(version),
                                            chainId, verifyingContract))
    structHash       = keccak256(abi.encode(BENEFICIARY_TRANSFER_TYPEHASH,
                                            beneficiary, holder, nominee, registry,
                                            tokenId, deadline, nonce))
    digest           = keccak256(0x1901 ++ DOMAIN_SEPARATOR ++ structHash)

The signer and the explicit hashing path must agree on ``digest``; tests pin
both against fixed vectors.
"""

import logging
from typing import Any, Dict, Optional

from eth_abi import encode
from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_utils import keccak

from ..config import DEFAULT_DOMAIN_NAME, DEFAULT_DOMAIN_VERSION
from .addresses import AddressLike, normalize_address
from .schemas import EVMECDSASignature, Endorsement
from .standards import (
    BENEFICIARY_TRANSFER_FIELDS,
    EIP712_DOMAIN_FIELDS,
    BeneficiaryTransferMessage,
    BeneficiaryTransferTypedData,
    EIP712Domain,
    encode_type,
)

logger = logging.getLogger(__name__)

EIP712_DOMAIN_TYPEHASH: bytes = keccak(text=encode_type("EIP712Domain", EIP712_DOMAIN_FIELDS))

BENEFICIARY_TRANSFER_TYPEHASH: bytes = keccak(
    text=encode_type("BeneficiaryTransfer", BENEFICIARY_TRANSFER_FIELDS)
)


# ---------------------------------------------------------------------------
# Pure hashing
# ---------------------------------------------------------------------------

def compute_domain_separator(
    name: str,
    version: str,
    chain_id: int,
    verifying_contract: AddressLike,
) -> bytes:
    """
    Compute the EIP-712 domain separator of one escrow instance.

    Args:
        name: Domain name, ``"TradeTrust Title Escrow"`` on deployed escrows.
        version: Domain version string.
        chain_id: EVM network ID.
        verifying_contract: The escrow clone's own address.

    Returns:
        32-byte domain separator.
    """
    return keccak(encode(
        ["bytes32", "bytes32", "bytes32", "uint256", "address"],
        [
            EIP712_DOMAIN_TYPEHASH,
            keccak(text=name),
            keccak(text=version),
            int(chain_id),
            normalize_address(verifying_contract),
        ],
    ))


def hash_endorsement(endorsement: Endorsement) -> bytes:
    """
    Compute the BeneficiaryTransfer struct hash of ``endorsement``.

    This is the endorsement's identity for cancellation lookups; equal
    field values always yield the same hash.
    """
    return keccak(encode(
        ["bytes32", "address", "address", "address", "address", "uint256", "uint256", "uint256"],
        [
            BENEFICIARY_TRANSFER_TYPEHASH,
            endorsement.beneficiary,
            endorsement.holder,
            endorsement.nominee,
            endorsement.registry,
            endorsement.token_id,
            endorsement.deadline,
            endorsement.nonce,
        ],
    ))


def digest_to_sign(domain_separator: bytes, struct_hash: bytes) -> bytes:
    """Return ``keccak256(0x1901 ++ domain_separator ++ struct_hash)``."""
    if len(domain_separator) != 32 or len(struct_hash) != 32:
        raise ValueError("Domain separator and struct hash must both be 32 bytes")
    return keccak(b"\x19\x01" + domain_separator + struct_hash)


# ---------------------------------------------------------------------------
# Typed data builder
# ---------------------------------------------------------------------------

def build_endorsement_typed_data(
    endorsement: Endorsement,
    *,
    chain_id: int,
    verifying_contract: AddressLike,
    domain_name: str = DEFAULT_DOMAIN_NAME,
    domain_version: str = DEFAULT_DOMAIN_VERSION,
) -> Dict[str, Any]:
    """
    Build the ``{types, primaryType, domain, message}`` dict for an endorsement.

    The result can be passed to ``eth_signTypedData_v4`` by a wallet, or to
    ``eth_account.Account.sign_typed_data(full_message=...)``.
    """
    typed_data = BeneficiaryTransferTypedData(
        domain=EIP712Domain(
            name=domain_name,
            version=domain_version,
            chainId=int(chain_id),
            verifyingContract=normalize_address(verifying_contract),
        ),
        message=BeneficiaryTransferMessage(**endorsement.to_message_dict()),
    )
    return typed_data.to_dict()


# ---------------------------------------------------------------------------
# Signer
# ---------------------------------------------------------------------------

def sign_endorsement(
    *,
    private_key: str,
    endorsement: Endorsement,
    chain_id: int,
    verifying_contract: AddressLike,
    domain_name: str = DEFAULT_DOMAIN_NAME,
    domain_version: str = DEFAULT_DOMAIN_VERSION,
) -> EVMECDSASignature:
    """
    Sign a BeneficiaryTransfer endorsement as its holder.

    Signing is performed entirely in-process via ``eth_account``.

    Args:
        private_key: Hex-encoded secp256k1 private key of the holder.
        endorsement: Endorsement to sign. ``holder`` should be the key's address.
        chain_id: EVM network ID of the escrow.
        verifying_contract: Address of the TitleEscrow clone.
        domain_name: EIP-712 domain name.
        domain_version: EIP-712 domain version.

    Returns:
        ``EVMECDSASignature``. Call ``.to_packed_hex()`` for the on-chain
        ``bytes`` argument.

    Example::

        sig = sign_endorsement(
            private_key="0xYOUR_PRIVATE_KEY",
            endorsement=endorsement,
            chain_id=11155111,
            verifying_contract="0xTitleEscrowAddress",
        )
        packed = sig.to_packed_hex()
    """
    typed_data = build_endorsement_typed_data(
        endorsement,
        chain_id=chain_id,
        verifying_contract=verifying_contract,
        domain_name=domain_name,
        domain_version=domain_version,
    )
    signed = Account.sign_typed_data(private_key, full_message=typed_data)

    logger.debug(
        "Signed BeneficiaryTransfer for holder %s on %s (nonce=%d, deadline=%d)",
        endorsement.holder, typed_data["domain"]["verifyingContract"],
        endorsement.nonce, endorsement.deadline,
    )

    return EVMECDSASignature(
        v=signed.v,
        r="0x" + signed.r.to_bytes(32, "big").hex(),
        s="0x" + signed.s.to_bytes(32, "big").hex(),
    )


def endorsement_signable(
    endorsement: Endorsement,
    *,
    chain_id: int,
    verifying_contract: AddressLike,
    domain_name: str = DEFAULT_DOMAIN_NAME,
    domain_version: str = DEFAULT_DOMAIN_VERSION,
):
    """
    Return the ``eth_account`` ``SignableMessage`` for an endorsement.

    Its ``header`` is the domain separator and its ``body`` the struct hash.
    """
    return encode_typed_data(full_message=build_endorsement_typed_data(
        endorsement,
        chain_id=chain_id,
        verifying_contract=verifying_contract,
        domain_name=domain_name,
        domain_version=domain_version,
    ))


def recover_endorsement_signer(
    domain_separator: bytes,
    struct_hash: bytes,
    signature: EVMECDSASignature,
) -> Optional[str]:
    """
    Recover the checksummed signer of ``digest_to_sign(domain_separator, struct_hash)``.

    Returns ``None`` when the signature cannot be recovered at all
    (malformed components or an invalid curve point).
    """
    signable = SignableMessage(version=b"\x01", header=domain_separator, body=struct_hash)
    try:
        return Account.recover_message(signable, vrs=signature.to_vrs())
    except Exception as e:
        logger.debug("Signature recovery failed: %s", type(e).__name__)
        return None
