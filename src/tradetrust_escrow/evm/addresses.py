"""
Deterministic Title Escrow Address Derivation

Computes the address a TitleEscrowFactory deploys an EIP-1167 clone to for a
given (registry, tokenId) pair, without any RPC call. The factory clones its
implementation with CREATE2 (EIP-1014):

    init_code      = 3d602d80600a3d3981f3363d3d373d3d3d363d73 ++ impl ++ 5af43d82803e903d91602b57fd5bf3
    salt           = keccak256(registry ++ uint256(tokenId))
    clone address  = keccak256(0xff ++ factory ++ salt ++ keccak256(init_code))[12:]

All helpers are pure and deterministic.
"""

import logging
from typing import Union

from eth_utils import is_hex, keccak, to_checksum_address

from ..exceptions import InvalidAddress, InvalidAddressLength
from .constants import CLONE_INIT_CODE_PREFIX, CLONE_INIT_CODE_SUFFIX

logger = logging.getLogger(__name__)

AddressLike = Union[str, bytes]
TokenIdLike = Union[int, str, bytes]

_UINT256_MAX = 2**256 - 1


def to_address_bytes(value: AddressLike) -> bytes:
    """
    Decode an address into its raw 20 bytes.

    Accepts a hex string (``0x`` prefix optional, any letter case) or raw bytes.

    Raises:
        InvalidAddress: If a string is not valid hex.
        InvalidAddressLength: If the value is not exactly 20 bytes, including
            odd-length hex strings.
    """
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        if not is_hex(value):
            raise InvalidAddress(value)
        hex_str = value[2:] if value[:2] in ("0x", "0X") else value
        if len(hex_str) != 40:
            raise InvalidAddressLength(value, len(hex_str) // 2)
        raw = bytes.fromhex(hex_str)
    else:
        raise InvalidAddress(value, f"Unsupported address type: {type(value).__name__}")

    if len(raw) != 20:
        raise InvalidAddressLength(value, len(raw))
    return raw


def normalize_address(value: AddressLike) -> str:
    """Return ``value`` as a checksummed 0x-prefixed address string."""
    return to_checksum_address(to_address_bytes(value))


def is_zero_address(value: AddressLike) -> bool:
    """True when ``value`` decodes to the all-zero sentinel address."""
    return to_address_bytes(value) == b"\x00" * 20


def token_id_to_int(token_id: TokenIdLike) -> int:
    """
    Interpret a token id as a uint256.

    Strings are read as hex when ``0x``-prefixed and as decimal otherwise;
    bytes are read big-endian.

    Raises:
        ValueError: If the value is negative or wider than 256 bits.
    """
    if isinstance(token_id, (bytes, bytearray)):
        if len(token_id) > 32:
            raise ValueError(f"token id wider than 32 bytes: {len(token_id)}")
        value = int.from_bytes(token_id, "big")
    elif isinstance(token_id, str):
        value = int(token_id, 16) if token_id[:2] in ("0x", "0X") else int(token_id)
    elif isinstance(token_id, int) and not isinstance(token_id, bool):
        value = token_id
    else:
        raise ValueError(f"Unsupported token id type: {type(token_id).__name__}")

    if not 0 <= value <= _UINT256_MAX:
        raise ValueError(f"token id out of uint256 range: {value}")
    return value


def build_clone_init_code(implementation_address: AddressLike) -> bytes:
    """Return the EIP-1167 creation code cloning ``implementation_address``."""
    return CLONE_INIT_CODE_PREFIX + to_address_bytes(implementation_address) + CLONE_INIT_CODE_SUFFIX


def compute_init_code_hash(implementation_address: AddressLike) -> bytes:
    """keccak256 of the clone creation code for ``implementation_address``."""
    return keccak(build_clone_init_code(implementation_address))


def compute_salt(registry_address: AddressLike, token_id: TokenIdLike) -> bytes:
    """keccak256 of ``abi.encodePacked(registry, uint256(tokenId))``."""
    packed = to_address_bytes(registry_address) + token_id_to_int(token_id).to_bytes(32, "big")
    return keccak(packed)


def compute_create2_address(
    deployer_address: AddressLike,
    salt: bytes,
    init_code_hash: bytes,
) -> str:
    """
    Compute a CREATE2 contract address.

    Args:
        deployer_address: Address of the deploying contract.
        salt: 32-byte salt.
        init_code_hash: 32-byte keccak256 of the creation code.

    Returns:
        Checksummed address: ``keccak256(0xff ++ deployer ++ salt ++ init_code_hash)[12:]``.

    Raises:
        ValueError: If ``salt`` or ``init_code_hash`` is not 32 bytes.
    """
    if len(salt) != 32:
        raise ValueError(f"Salt must be 32 bytes, got {len(salt)}")
    if len(init_code_hash) != 32:
        raise ValueError(f"Init code hash must be 32 bytes, got {len(init_code_hash)}")

    preimage = b"\xff" + to_address_bytes(deployer_address) + salt + init_code_hash
    return to_checksum_address(keccak(preimage)[12:])


def derive_clone_address(
    factory_address: AddressLike,
    implementation_address: AddressLike,
    registry_address: AddressLike,
    token_id: TokenIdLike,
) -> str:
    """
    Compute the title escrow address the factory will deploy for a token.

    Matches ``TitleEscrowFactory.getAddress(registry, tokenId)`` on-chain.
    Zero addresses are accepted and yield a deterministic (meaningless) result.

    Args:
        factory_address: TitleEscrowFactory address (the CREATE2 deployer).
        implementation_address: TitleEscrow implementation being cloned.
        registry_address: Token registry the escrow belongs to.
        token_id: Token id as int, hex/decimal string, or big-endian bytes.

    Returns:
        Checksummed clone address.

    Raises:
        InvalidAddressLength: If any address does not decode to 20 bytes.

    Example::

        derive_clone_address(
            "0x" + "11" * 20, "0x" + "22" * 20, "0x" + "33" * 20, 1
        )
        # '0xD85abe93A311b2AE3909Aee9b0F50C74eba9a8b2'
    """
    init_code_hash = compute_init_code_hash(implementation_address)
    salt = compute_salt(registry_address, token_id)
    address = compute_create2_address(factory_address, salt, init_code_hash)
    logger.debug(
        "Derived clone address %s (salt=0x%s, init_code_hash=0x%s)",
        address, salt.hex(), init_code_hash.hex(),
    )
    return address
