"""
ERC-165 Interface Ids

Function-signature lists of the TradeTrust contract interfaces and the
ERC-165 ids derived from them. An interface id is the XOR of the 4-byte
selectors of every function in the interface.

Usage:
    from tradetrust_escrow.evm.interfaces import CONTRACT_INTERFACE_IDS

    CONTRACT_INTERFACE_IDS["AccessControl"]  # b'\\x79\\x65\\xdb\\x0b'
"""

from typing import Dict, Iterable, List

from eth_utils import function_signature_to_4byte_selector


CONTRACT_INTERFACES: Dict[str, List[str]] = {
    "TradeTrustSBT": ["genesis()", "titleEscrowFactory()"],
    "TradeTrustTokenMintable": ["mint(address,address,uint256,bytes)"],
    "TradeTrustTokenBurnable": ["burn(uint256,bytes)"],
    "TradeTrustTokenRestorable": ["restore(uint256,bytes)"],
    "TitleEscrow": [
        "nominate(address,bytes)",
        "transferBeneficiary(address,bytes)",
        "transferHolder(address,bytes)",
        "transferOwners(address,address,bytes)",
        "beneficiary()",
        "holder()",
        "active()",
        "nominee()",
        "registry()",
        "tokenId()",
        "isHoldingToken()",
        "surrender(bytes)",
        "shred(bytes)",
    ],
    "TitleEscrowSignable": [
        "transferBeneficiaryWithSig((address,address,address,address,uint256,uint256,uint256),(bytes32,bytes32,uint8))",
        "cancelBeneficiaryTransfer((address,address,address,address,uint256,uint256,uint256))",
    ],
    "TitleEscrowFactory": ["create(address,address,uint256)", "getAddress(address,uint256)"],
    "AccessControl": [
        "hasRole(bytes32,address)",
        "getRoleAdmin(bytes32)",
        "grantRole(bytes32,address)",
        "revokeRole(bytes32,address)",
        "renounceRole(bytes32,address)",
    ],
    "SBT": ["balanceOf(address)", "ownerOf(uint256)", "transferFrom(address,address,uint256)"],
}


def compute_interface_id(signatures: Iterable[str]) -> bytes:
    """
    Compute the ERC-165 interface id of a set of function signatures.

    Args:
        signatures: Canonical signatures such as ``"hasRole(bytes32,address)"``.

    Returns:
        4-byte interface id. An empty set yields ``b"\\x00" * 4``.
    """
    interface_id = 0
    for signature in signatures:
        interface_id ^= int.from_bytes(function_signature_to_4byte_selector(signature), "big")
    return interface_id.to_bytes(4, "big")


CONTRACT_INTERFACE_IDS: Dict[str, bytes] = {
    name: compute_interface_id(signatures) for name, signatures in CONTRACT_INTERFACES.items()
}
