from dataclasses import dataclass, field
from typing import Dict, Any, List


# -----------------------------
# EIP-712 Domain
# -----------------------------

EIP712_DOMAIN_FIELDS: List[Dict[str, str]] = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]


@dataclass
class EIP712Domain:
    """
    EIP-712 domain separator.
    Used to prevent signature replay across domains.

    Every TitleEscrow clone is its own ``verifyingContract``, so two escrows
    on the same chain never share a domain.
    """
    name: str
    version: str
    chainId: int
    verifyingContract: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chainId,
            "verifyingContract": self.verifyingContract,
        }


# -----------------------------
# TitleEscrowSignable: BeneficiaryTransfer
# -----------------------------

#: Field order is part of the TYPEHASH and of the struct hash encoding.
BENEFICIARY_TRANSFER_FIELDS: List[Dict[str, str]] = [
    {"name": "beneficiary", "type": "address"},
    {"name": "holder", "type": "address"},
    {"name": "nominee", "type": "address"},
    {"name": "registry", "type": "address"},
    {"name": "tokenId", "type": "uint256"},
    {"name": "deadline", "type": "uint256"},
    {"name": "nonce", "type": "uint256"},
]


def encode_type(primary_type: str, fields: List[Dict[str, str]]) -> str:
    """Return the EIP-712 ``encodeType`` string, e.g. ``Name(type1 a,type2 b)``."""
    members = ",".join(f"{f['type']} {f['name']}" for f in fields)
    return f"{primary_type}({members})"


@dataclass
class BeneficiaryTransferMessage:
    """
    Message payload of a ``BeneficiaryTransfer`` endorsement.

    The holder signs this to let the nominee become beneficiary without the
    holder submitting a transaction.

    Attributes:
        beneficiary: Current beneficiary of the escrow.
        holder: Current holder; the expected signer.
        nominee: Address endorsed as the next beneficiary.
        registry: Token registry the escrow belongs to.
        tokenId: Token id (uint256).
        deadline: Unix timestamp; the endorsement is rejected at or after it.
        nonce: Holder's nonce on the escrow at signing time.
    """
    beneficiary: str
    holder: str
    nominee: str
    registry: str
    tokenId: int
    deadline: int
    nonce: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "beneficiary": self.beneficiary,
            "holder": self.holder,
            "nominee": self.nominee,
            "registry": self.registry,
            "tokenId": self.tokenId,
            "deadline": self.deadline,
            "nonce": self.nonce,
        }


@dataclass
class BeneficiaryTransferTypedData:
    """
    Container for ``BeneficiaryTransfer`` typed data usable with EIP-712
    signing routines.

    ``to_dict()`` produces the ``{types, primaryType, domain, message}``
    layout accepted by ``eth_account.Account.sign_typed_data`` and
    ``eth_signTypedData_v4``.
    """
    domain: EIP712Domain
    message: BeneficiaryTransferMessage

    primary_type: str = "BeneficiaryTransfer"

    types: Dict[str, List[Dict[str, str]]] = field(
        default_factory=lambda: {
            "EIP712Domain": list(EIP712_DOMAIN_FIELDS),
            "BeneficiaryTransfer": list(BENEFICIARY_TRANSFER_FIELDS),
        }
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "types": self.types,
            "primaryType": self.primary_type,
            "domain": self.domain.to_dict(),
            "message": self.message.to_dict(),
        }
