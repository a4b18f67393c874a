"""
EVM Schema Models

Pydantic models for title escrow endorsements and their verification. All
classes inherit from the base schema hierarchy in ``schemas.bases``.

Endorsement classes:
    - Endorsement: BeneficiaryTransfer authorization signed by the holder.
    - EVMECDSASignature: v/r/s signature with packed (65-byte) conversion.

State / result classes:
    - EscrowSnapshot: On-chain escrow state an endorsement is checked against.
    - EndorsementVerificationResult: Non-raising assessment outcome.
    - DecodedEvent: An event log decoded out of a transaction receipt.

Address fields are normalized to EIP-55 checksum form on construction, so
equality between models is case-insensitive at the byte level.
"""

from typing import Any, Dict, Optional, Tuple, Union

from pydantic import Field, field_validator

from ..schemas.bases import BaseVerificationResult, CanonicalModel
from .addresses import normalize_address, token_id_to_int
from .constants import ZERO_ADDRESS


def _checksum(value: Any) -> str:
    # Address errors are EscrowError subclasses and propagate unwrapped.
    return normalize_address(value)


class EVMECDSASignature(CanonicalModel):
    """
    EVM ECDSA signature (v, r, s).

    Attributes:
        v: ECDSA recovery ID (27 or 28).
        r: r component, 32 bytes as a 64-char hex string (0x prefix optional).
        s: s component, 32 bytes as a 64-char hex string (0x prefix optional).

    Example::

        sig = EVMECDSASignature(v=27, r="0x" + "a" * 64, s="0x" + "b" * 64)
        packed = sig.to_packed_hex()
        assert EVMECDSASignature.from_packed(packed) == sig
    """

    v: int = Field(..., ge=27, le=28, description="ECDSA recovery ID (27 or 28)")
    r: str = Field(..., description="Signature r component (32 bytes, 64-char hex, 0x prefix optional)")
    s: str = Field(..., description="Signature s component (32 bytes, 64-char hex, 0x prefix optional)")

    def validate_format(self) -> bool:
        """
        Validate v/r/s components.

        Returns:
            True when all components pass.

        Raises:
            ValueError: Descriptive message on the first failed check.
        """
        if self.v not in (27, 28):
            raise ValueError(f"Invalid recovery ID: {self.v}. Must be 27 or 28")

        for name, val in [("r", self.r), ("s", self.s)]:
            hex_str = val.replace("0x", "").replace("0X", "")
            if len(hex_str) > 64:
                raise ValueError(f"Invalid {name}: expected at most 64 hex chars, got {len(hex_str)}")
            try:
                int(hex_str, 16)
            except ValueError:
                raise ValueError(f"Invalid {name}: not valid hexadecimal")

        return True

    def to_vrs(self) -> Tuple[int, int, int]:
        """Return ``(v, r, s)`` with r and s as integers, as ``eth_account`` expects."""
        self.validate_format()
        return self.v, int(self.r, 16), int(self.s, 16)

    def to_packed_hex(self) -> str:
        """
        Encode v/r/s into a packed 65-byte hex string (``r || s || v``).

        This is the ``bytes signature`` argument accepted on-chain by
        ``transferBeneficiaryWithSig``.

        Returns:
            0x-prefixed 132-character hex string.

        Raises:
            ValueError: If components do not pass ``validate_format()``.
        """
        self.validate_format()
        r = self.r.replace("0x", "").replace("0X", "").zfill(64)
        s = self.s.replace("0x", "").replace("0X", "").zfill(64)
        return "0x" + r + s + format(self.v, "02x")

    @classmethod
    def from_packed(cls, signature: Union[str, bytes]) -> "EVMECDSASignature":
        """
        Split a packed 65-byte ``r || s || v`` signature.

        A trailing ``v`` of 0 or 1 is normalized to 27 or 28.

        Raises:
            ValueError: If the signature is not 65 bytes.
        """
        if isinstance(signature, str):
            hex_str = signature[2:] if signature[:2] in ("0x", "0X") else signature
            raw = bytes.fromhex(hex_str)
        else:
            raw = bytes(signature)

        if len(raw) != 65:
            raise ValueError(f"Packed signature must be 65 bytes, got {len(raw)}")

        v = raw[64]
        if v < 27:
            v += 27
        return cls(v=v, r="0x" + raw[:32].hex(), s="0x" + raw[32:64].hex())


class Endorsement(CanonicalModel):
    """
    BeneficiaryTransfer endorsement (EIP-712 message).

    Authorizes ``nominee`` to become beneficiary of the escrow for
    ``(registry, token_id)``. Signed off-chain by ``holder`` and submitted by
    anyone before ``deadline``.

    Attributes:
        beneficiary: Current beneficiary.
        holder: Current holder and expected signer.
        nominee: Proposed next beneficiary.
        registry: Token registry address.
        token_id: Token id as uint256 (hex strings and bytes are accepted).
        deadline: Unix timestamp, exclusive upper bound of validity.
        nonce: Holder's nonce on the escrow when signed.
    """

    beneficiary: str = Field(..., description="Current beneficiary address")
    holder: str = Field(..., description="Current holder address (signer)")
    nominee: str = Field(..., description="Endorsed next beneficiary")
    registry: str = Field(..., description="Token registry address")
    token_id: int = Field(..., alias="tokenId", ge=0, description="Token id (uint256)")
    deadline: int = Field(..., ge=0, description="Unix timestamp the endorsement expires at")
    nonce: int = Field(..., ge=0, description="Holder nonce at signing time")

    @field_validator("beneficiary", "holder", "nominee", "registry", mode="before")
    @classmethod
    def _normalize_address(cls, v):
        return _checksum(v)

    @field_validator("token_id", mode="before")
    @classmethod
    def _normalize_token_id(cls, v):
        return token_id_to_int(v)

    def to_message_dict(self) -> Dict[str, Any]:
        """Return the EIP-712 ``message`` mapping (camelCase keys)."""
        return {
            "beneficiary": self.beneficiary,
            "holder": self.holder,
            "nominee": self.nominee,
            "registry": self.registry,
            "tokenId": self.token_id,
            "deadline": self.deadline,
            "nonce": self.nonce,
        }


class EscrowSnapshot(CanonicalModel):
    """
    Point-in-time state of a TitleEscrow, as read from chain.

    ``nominee`` is the zero address when no nomination is pending.
    """

    beneficiary: str
    holder: str
    nominee: str = ZERO_ADDRESS
    registry: str
    token_id: int = Field(..., alias="tokenId", ge=0)

    @field_validator("beneficiary", "holder", "nominee", "registry", mode="before")
    @classmethod
    def _normalize_address(cls, v):
        return _checksum(v)

    @field_validator("token_id", mode="before")
    @classmethod
    def _normalize_token_id(cls, v):
        return token_id_to_int(v)


class EndorsementVerificationResult(BaseVerificationResult):
    """
    Outcome of a non-mutating endorsement assessment.

    Attributes:
        verification_type: Always ``"endorsement"``.
        struct_hash: 0x-prefixed BeneficiaryTransfer struct hash.
        expected_signer: The endorsement's holder.
        deadline: Endorsement deadline.
        nonce: Endorsement nonce.
        current_nonce: Verifier's nonce for the holder at assessment time.
    """

    verification_type: str = Field("endorsement", description="Type of verification")
    struct_hash: Optional[str] = Field(None, description="BeneficiaryTransfer struct hash")
    expected_signer: Optional[str] = Field(None, description="Holder expected to have signed")
    deadline: Optional[int] = Field(None, description="Endorsement deadline")
    nonce: Optional[int] = Field(None, description="Endorsement nonce")
    current_nonce: Optional[int] = Field(None, description="Holder nonce held by the verifier")


class DecodedEvent(CanonicalModel):
    """
    A single event decoded out of a transaction receipt.

    Attributes:
        event: Event name, e.g. ``"Deployment"``.
        args: Decoded arguments keyed by ABI input name.
        log_index: Position of the log within the receipt.
        address: Emitting contract, when the receipt shape carries it.
        topic: 0x-prefixed topic0 of the log.
    """

    event: str
    args: Dict[str, Any]
    log_index: int
    address: Optional[str] = None
    topic: Optional[str] = None

    def __getitem__(self, key: str) -> Any:
        return self.args[key]
