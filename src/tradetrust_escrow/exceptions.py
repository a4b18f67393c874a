"""
Exception and Error Definitions Module

Defines the exception hierarchy for clone-address derivation, init-parameter
decoding, endorsement authorization and receipt parsing. All exceptions
inherit from EscrowError for unified exception handling.

Exception Hierarchy:
    EscrowError (root)
    ├── AddressError
    │   ├── InvalidAddress
    │   └── InvalidAddressLength
    ├── CodecError
    │   └── DecodeLengthMismatch
    ├── AuthorizationError
    │   ├── SignatureAlreadyCancelled
    │   ├── SignatureExpired
    │   ├── InvalidSignature
    │   ├── AlreadyCancelled
    │   ├── InvalidEndorsement
    │   ├── MismatchedEndorsedNominee
    │   ├── MismatchedEndorsedBeneficiary
    │   └── CallerNotEndorser
    ├── ReceiptError
    │   ├── EventNotFound
    │   └── UndecodableLog
    ├── ConfigurationError
    └── BlockchainInteractionError
        └── TransactionExecutionError
"""

from typing import Optional


class EscrowError(Exception):
    """
    Root exception class for all project-specific exceptions.

    All custom exceptions inherit from this class so callers can catch
    every library failure with a single ``except EscrowError``.
    """
    pass


# ---------------------------------------------------------------------------
# Address errors
# ---------------------------------------------------------------------------

class AddressError(EscrowError):
    """
    Base exception for malformed address input.
    """
    pass


class InvalidAddress(AddressError):
    """
    Raised when a value cannot be decoded as hex at all.

    Attributes:
        value: The offending input
    """

    def __init__(self, value, message: Optional[str] = None):
        self.value = value
        super().__init__(message or f"Not a valid hex address: {value!r}")


class InvalidAddressLength(AddressError):
    """
    Raised when an address does not decode to exactly 20 bytes.

    Attributes:
        value: The offending input
        length: Decoded byte length, in whole bytes for odd-length hex
    """

    def __init__(self, value, length: int):
        self.value = value
        self.length = length
        super().__init__(f"Address must be 20 bytes, got {length}: {value!r}")


# ---------------------------------------------------------------------------
# Codec errors
# ---------------------------------------------------------------------------

class CodecError(EscrowError):
    """
    Base exception for ABI encoding and decoding failures.
    """
    pass


class DecodeLengthMismatch(CodecError):
    """
    Raised when an encoded buffer is shorter than its head offsets imply.

    This includes scenarios such as:
    - Buffer shorter than the static head of the tuple
    - Dynamic offset pointing past the end of the buffer
    - Declared string/bytes length running past the end of the buffer
    """
    pass


# ---------------------------------------------------------------------------
# Authorization errors
# ---------------------------------------------------------------------------

class AuthorizationError(EscrowError):
    """
    Base exception for endorsement authorization rejections.

    Subclasses are surfaced verbatim so off-chain clients can decide whether
    to re-sign (expired, invalid) or abandon (cancelled).
    """
    pass


class SignatureAlreadyCancelled(AuthorizationError):
    """
    Raised when a struct hash present in the cancellation set is verified.

    Attributes:
        struct_hash: The cancelled struct hash
    """

    def __init__(self, struct_hash: bytes):
        self.struct_hash = struct_hash
        super().__init__(f"Signature already cancelled: 0x{struct_hash.hex()}")


class SignatureExpired(AuthorizationError):
    """
    Raised when an endorsement deadline is not strictly after the current time.

    Attributes:
        deadline: The endorsement deadline
        current_time: Time the check was performed against
    """

    def __init__(self, deadline: int, current_time: int):
        self.deadline = deadline
        self.current_time = current_time
        super().__init__(f"Signature expired: deadline={deadline} <= current_time={current_time}")


class InvalidSignature(AuthorizationError):
    """
    Raised when an endorsement signature does not authorize the transfer.

    Covers both a recovered signer that differs from the holder and a nonce
    that differs from the holder's current nonce; the caller cannot
    tell the two apart.
    """
    pass


class AlreadyCancelled(AuthorizationError):
    """
    Raised when cancelling a struct hash that is already cancelled.

    Attributes:
        struct_hash: The struct hash passed to cancel
    """

    def __init__(self, struct_hash: bytes):
        self.struct_hash = struct_hash
        super().__init__(f"Already cancelled: 0x{struct_hash.hex()}")


class InvalidEndorsement(AuthorizationError):
    """
    Raised when an endorsement does not match the escrow it targets.

    This includes scenarios such as:
    - Nominee is the zero address or equals the beneficiary
    - Holder, registry or token id differ from the escrow's
    """
    pass


class MismatchedEndorsedNominee(AuthorizationError):
    """
    Raised when the escrow already has a nominee different from the endorsed one.

    Attributes:
        endorsed: Nominee named in the endorsement
        on_chain: Nominee currently recorded by the escrow
    """

    def __init__(self, endorsed: str, on_chain: str):
        self.endorsed = endorsed
        self.on_chain = on_chain
        super().__init__(f"Endorsed nominee {endorsed} does not match on-chain nominee {on_chain}")


class MismatchedEndorsedBeneficiary(AuthorizationError):
    """
    Raised when the endorsed beneficiary is not the escrow's current beneficiary.

    Attributes:
        endorsed: Beneficiary named in the endorsement
        current: Beneficiary currently recorded by the escrow
    """

    def __init__(self, endorsed: str, current: str):
        self.endorsed = endorsed
        self.current = current
        super().__init__(f"Endorsed beneficiary {endorsed} does not match current beneficiary {current}")


class CallerNotEndorser(AuthorizationError):
    """
    Raised when someone other than the endorsing holder tries to cancel an endorsement.
    """
    pass


# ---------------------------------------------------------------------------
# Receipt errors
# ---------------------------------------------------------------------------

class ReceiptError(EscrowError):
    """
    Base exception for transaction receipt parsing failures.

    Receipt contents are final once mined, so none of these are retryable.
    """
    pass


class EventNotFound(ReceiptError):
    """
    Raised when no log in a receipt matches the requested event.

    Attributes:
        event: Event name or topic that was searched for
        scanned: Number of logs scanned
    """

    def __init__(self, event: str, scanned: int):
        self.event = event
        self.scanned = scanned
        super().__init__(f"Event {event!r} not found in {scanned} receipt log(s)")


class UndecodableLog(ReceiptError):
    """
    Raised when a log matches by topic but its data cannot be decoded.

    Attributes:
        event: Name of the matched event
        log_index: Position of the log in the receipt
    """

    def __init__(self, event: str, log_index: int, reason: str):
        self.event = event
        self.log_index = log_index
        super().__init__(f"Log {log_index} matched {event!r} but could not be decoded: {reason}")


# ---------------------------------------------------------------------------
# Environment errors
# ---------------------------------------------------------------------------

class ConfigurationError(EscrowError):
    """
    Raised when configuration is missing or invalid.

    This includes scenarios such as:
    - Missing private key or RPC URL
    - No address-book entry for the connected chain
    - Invalid configuration values
    """
    pass


class BlockchainInteractionError(EscrowError):
    """
    Raised when blockchain interaction (RPC call) fails.

    This includes scenarios such as:
    - RPC call timeout
    - Network connectivity issues
    - Contract call revert
    """
    pass


class TransactionExecutionError(BlockchainInteractionError):
    """
    Raised when a mined transaction did not have the intended effect.

    Attributes:
        tx_hash: Transaction hash if available
    """

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)
