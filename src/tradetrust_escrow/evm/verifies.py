"""
Endorsement Verification

Off-chain mirror of a TitleEscrow's signature checks for BeneficiaryTransfer
endorsements.

``EndorsementVerifier`` holds the state one escrow instance keeps in contract
storage: its domain separator, the set of cancelled struct hashes and the
per-holder nonce counter. Each escrow gets its own verifier; instances share
nothing. Mutations are serialized with a per-instance lock, so concurrent
simulated transactions against one escrow observe the same ordering a chain
would impose.

Failure reasons are kept distinct so a client can decide what to do next:

    SignatureAlreadyCancelled  abandon; the holder revoked the endorsement
    SignatureExpired           ask the holder to re-sign with a later deadline
    InvalidSignature           wrong signer, or a stale nonce; re-sign

A stale nonce and a wrong signer raise the same error.

``preflight_endorsement`` checks an endorsement against the escrow's current
state before anything is submitted, mirroring the contract's own reverts.
"""

import logging
import threading
import time
from typing import Any, Dict, Optional, Set

from ..config import DEFAULT_DOMAIN_NAME, DEFAULT_DOMAIN_VERSION
from ..exceptions import (
    AlreadyCancelled,
    AuthorizationError,
    CallerNotEndorser,
    InvalidEndorsement,
    InvalidSignature,
    MismatchedEndorsedBeneficiary,
    MismatchedEndorsedNominee,
    SignatureAlreadyCancelled,
    SignatureExpired,
)
from ..schemas.bases import VerificationStatus
from .addresses import AddressLike, is_zero_address, to_address_bytes
from .schemas import (
    EVMECDSASignature,
    Endorsement,
    EndorsementVerificationResult,
    EscrowSnapshot,
)
from .signatures import compute_domain_separator, hash_endorsement, recover_endorsement_signer

logger = logging.getLogger(__name__)


def _same_address(a: AddressLike, b: AddressLike) -> bool:
    return to_address_bytes(a) == to_address_bytes(b)


# ---------------------------------------------------------------------------
# Pre-flight
# ---------------------------------------------------------------------------

def preflight_endorsement(endorsement: Endorsement, snapshot: EscrowSnapshot) -> None:
    """
    Check that ``endorsement`` can be applied to an escrow in state ``snapshot``.

    Checks run in the order the contract performs them:

    1. **Well-formed** -- the nominee is set and differs from the beneficiary.
    2. **Bound to this escrow** -- holder, registry and token id match.
    3. **Nominee** -- a pending on-chain nomination must equal the endorsed nominee.
    4. **Beneficiary** -- the endorsed beneficiary is still the beneficiary.

    Args:
        endorsement: Endorsement about to be submitted.
        snapshot: Current on-chain state of the escrow.

    Raises:
        InvalidEndorsement: On checks 1 and 2.
        MismatchedEndorsedNominee: On check 3.
        MismatchedEndorsedBeneficiary: On check 4.
    """
    if is_zero_address(endorsement.nominee) or _same_address(endorsement.nominee, endorsement.beneficiary):
        raise InvalidEndorsement(
            f"Endorsed nominee {endorsement.nominee} is unset or equal to the beneficiary"
        )

    if not _same_address(endorsement.holder, snapshot.holder):
        raise InvalidEndorsement(
            f"Endorsement signed by {endorsement.holder} but the holder is {snapshot.holder}"
        )
    if not _same_address(endorsement.registry, snapshot.registry) or endorsement.token_id != snapshot.token_id:
        raise InvalidEndorsement("Endorsement is bound to a different registry or token")

    if not is_zero_address(snapshot.nominee) and not _same_address(snapshot.nominee, endorsement.nominee):
        raise MismatchedEndorsedNominee(endorsement.nominee, snapshot.nominee)

    if not _same_address(endorsement.beneficiary, snapshot.beneficiary):
        raise MismatchedEndorsedBeneficiary(endorsement.beneficiary, snapshot.beneficiary)


# ---------------------------------------------------------------------------
# Per-escrow verifier
# ---------------------------------------------------------------------------

class EndorsementVerifier:
    """
    Signature, cancellation and nonce state of a single escrow instance.

    Construct with either an explicit ``domain_separator`` or the domain
    fields it is derived from.

    Example::

        verifier = EndorsementVerifier(chain_id=1, verifying_contract=escrow_address)
        struct_hash = verifier.check_and_consume_endorsement(
            endorsement, signature, current_time=block_timestamp
        )
    """

    def __init__(
        self,
        *,
        domain_separator: Optional[bytes] = None,
        chain_id: Optional[int] = None,
        verifying_contract: Optional[AddressLike] = None,
        name: str = DEFAULT_DOMAIN_NAME,
        version: str = DEFAULT_DOMAIN_VERSION,
    ):
        if domain_separator is None:
            if chain_id is None or verifying_contract is None:
                raise ValueError(
                    "Either domain_separator or both chain_id and verifying_contract are required"
                )
            domain_separator = compute_domain_separator(name, version, chain_id, verifying_contract)
        elif len(domain_separator) != 32:
            raise ValueError(f"Domain separator must be 32 bytes, got {len(domain_separator)}")

        self.domain_separator: bytes = bytes(domain_separator)
        self._cancelled: Set[bytes] = set()
        self._nonces: Dict[bytes, int] = {}
        self._lock = threading.Lock()

    # ---- read-only state ----

    def nonces(self, holder: AddressLike) -> int:
        """Current nonce of ``holder``."""
        with self._lock:
            return self._nonces.get(to_address_bytes(holder), 0)

    def is_cancelled(self, struct_hash: bytes) -> bool:
        with self._lock:
            return bytes(struct_hash) in self._cancelled

    # ---- signature check ----

    def verify(self, struct_hash: bytes, expected_signer: AddressLike, signature: EVMECDSASignature) -> bool:
        """
        Check that ``signature`` over ``struct_hash`` was made by ``expected_signer``.

        Returns:
            ``True`` on a match; ``False`` when recovery yields another
            address or fails.

        Raises:
            SignatureAlreadyCancelled: If ``struct_hash`` was cancelled,
                whatever the signature.
        """
        with self._lock:
            return self._verify_locked(bytes(struct_hash), expected_signer, signature)

    def _verify_locked(self, struct_hash: bytes, expected_signer: AddressLike, signature: EVMECDSASignature) -> bool:
        if struct_hash in self._cancelled:
            logger.warning("Rejected cancelled endorsement 0x%s", struct_hash.hex())
            raise SignatureAlreadyCancelled(struct_hash)

        recovered = recover_endorsement_signer(self.domain_separator, struct_hash, signature)
        if recovered is None:
            return False
        return _same_address(recovered, expected_signer)

    # ---- cancellation ----

    def cancel(self, struct_hash: bytes) -> None:
        """
        Add ``struct_hash`` to the cancellation set.

        Raises:
            AlreadyCancelled: If it is already present.
        """
        struct_hash = bytes(struct_hash)
        with self._lock:
            if struct_hash in self._cancelled:
                raise AlreadyCancelled(struct_hash)
            self._cancelled.add(struct_hash)
        logger.info("Cancelled endorsement 0x%s", struct_hash.hex())

    def cancel_endorsement(self, endorsement: Endorsement, caller: AddressLike) -> bytes:
        """
        Cancel ``endorsement`` on behalf of ``caller``.

        Returns:
            The cancelled struct hash.

        Raises:
            CallerNotEndorser: If ``caller`` is not the endorsement's holder.
            AlreadyCancelled: If the endorsement was already cancelled.
        """
        if not _same_address(caller, endorsement.holder):
            raise CallerNotEndorser(
                f"{caller} cannot cancel an endorsement signed by {endorsement.holder}"
            )
        struct_hash = hash_endorsement(endorsement)
        self.cancel(struct_hash)
        return struct_hash

    # ---- nonces ----

    def bump_nonce(self, holder: AddressLike) -> int:
        """
        Increment ``holder``'s nonce, invalidating their outstanding endorsements.

        Called when the holder changes through a non-signature transfer.

        Returns:
            The new nonce.
        """
        key = to_address_bytes(holder)
        with self._lock:
            self._nonces[key] = self._nonces.get(key, 0) + 1
            return self._nonces[key]

    # ---- composite ----

    def check_and_consume_endorsement(
        self,
        endorsement: Endorsement,
        signature: EVMECDSASignature,
        current_time: Optional[int] = None,
    ) -> bytes:
        """
        Validate ``endorsement`` and consume the holder's nonce.

        Steps, all under the instance lock:

        1. ``deadline`` must be strictly after ``current_time``.
        2. ``nonce`` must equal the holder's current nonce.
        3. The signature must recover to the holder (cancellation checked first).
        4. The holder's nonce is incremented.

        Args:
            endorsement: Endorsement being applied.
            signature: Holder's signature over it.
            current_time: Unix timestamp; defaults to ``int(time.time())``.

        Returns:
            The endorsement's struct hash.

        Raises:
            SignatureExpired: ``deadline <= current_time``.
            InvalidSignature: Nonce mismatch or signer mismatch.
            SignatureAlreadyCancelled: Struct hash is cancelled.
        """
        now = int(current_time) if current_time is not None else int(time.time())
        holder = to_address_bytes(endorsement.holder)

        with self._lock:
            if endorsement.deadline <= now:
                logger.warning(
                    "Rejected expired endorsement (deadline=%d, now=%d)", endorsement.deadline, now
                )
                raise SignatureExpired(endorsement.deadline, now)

            if endorsement.nonce != self._nonces.get(holder, 0):
                logger.warning("Rejected endorsement from %s with stale nonce", endorsement.holder)
                raise InvalidSignature("Invalid signature")

            struct_hash = hash_endorsement(endorsement)
            if not self._verify_locked(struct_hash, endorsement.holder, signature):
                logger.warning("Rejected endorsement not signed by holder %s", endorsement.holder)
                raise InvalidSignature("Invalid signature")

            self._nonces[holder] = endorsement.nonce + 1

        logger.debug("Consumed endorsement 0x%s", struct_hash.hex())
        return struct_hash

    def assess_endorsement(
        self,
        endorsement: Endorsement,
        signature: EVMECDSASignature,
        current_time: Optional[int] = None,
        snapshot: Optional[EscrowSnapshot] = None,
    ) -> EndorsementVerificationResult:
        """
        Report whether ``endorsement`` would currently be accepted, without
        consuming the nonce or raising.

        When ``snapshot`` is given, ``preflight_endorsement`` runs first.

        Returns:
            ``EndorsementVerificationResult``; ``is_valid=True`` and
            ``status=SUCCESS`` only when every check passes.
        """
        now = int(current_time) if current_time is not None else int(time.time())
        struct_hash = hash_endorsement(endorsement)
        current_nonce = self.nonces(endorsement.holder)

        def _fail(
            status: VerificationStatus,
            message: str,
            error_details: Optional[Dict[str, Any]] = None,
        ) -> EndorsementVerificationResult:
            return EndorsementVerificationResult(
                status=status,
                is_valid=False,
                message=message,
                error_details=error_details,
                struct_hash="0x" + struct_hash.hex(),
                expected_signer=endorsement.holder,
                deadline=endorsement.deadline,
                nonce=endorsement.nonce,
                current_nonce=current_nonce,
            )

        # ------------------------------------------------------------------
        # 1. Escrow state
        # ------------------------------------------------------------------
        if snapshot is not None:
            try:
                preflight_endorsement(endorsement, snapshot)
            except AuthorizationError as e:
                return _fail(
                    VerificationStatus.INVALID_ENDORSEMENT,
                    str(e),
                    {"error": type(e).__name__},
                )

        # ------------------------------------------------------------------
        # 2. Deadline
        # ------------------------------------------------------------------
        if endorsement.deadline <= now:
            return _fail(
                VerificationStatus.EXPIRED,
                f"Endorsement expired: deadline={endorsement.deadline} <= current_time={now}.",
                {"current_time": now, "deadline": endorsement.deadline},
            )

        # ------------------------------------------------------------------
        # 3. Nonce
        # ------------------------------------------------------------------
        if endorsement.nonce != current_nonce:
            return _fail(VerificationStatus.INVALID_SIGNATURE, "Invalid signature.")

        # ------------------------------------------------------------------
        # 4. Cancellation and signer
        # ------------------------------------------------------------------
        try:
            valid = self.verify(struct_hash, endorsement.holder, signature)
        except SignatureAlreadyCancelled:
            return _fail(VerificationStatus.CANCELLED, "Endorsement has been cancelled.")

        if not valid:
            return _fail(VerificationStatus.INVALID_SIGNATURE, "Invalid signature.")

        return EndorsementVerificationResult(
            status=VerificationStatus.SUCCESS,
            is_valid=True,
            message="Endorsement is valid.",
            struct_hash="0x" + struct_hash.hex(),
            expected_signer=endorsement.holder,
            deadline=endorsement.deadline,
            nonce=endorsement.nonce,
            current_nonce=current_nonce,
        )
