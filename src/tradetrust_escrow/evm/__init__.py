from .addresses import (
    derive_clone_address,
    compute_create2_address,
    compute_init_code_hash,
    compute_salt,
    normalize_address,
)
from .codecs import (
    InitParams,
    InitParamsWithFactory,
    encode_init_params,
    decode_init_params,
    encode_init_params_with_factory,
    decode_init_params_with_factory,
)
from .constants import (
    ChainId,
    CONTRACT_ADDRESSES,
    ROLE_HASHES,
    ZERO_ADDRESS,
    resolve_contract_address,
)
from .interfaces import CONTRACT_INTERFACES, CONTRACT_INTERFACE_IDS, compute_interface_id
from .schemas import (
    Endorsement,
    EVMECDSASignature,
    EscrowSnapshot,
    EndorsementVerificationResult,
    DecodedEvent,
)
from .signatures import (
    BENEFICIARY_TRANSFER_TYPEHASH,
    compute_domain_separator,
    hash_endorsement,
    digest_to_sign,
    build_endorsement_typed_data,
    sign_endorsement,
)
from .verifies import EndorsementVerifier, preflight_endorsement
from .receipts import EventInterface, LegacyReceipt, ModernReceipt, extract_event
from .client import TitleEscrowClient

__all__ = [
    "derive_clone_address",
    "compute_create2_address",
    "compute_init_code_hash",
    "compute_salt",
    "normalize_address",
    "InitParams",
    "InitParamsWithFactory",
    "encode_init_params",
    "decode_init_params",
    "encode_init_params_with_factory",
    "decode_init_params_with_factory",
    "ChainId",
    "CONTRACT_ADDRESSES",
    "ROLE_HASHES",
    "ZERO_ADDRESS",
    "resolve_contract_address",
    "CONTRACT_INTERFACES",
    "CONTRACT_INTERFACE_IDS",
    "compute_interface_id",
    "Endorsement",
    "EVMECDSASignature",
    "EscrowSnapshot",
    "EndorsementVerificationResult",
    "DecodedEvent",
    "BENEFICIARY_TRANSFER_TYPEHASH",
    "compute_domain_separator",
    "hash_endorsement",
    "digest_to_sign",
    "build_endorsement_typed_data",
    "sign_endorsement",
    "EndorsementVerifier",
    "preflight_endorsement",
    "EventInterface",
    "LegacyReceipt",
    "ModernReceipt",
    "extract_event",
    "TitleEscrowClient",
]
