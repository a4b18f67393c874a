"""
Token Registry Init-Parameter Codec

ABI encoding of the parameters a TDocDeployer forwards to a freshly cloned
token registry's initializer.

Layouts
-------
Standard ``(string name, string symbol, address deployer)``
    Passed by callers to ``TDocDeployer.deploy(implementation, params)``.

With factory ``(bytes params, address titleEscrowFactory)``
    What the deployer hands to the registry initializer: the standard tuple
    is carried *as encoded bytes* in the first field, not inlined.
"""

from typing import NamedTuple, Optional, Union

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import hexstr_if_str, is_hex, to_bytes, to_checksum_address

from ..exceptions import CodecError, DecodeLengthMismatch
from .addresses import AddressLike, is_zero_address, normalize_address
from .constants import ZERO_ADDRESS

INIT_PARAMS_TYPES = ["string", "string", "address"]
INIT_PARAMS_WITH_FACTORY_TYPES = ["bytes", "address"]

_WORD = 32


class InitParams(NamedTuple):
    """Decoded standard init parameters."""
    name: str
    symbol: str
    deployer: str


class InitParamsWithFactory(NamedTuple):
    """Decoded init parameters plus the title escrow factory override."""
    params: InitParams
    title_escrow_factory: Optional[str]


def encode_init_params(name: str, symbol: str, deployer: AddressLike) -> bytes:
    """
    ABI-encode ``(name, symbol, deployer)`` as ``(string, string, address)``.

    Example::

        params = encode_init_params("The Great Shipping Co.", "GSC", "0xAbC...")
        # hand ``params`` to TDocDeployer.deploy(implementation, params)
    """
    return encode(INIT_PARAMS_TYPES, [name, symbol, normalize_address(deployer)])


def decode_init_params(data: Union[bytes, str]) -> InitParams:
    """
    Inverse of ``encode_init_params``.

    Raises:
        DecodeLengthMismatch: If ``data`` is shorter than its head offsets
            and declared string lengths require.
        CodecError: If ``data`` is a non-hex string, or the name or symbol
            is not valid UTF-8.
    """
    raw = _to_bytes(data)
    _check_dynamic_layout(raw, head_words=3, dynamic_slots=(0, 1))
    try:
        name, symbol, deployer = decode(INIT_PARAMS_TYPES, raw)
    except DecodingError as e:
        raise DecodeLengthMismatch(f"Malformed init params: {e}") from e
    except UnicodeDecodeError as e:
        raise CodecError(f"Init params name or symbol is not valid UTF-8: {e}") from e
    return InitParams(name, symbol, to_checksum_address(deployer))


def encode_init_params_with_factory(
    name: str,
    symbol: str,
    deployer: AddressLike,
    title_escrow_factory: Optional[AddressLike] = None,
) -> bytes:
    """
    ABI-encode the standard tuple nested inside ``(bytes, address)``.

    ``title_escrow_factory=None`` is encoded as the zero address.
    """
    inner = encode_init_params(name, symbol, deployer)
    factory = normalize_address(title_escrow_factory) if title_escrow_factory else ZERO_ADDRESS
    return encode(INIT_PARAMS_WITH_FACTORY_TYPES, [inner, factory])


def decode_init_params_with_factory(data: Union[bytes, str]) -> InitParamsWithFactory:
    """
    Inverse of ``encode_init_params_with_factory``.

    A zero factory address decodes to ``None``.

    Raises:
        DecodeLengthMismatch: If the outer or the nested tuple is truncated.
    """
    raw = _to_bytes(data)
    _check_dynamic_layout(raw, head_words=2, dynamic_slots=(0,))
    try:
        inner, factory = decode(INIT_PARAMS_WITH_FACTORY_TYPES, raw)
    except DecodingError as e:
        raise DecodeLengthMismatch(f"Malformed init params: {e}") from e

    params = decode_init_params(inner)
    override = None if is_zero_address(factory) else to_checksum_address(factory)
    return InitParamsWithFactory(params, override)


def _to_bytes(data: Union[bytes, str]) -> bytes:
    if isinstance(data, str):
        if not is_hex(data):
            raise CodecError(f"Encoded init params are not valid hex: {data!r}")
        return bytes(hexstr_if_str(to_bytes, data))
    return bytes(data)


def _check_dynamic_layout(raw: bytes, *, head_words: int, dynamic_slots) -> None:
    """
    Validate head/tail bounds of a tuple whose ``dynamic_slots`` are
    ``string``/``bytes`` fields.

    Raises:
        DecodeLengthMismatch: On the first offset or length running past the end.
    """
    head_size = head_words * _WORD
    if len(raw) < head_size:
        raise DecodeLengthMismatch(
            f"Buffer of {len(raw)} bytes is shorter than the {head_size}-byte tuple head"
        )

    for slot in dynamic_slots:
        offset = int.from_bytes(raw[slot * _WORD:(slot + 1) * _WORD], "big")
        if offset + _WORD > len(raw):
            raise DecodeLengthMismatch(
                f"Offset {offset} of field {slot} points past the end of a {len(raw)}-byte buffer"
            )
        length = int.from_bytes(raw[offset:offset + _WORD], "big")
        if offset + _WORD + length > len(raw):
            raise DecodeLengthMismatch(
                f"Field {slot} declares {length} bytes at offset {offset} "
                f"but the buffer is {len(raw)} bytes"
            )
